"""
Per-file tag operations for scrubtag.

Every operation works on exactly one file, raises ScrubtagError subclasses
on failure and otherwise returns a report dict describing what it did (or,
in dry-run mode, what it would have done).
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from mutagen.id3 import APIC, TALB, TIT2, TPE1, TPOS, TRCK, Encoding, PictureType

from .core import ScrubtagError, TagDocument
from .frames import FrameAdapter, trim_values
from .guess import MetaCandidate, infer, read_meta
from .legacy import LegacyTagLocation, locate, remove
from .utils import Config, printable
from .words import scrub

logger = logging.getLogger(__name__)

# ---------- Type Definitions ----------
ReportType = Dict[str, Any]
ChangeType = Dict[str, str]

def _new_report(path: Union[str, Path], operation: str) -> ReportType:
    return {
        'path': str(path),
        'operation': operation,
        'changes': [],
        'dirty': False,
        'saved': False,
        'legacy': LegacyTagLocation.NONE.name.lower(),
        'legacy_removed': False,
    }

def _change(action: str, key: str, value: str = "", description: str = "") -> ChangeType:
    change = {'action': action, 'frame': key, 'value': value}
    if description:
        change['description'] = description
    return change

# ---------- Steps ----------
def scrub_document(doc: TagDocument, words: Sequence[str], changes: List[ChangeType]) -> bool:
    """
    Remove forbidden words from every text, comment and lyrics frame and
    drop all URL frames. Returns True if the document was modified.
    """
    dirty = False

    for key, frames in doc.all_frames().items():
        # Any URL frame "W***"
        if key.startswith('W'):
            logger.info(f"Removing frame {key}")
            doc.delete_frames(key)
            changes.append(_change('remove', key))
            dirty = True
            continue

        for frame in frames:
            adapter = FrameAdapter.wrap(doc, key, frame)
            if adapter is None:
                logger.debug(f"{key}: not cleanable")
                continue

            logger.debug(adapter.describe())

            cleaned, value = scrub(adapter.get_text(), words)
            if not cleaned:
                continue
            # A cut right after a separator leaves an empty last value
            value = trim_values(value)

            if value:
                logger.info(f"Updating {key}: {printable(value)}")
                adapter.set_text(value)
                changes.append(_change('update', key, printable(value), adapter.description))
            else:
                logger.info(f"Removing frame {key}")
                adapter.delete()
                changes.append(_change('remove', key, description=adapter.description))
            dirty = True

    return dirty

def enhance_document(doc: TagDocument, meta: MetaCandidate, changes: List[ChangeType]) -> bool:
    """
    Fill title, artist, track, disc and album from an inferred candidate,
    only where the document has nothing yet. Returns True if anything was added.
    """
    current = read_meta(doc)
    dirty = False

    def add(frame, key: str, value: str) -> None:
        nonlocal dirty
        logger.info(f"Adding {key} {value}")
        doc.add_frame(frame)
        changes.append(_change('add', key, value))
        dirty = True

    if not current.title and meta.title:
        add(TIT2(encoding=Encoding.UTF16, text=[meta.title]), 'TIT2', meta.title)

    if not current.artist and meta.artist:
        add(TPE1(encoding=Encoding.UTF16, text=[meta.artist]), 'TPE1', meta.artist)

    if current.track == 0 and meta.track > 0:
        count = current.track_count or meta.track_count
        value = f"{meta.track}/{count}" if count else str(meta.track)
        add(TRCK(encoding=Encoding.LATIN1, text=[value]), 'TRCK', value)

    if current.disc == 0 and meta.disc > 0:
        count = current.disc_count or meta.disc_count
        value = f"{meta.disc}/{count}" if count else str(meta.disc)
        add(TPOS(encoding=Encoding.LATIN1, text=[value]), 'TPOS', value)

    if not current.album and meta.album:
        add(TALB(encoding=Encoding.UTF16, text=[meta.album]), 'TALB', meta.album)

    return dirty

def persist(doc: TagDocument, dirty: bool, dry_run: bool) -> bool:
    """Save the document if it is dirty and this is not a dry run. Returns True if saved."""
    if not dirty:
        logger.info(f"{doc.path} needs no tag update")
        return False
    if dry_run:
        logger.info(f"Skipping save of {doc.path} for dry run")
        return False
    logger.info(f"Saving {doc.path}")
    doc.save()
    return True

def locate_legacy_tag(path: Union[str, Path]) -> LegacyTagLocation:
    """Where (if anywhere) the file carries an ID3v1 block."""
    return locate(path)

def remove_legacy_tag(path: Union[str, Path], location: LegacyTagLocation) -> None:
    """Remove the ID3v1 block at the given location; NONE is a no-op."""
    remove(path, location)

def _strip_legacy(path: Union[str, Path], dry_run: bool, report: ReportType) -> None:
    location = locate_legacy_tag(path)
    if location is LegacyTagLocation.NONE:
        return
    report['legacy'] = location.name.lower()
    if dry_run:
        logger.info(f"Skipping ID3v1 removal from {path} for dry run")
        return
    remove_legacy_tag(path, location)
    report['legacy_removed'] = True

def _save_document(doc: TagDocument, dirty: bool, dry_run: bool, report: ReportType) -> bool:
    """
    persist() for operations that may create the first ID3v2 tag of a file.

    A new ID3v2 header goes in front of everything, so an ID3v1 block at the
    head is removed before that save; afterwards it could no longer be found.
    """
    if dirty and doc.is_new and locate_legacy_tag(doc.path) is LegacyTagLocation.HEAD:
        _strip_legacy(doc.path, dry_run, report)
    return persist(doc, dirty, dry_run)

# ---------- Operations ----------
def clean(words: Sequence[str], path: Union[str, Path], dry_run: bool = False,
          enhance: bool = False, denylist: Optional[Sequence[str]] = None) -> ReportType:
    """
    Clean the tags of one file.

    Forbidden words are cut from every text-like frame, URL frames are
    dropped, missing fields are optionally filled from the path, and the
    file is saved if anything changed. The ID3v1 block is checked only after
    that save so its offsets are current, except a head block on a file
    getting its first ID3v2 tag, which goes before the save.

    Args:
        words: Forbidden words, shared read-only between files
        path: File to clean
        dry_run: Decide and log, but write nothing
        enhance: Also fill missing fields from the path
        denylist: Album directory denylist for enhancement (default Config.ALBUM_DENYLIST)

    Returns:
        Report dict with keys: path, operation, changes, dirty, saved, legacy, legacy_removed

    Raises:
        FormatError: Tag unreadable
        SaveError: Writing the tag failed, the file is unchanged
        LegacyTagError: Removing ID3v1 failed, the file keeps it
    """
    logger.info(f"Processing {path}")
    report = _new_report(path, 'clean')

    with TagDocument.managed(path) as doc:
        dirty = scrub_document(doc, words, report['changes'])
        if enhance:
            meta = infer(str(path), denylist)
            dirty = enhance_document(doc, meta, report['changes']) or dirty
        report['dirty'] = dirty
        report['saved'] = _save_document(doc, dirty, dry_run, report)

    _strip_legacy(path, dry_run, report)
    return report

def enhance(path: Union[str, Path], dry_run: bool = False,
            denylist: Optional[Sequence[str]] = None) -> ReportType:
    """
    Fill missing title, artist, track, disc and album from the file path.

    Present values are never overwritten.
    """
    logger.info(f"Enhancing {path}")
    report = _new_report(path, 'enhance')

    meta = infer(str(path), denylist)
    with TagDocument.managed(path) as doc:
        report['dirty'] = enhance_document(doc, meta, report['changes'])
        report['saved'] = _save_document(doc, report['dirty'], dry_run, report)

    return report

def ungain(path: Union[str, Path], dry_run: bool = False,
           descriptions: Optional[Sequence[str]] = None) -> ReportType:
    """Remove ReplayGain / MP3Gain TXXX frames, leaving other TXXX frames alone."""
    if descriptions is None:
        descriptions = Config.GAIN_DESCRIPTIONS

    logger.info(f"Processing {path}")
    report = _new_report(path, 'ungain')

    with TagDocument.managed(path) as doc:
        for frame in doc.get_frames('TXXX'):
            adapter = FrameAdapter.wrap(doc, 'TXXX', frame)
            if adapter is None or adapter.description not in descriptions:
                continue
            logger.info(f"Removing frame TXXX:{adapter.description}")
            adapter.delete()
            report['changes'].append(_change('remove', 'TXXX', description=adapter.description))
            report['dirty'] = True
        report['saved'] = persist(doc, report['dirty'], dry_run)

    return report

def check_for_cover(path: Union[str, Path]) -> ReportType:
    """Report the attached pictures of a file (type, MIME type, SHA-1)."""
    report = _new_report(path, 'check-cover')
    covers = []

    with TagDocument.managed(path) as doc:
        for pic in doc.get_frames('APIC'):
            sha = hashlib.sha1(pic.data).hexdigest()
            logger.info(f"APIC: type:{int(pic.type)} mime:{pic.mime} SHA:{sha}")
            covers.append({'type': int(pic.type), 'mime': pic.mime, 'sha1': sha})

    report['covers'] = covers
    report['has_cover'] = bool(covers)
    if covers:
        logger.info(f"{path} has a cover")
    return report

def add_cover(path: Union[str, Path], cover_file: Union[str, Path],
              dry_run: bool = False) -> ReportType:
    """Attach an image file as front cover."""
    logger.info(f"Enhancing {path} with cover")
    report = _new_report(path, 'add-cover')

    cover_file = Path(cover_file)
    mime = 'image/png' if cover_file.suffix.lower() == '.png' else 'image/jpeg'
    try:
        data = cover_file.read_bytes()
    except OSError as e:
        raise ScrubtagError(f"Cover file read failed for '{cover_file}': {e}", path) from e

    with TagDocument.managed(path) as doc:
        doc.add_frame(APIC(encoding=Encoding.UTF8, mime=mime, type=PictureType.COVER_FRONT,
                           desc='Front cover', data=data))
        report['changes'].append(_change('add', 'APIC', f"{mime}, {len(data)} bytes"))
        report['dirty'] = True
        report['saved'] = _save_document(doc, True, dry_run, report)

    return report

def strip_legacy(path: Union[str, Path], dry_run: bool = False) -> ReportType:
    """Only locate and remove the ID3v1 block."""
    report = _new_report(path, 'strip-legacy')
    _strip_legacy(path, dry_run, report)
    report['dirty'] = report['legacy'] != LegacyTagLocation.NONE.name.lower()
    return report
