"""
Best-effort metadata inference from file paths.
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .utils import Config

logger = logging.getLogger(__name__)

# Characters trimmed off inferred names after splitting
TRIM_CHARS = ':;,.- '

# "<index>[:<count>][separator]<rest>" - every part optional
_INDEX_RE = re.compile(r'([0-9]*)(?::([0-9]*))?[-,.: ]?(.*)', re.DOTALL)

# "<index>[/<count>]" as stored in TRCK / TPOS
_ENUM_RE = re.compile(r'\s*([0-9]+)?\s*(?:/\s*([0-9]+))?')

@dataclass
class MetaCandidate:
    """The rudimentary metadata we care for when enhancing tags.

    Empty strings and zeros mean "unknown".
    """
    album: str = ""
    artist: str = ""
    title: str = ""
    genre: str = ""
    year: int = 0
    track: int = 0
    track_count: int = 0
    disc: int = 0
    disc_count: int = 0

def _trim(s: str) -> str:
    return s.strip().strip(TRIM_CHARS).strip()

def _to_int(digits: Optional[str]) -> int:
    return int(digits) if digits else 0

def extract_index(text: str) -> Tuple[int, int, str]:
    """
    Split a leading index (and optional count) off a name.

    Examples:
        >>> extract_index("03 - Money")
        (3, 0, 'Money')
        >>> extract_index("1:2 Disc Title")
        (1, 2, 'Disc Title')
        >>> extract_index("Money")
        (0, 0, 'Money')
    """
    match = _INDEX_RE.match(text)
    return _to_int(match.group(1)), _to_int(match.group(2)), _trim(match.group(3))

def parse_enum(value: str) -> Tuple[int, int]:
    """
    Parse an "index/count" string, e.g. a TRCK value of "3/12".

    Unusable parts come back as 0.
    """
    match = _ENUM_RE.match(value or "")
    index, count = _to_int(match.group(1)), _to_int(match.group(2))
    if index == 0 and count == 0:
        logger.debug(f"index '{value}' with unexpected format")
    return index, count

def infer(path: str, denylist: Optional[Sequence[str]] = None) -> MetaCandidate:
    """
    Guess artist, title, track, album and disc from a file path.

    The filename (without extension) is read as "[artist -] [track[:count]] title",
    the parent directory as "[disc[:count]] album". The hyphen split happens
    before the index detection, so "01 - Title" yields artist "01".

    Args:
        path: File path, '/' or platform separated
        denylist: Markers of directories that are never albums (default Config.ALBUM_DENYLIST)

    Returns:
        MetaCandidate with whatever could be inferred
    """
    if denylist is None:
        denylist = Config.ALBUM_DENYLIST

    parts = str(path).replace(os.sep, '/').split('/')

    name = parts[-1]
    if '.' in name:
        name = name.rpartition('.')[0]

    # Complete title candidate
    raw_title = name.strip()

    meta = MetaCandidate()

    # Try to extract "artist - title"
    pieces = raw_title.split('-')
    if len(pieces) >= 2:
        meta.artist = _trim(pieces[0])
        title = '-'.join(pieces[1:]).strip()
    else:
        title = raw_title

    meta.track, meta.track_count, meta.title = extract_index(title)

    # Try to extract album from parent folder name
    if len(parts) > 1:
        parent = parts[-2]
        if parent and not any(marker in parent for marker in denylist):
            meta.disc, meta.disc_count, meta.album = extract_index(parent)

    logger.debug(f"Guessed from path '{path}' and found {meta}")

    return meta

def read_meta(doc) -> MetaCandidate:
    """Collect the MetaCandidate fields already present in a TagDocument."""
    meta = MetaCandidate()

    def first_text(key: str) -> str:
        for frame in doc.get_frames(key):
            for value in getattr(frame, 'text', []):
                text = str(value).strip()
                if text:
                    return text
        return ""

    meta.title = first_text('TIT2')
    meta.artist = first_text('TPE1')
    meta.album = first_text('TALB')
    meta.genre = first_text('TCON')
    meta.track, meta.track_count = parse_enum(first_text('TRCK'))
    meta.disc, meta.disc_count = parse_enum(first_text('TPOS'))

    year = first_text('TDRC') or first_text('TYER')
    if year[:4].isdigit():
        meta.year = int(year[:4])

    logger.debug(f"Read ID3 from '{doc.path}' and found {meta}")

    return meta
