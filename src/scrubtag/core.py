"""
TagDocument - in-memory ID3v2 frame collection for one audio file.
Reads through mutagen, writes back atomically.
"""

import os
import shutil
import tempfile
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Union

import mutagen
from mutagen.id3 import ID3, ID3NoHeaderError, Frame

from .utils import Config, get_file_hash

logger = logging.getLogger(__name__)

# Files picked up when walking a directory
SUPPORTED_EXT = {'.mp3'}

class ScrubtagError(Exception):
    """Base exception for scrubtag errors, carrying the affected file path."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None

class FormatError(ScrubtagError):
    """Raised when the ID3v2 tag is unreadable or malformed."""
    pass

class LegacyTagError(ScrubtagError):
    """Raised when locating or removing an ID3v1 block fails."""
    pass

class SaveError(ScrubtagError):
    """Raised when writing the mutated tag back to disk fails."""
    pass

def safe_file_copy(src: Path, dst: Path) -> None:
    """Copy file in chunks and verify the copy by checksum.

    Raises:
        RuntimeError: If file copy verification fails
    """
    src_hash = get_file_hash(src)

    with open(src, 'rb') as f_src, open(dst, 'wb') as f_dst:
        for chunk in iter(lambda: f_src.read(Config.CHUNK_SIZE), b""):
            f_dst.write(chunk)

    dst_hash = get_file_hash(dst)
    if src_hash != dst_hash:
        raise RuntimeError("File copy verification failed - checksum mismatch")

class TagDocument:
    """
    Mutable ID3v2 frame collection of a single file.

    Frames are addressed by their 4-character frame id only. Nothing becomes
    visible on disk before save() succeeds.
    """

    def __init__(self, path: Union[str, Path]):
        """Open the file and parse its ID3v2 tag."""
        self.path = Path(path)
        self.tags: Optional[ID3] = None
        self.is_new = False
        self.load_file()

    def load_file(self) -> None:
        """Load the ID3v2 tag with mutagen; a file without one gets an empty tag."""
        try:
            # ID3v1 data stays out of the document, it is handled on disk
            self.tags = ID3(self.path, load_v1=False)
        except ID3NoHeaderError:
            logger.debug(f"No ID3v2 tag in {self.path}, starting empty")
            self.tags = ID3()
            self.is_new = True
        except (mutagen.MutagenError, OSError) as e:
            raise FormatError(f"ID3v2 parsing failed for '{self.path}': {e}", self.path) from e

    @property
    def version(self) -> int:
        """Minor ID3v2 version the tag will be written with (3 or 4)."""
        return 3 if self.tags.version[1] == 3 and not self.is_new else 4

    def all_frames(self) -> Dict[str, List[Frame]]:
        """Snapshot of all frames grouped by frame id, in tag order."""
        grouped: Dict[str, List[Frame]] = {}
        for frame in list(self.tags.values()):
            grouped.setdefault(frame.FrameID, []).append(frame)
        return grouped

    def get_frames(self, key: str) -> List[Frame]:
        """All frames stored under the given frame id."""
        return self.tags.getall(key)

    def add_frame(self, frame: Frame) -> None:
        """Add a frame, replacing one with the same identity."""
        self.tags.add(frame)

    def delete_frames(self, key: str) -> None:
        """Remove every frame stored under the given frame id."""
        self.tags.delall(key)

    def save(self) -> None:
        """
        Write the tag back to disk atomically.

        The tag is written into a verified sibling copy which then replaces
        the original. On failure the copy is removed and the original stays
        exactly as it was.
        """
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix='.tmp', dir=str(self.path.parent)
        )
        os.close(fd)
        tmp_path = Path(tmp_name)

        try:
            safe_file_copy(self.path, tmp_path)
            shutil.copymode(self.path, tmp_path)
            if self.version == 3:
                self.tags.update_to_v23()
            # v1=1 rewrites an existing ID3v1 block from the v2 frames, never adds one
            self.tags.save(str(tmp_path), v1=1, v2_version=self.version)
            os.replace(tmp_path, self.path)
        except Exception as e:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise SaveError(f"failed to save ID3v2 tags of '{self.path}': {e}", self.path) from e

        self.is_new = False
        logger.debug(f"Saved ID3v2.{self.version} tag to {self.path}")

    def close(self) -> None:
        """Release the in-memory frames."""
        self.tags = None

    def __enter__(self) -> 'TagDocument':
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the context manager and release the document."""
        self.close()

    def __len__(self) -> int:
        return len(self.tags) if self.tags is not None else 0

    @staticmethod
    @contextmanager
    def managed(path: Union[str, Path]) -> Generator['TagDocument', None, None]:
        """Context manager for TagDocument with proper resource cleanup."""
        doc = None
        try:
            doc = TagDocument(path)
            yield doc
        finally:
            if doc is not None:
                doc.close()

managed_document = TagDocument.managed
