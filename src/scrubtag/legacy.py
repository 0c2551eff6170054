"""
Detection and removal of the fixed 128-byte ID3v1 block.
"""

import os
import shutil
import logging
from enum import Enum
from pathlib import Path
from typing import Union

from .core import LegacyTagError
from .utils import Config

logger = logging.getLogger(__name__)

LEGACY_TAG_SIZE = 128
LEGACY_TAG_MAGIC = b'TAG'

# Sibling file the stripped copy is streamed into
TEMP_SUFFIX = '-id3v1'

class LegacyTagLocation(Enum):
    """Where an ID3v1 block sits in a file."""
    NONE = 0
    HEAD = 1
    TAIL = 2

def locate(path: Union[str, Path]) -> LegacyTagLocation:
    """
    Look for the ID3v1 magic at the start of the file, then 128 bytes before its end.

    Raises:
        LegacyTagError: If the file cannot be opened or read
    """
    path = Path(path)
    logger.debug(f"Checking {path} for ID3v1 tag")

    try:
        with open(path, 'rb') as f:
            size = os.fstat(f.fileno()).st_size

            # Too small for a complete ID3v1
            if size < LEGACY_TAG_SIZE:
                return LegacyTagLocation.NONE

            if f.read(len(LEGACY_TAG_MAGIC)) == LEGACY_TAG_MAGIC:
                logger.debug(f"ID3v1 tag found at head of {path}")
                return LegacyTagLocation.HEAD

            f.seek(size - LEGACY_TAG_SIZE)
            if f.read(len(LEGACY_TAG_MAGIC)) == LEGACY_TAG_MAGIC:
                logger.debug(f"ID3v1 tag found at tail of {path}")
                return LegacyTagLocation.TAIL
    except OSError as e:
        raise LegacyTagError(f"failed to check '{path}' for ID3v1: {e}", path) from e

    return LegacyTagLocation.NONE

def _copy_without_tag(src, dst, location: LegacyTagLocation, size: int) -> int:
    """Stream src into dst leaving out the 128 legacy bytes; returns bytes written."""
    written = 0

    if location is LegacyTagLocation.HEAD:
        src.seek(LEGACY_TAG_SIZE)
        for chunk in iter(lambda: src.read(Config.CHUNK_SIZE), b""):
            dst.write(chunk)
            written += len(chunk)
        return written

    boundary = size - LEGACY_TAG_SIZE
    offset = 0
    while offset < boundary:
        chunk = src.read(Config.CHUNK_SIZE)
        if not chunk:
            raise OSError(f"unexpected end of file at offset {offset} of {size}")
        offset += len(chunk)
        # The chunk straddling the boundary loses its overlap
        if offset > boundary:
            chunk = chunk[:len(chunk) - (offset - boundary)]
        dst.write(chunk)
        written += len(chunk)
    return written

def remove(path: Union[str, Path], location: LegacyTagLocation) -> None:
    """
    Physically remove the ID3v1 block found at location.

    The remaining bytes are streamed into "<path>-id3v1", which replaces the
    original only after the whole copy succeeded. On any failure the
    temporary file is discarded and the original is left untouched.

    Raises:
        LegacyTagError: On any read, seek, write or rename failure
    """
    if location is LegacyTagLocation.NONE:
        return

    path = Path(path)
    tmp_path = Path(str(path) + TEMP_SUFFIX)
    logger.info(f"Removing ID3v1 from {path}")

    try:
        with open(path, 'rb') as src:
            size = os.fstat(src.fileno()).st_size
            if size < LEGACY_TAG_SIZE:
                raise OSError(f"file too small for an ID3v1 tag ({size} bytes)")
            with open(tmp_path, 'wb') as dst:
                written = _copy_without_tag(src, dst, location, size)
        if written != size - LEGACY_TAG_SIZE:
            raise OSError(f"short copy: wrote {written} of {size - LEGACY_TAG_SIZE} bytes")
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        raise LegacyTagError(f"failed to remove ID3v1 from '{path}': {e}", path) from e
