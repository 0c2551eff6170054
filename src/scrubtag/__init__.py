"""scrubtag – ID3 tag hygiene for MP3 collections."""

__version__ = "0.1.0"

from .core import TagDocument, ScrubtagError, FormatError, LegacyTagError, SaveError, managed_document
from .utils import Config, load_word_list
from .words import scrub
from .guess import MetaCandidate, infer, parse_enum, read_meta
from .frames import FrameAdapter, FrameKind
from .legacy import LegacyTagLocation
from .operations import (
    clean,
    enhance,
    ungain,
    check_for_cover,
    add_cover,
    strip_legacy,
    locate_legacy_tag,
    remove_legacy_tag
)
from .processor import process_file, process_files, build_task, collect_files_generator
from .batch import process_batch, clean_files

__all__ = [
    "TagDocument",
    "ScrubtagError",
    "FormatError",
    "LegacyTagError",
    "SaveError",
    "managed_document",
    "Config",
    "load_word_list",
    "scrub",
    "MetaCandidate",
    "infer",
    "parse_enum",
    "read_meta",
    "FrameAdapter",
    "FrameKind",
    "LegacyTagLocation",
    "clean",
    "enhance",
    "ungain",
    "check_for_cover",
    "add_cover",
    "strip_legacy",
    "locate_legacy_tag",
    "remove_legacy_tag",
    "process_file",
    "process_files",
    "build_task",
    "collect_files_generator",
    "process_batch",
    "clean_files"
]
