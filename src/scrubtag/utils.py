"""
Utility functions and configuration for scrubtag.
"""

import os
import sys
import logging
import hashlib
from pathlib import Path
from typing import Tuple, Union
from logging.handlers import RotatingFileHandler
from threading import Lock

# ---------- Constants ----------
EXIT_CODE_SUCCESS = 0
EXIT_CODE_ERROR = 1
EXIT_CODE_USAGE = 2
EXIT_CODE_NO_FILES = 3
EXIT_CODE_PERMISSION = 4
EXIT_CODE_DISK_FULL = 5
EXIT_CODE_INTERRUPTED = 130

# ---------- Configuration ----------
class Config:
    """Configuration management with validation."""
    DEFAULT_ENCODING = 'utf-8'
    CHUNK_SIZE = 128 * 1024  # 128KB for streamed rewrites

    # Multithreading configuration
    # Default: CPU count + 4, max 32 since the work is almost entirely IO-bound
    MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)
    MIN_FILES_FOR_PARALLEL = 10
    PROGRESS_LOCK = Lock()

    FORBIDDEN_WORDS_PATH = '/usr/local/share/scrubtag/forbidden.txt'
    LOG_DIR = 'logs'

    # Parent directory names containing any of these are never taken as album names
    ALBUM_DENYLIST: Tuple[str, ...] = ('MP3ADD', 'Downloads', 'tmp.')

    # TXXX descriptions written by ReplayGain / MP3Gain style tools
    GAIN_DESCRIPTIONS: Tuple[str, ...] = (
        'replaygain_album_gain',
        'replaygain_album_peak',
        'replaygain_reference_loudness',
        'replaygain_track_gain',
        'replaygain_track_peak',
        'rgain:track',
        'rgain:album',
        'MP3GAIN_ALBUM_MINMAX',
        'MP3GAIN_MINMAX',
        'MP3GAIN_UNDO',
    )

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        if cls.CHUNK_SIZE <= 0:
            raise ValueError("CHUNK_SIZE must be positive")
        if cls.MAX_WORKERS <= 0:
            raise ValueError("MAX_WORKERS must be positive")
        if cls.MIN_FILES_FOR_PARALLEL <= 0:
            raise ValueError("MIN_FILES_FOR_PARALLEL must be positive")
        if not cls.FORBIDDEN_WORDS_PATH:
            raise ValueError("FORBIDDEN_WORDS_PATH cannot be empty")
        if any(not marker for marker in cls.ALBUM_DENYLIST):
            raise ValueError("ALBUM_DENYLIST cannot contain empty markers")

    @classmethod
    def load_from_env(cls) -> None:
        """Load configuration from environment variables, updating class attributes."""
        if os.getenv('SCRUBTAG_CHUNK_SIZE'):
            cls.CHUNK_SIZE = int(os.getenv('SCRUBTAG_CHUNK_SIZE'))
        if os.getenv('SCRUBTAG_MAX_WORKERS'):
            cls.MAX_WORKERS = int(os.getenv('SCRUBTAG_MAX_WORKERS'))
        if os.getenv('SCRUBTAG_MIN_PARALLEL'):
            cls.MIN_FILES_FOR_PARALLEL = int(os.getenv('SCRUBTAG_MIN_PARALLEL'))
        if os.getenv('SCRUBTAG_FORBIDDEN'):
            cls.FORBIDDEN_WORDS_PATH = os.getenv('SCRUBTAG_FORBIDDEN')
        if os.getenv('SCRUBTAG_LOG_DIR'):
            cls.LOG_DIR = os.getenv('SCRUBTAG_LOG_DIR')
        if os.getenv('SCRUBTAG_ALBUM_DENYLIST'):
            cls.ALBUM_DENYLIST = tuple(
                m for m in os.getenv('SCRUBTAG_ALBUM_DENYLIST').split(',') if m
            )
        cls.validate()

# Thread-safe output helpers
def print_progress_safe(message: str = "", **kwargs) -> None:
    """Thread-safe print function for progress updates."""
    with Config.PROGRESS_LOCK:
        print(message, **kwargs)

# ---------- Logging Setup ----------
def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rotation and proper formatting."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / 'scrubtag.log',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            file_handler
        ]
    )

# ---------- Word List ----------
def load_word_list(path: Union[str, Path]) -> Tuple[str, ...]:
    """
    Load the forbidden word list: one literal word or phrase per line.

    Blank lines are dropped, an empty entry would match every string.
    """
    with open(path, 'r', encoding=Config.DEFAULT_ENCODING) as f:
        lines = [line.rstrip('\r\n') for line in f]
    return tuple(line for line in lines if line)

# ---------- Small Helpers ----------
def printable(text: str) -> str:
    """Render multi-value frame text (NUL separated) for display."""
    return text.replace('\x00', '; ')

def get_file_hash(file_path: Path) -> str:
    """Calculate file hash for verification."""
    hasher = hashlib.sha256()
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(Config.CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()
