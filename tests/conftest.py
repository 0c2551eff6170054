"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from mutagen.id3 import ID3

from scrubtag.utils import Config

# ---------- Constants ----------

# Fake MPEG frame sync followed by a byte ramp that never spells "TAG"
AUDIO_PAYLOAD = b'\xFF\xFB\x90\x00' + bytes(range(256)) * 8

# A complete 128-byte ID3v1 block
LEGACY_BLOCK = b'TAG' + b'Old Title'.ljust(30, b'\x00') + b'\x00' * 95

FORBIDDEN_WORDS = ('www.promo.example', 'PROMO-TAG', 'Downloaded from')

# Config attributes tests (and the CLI) may change
_CONFIG_ATTRS = (
    'CHUNK_SIZE', 'MAX_WORKERS', 'MIN_FILES_FOR_PARALLEL',
    'FORBIDDEN_WORDS_PATH', 'LOG_DIR', 'ALBUM_DENYLIST', 'GAIN_DESCRIPTIONS',
)

# ---------- Helper Functions ----------

def make_mp3(path: Path, frames=(), version: int = 4, payload: bytes = AUDIO_PAYLOAD) -> Path:
    """Write a fake MP3 file, with an ID3v2 tag holding the given frames if any."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    if frames:
        tags = ID3()
        for frame in frames:
            tags.add(frame)
        if version == 3:
            tags.update_to_v23()
        tags.save(str(path), v2_version=version)
    return path

def append_legacy_tag(path: Path) -> None:
    """Append an ID3v1 block to the end of the file."""
    with open(path, 'ab') as f:
        f.write(LEGACY_BLOCK)

def prepend_legacy_tag(path: Path) -> None:
    """Put an ID3v1 block in front of the file."""
    path.write_bytes(LEGACY_BLOCK + path.read_bytes())

# ---------- Fixtures ----------

@pytest.fixture(autouse=True)
def restore_config():
    """Every test starts and ends with the same Config."""
    saved = {name: getattr(Config, name) for name in _CONFIG_ATTRS}
    yield
    for name, value in saved.items():
        setattr(Config, name, value)

@pytest.fixture
def forbidden_words():
    return FORBIDDEN_WORDS

@pytest.fixture
def word_file(tmp_path):
    """Forbidden words list on disk, one per line, with a blank line mixed in."""
    path = tmp_path / "forbidden.txt"
    path.write_text("\n".join(FORBIDDEN_WORDS[:2]) + "\n\n" + FORBIDDEN_WORDS[2] + "\n", encoding='utf-8')
    return path

@pytest.fixture
def mp3_factory(tmp_path):
    """Factory creating fake MP3 files below tmp_path."""
    def _make(name: str = "track.mp3", frames=(), version: int = 4, legacy: str = None) -> Path:
        path = make_mp3(tmp_path / name, frames, version)
        if legacy == 'tail':
            append_legacy_tag(path)
        elif legacy == 'head':
            prepend_legacy_tag(path)
        return path
    return _make

@pytest.fixture
def malformed_mp3(tmp_path):
    """File whose ID3v2 header announces an unsupported version."""
    path = tmp_path / "broken.mp3"
    path.write_bytes(b'ID3\x05\x00\x00\x00\x00\x00\x10' + AUDIO_PAYLOAD)
    return path

@pytest.fixture
def cover_png(tmp_path):
    path = tmp_path / "cover.png"
    path.write_bytes(b'\x89PNG\r\n\x1a\n' + b'\x00' * 64)
    return path
