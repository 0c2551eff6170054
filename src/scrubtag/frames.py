"""
One contract for the text-carrying ID3v2 frame variants: get_text, set_text, delete.
"""

import logging
from enum import Enum
from typing import List, Optional

from mutagen.id3 import COMM, TXXX, USLT, Frame, TextFrame

from .core import TagDocument
from .utils import printable

logger = logging.getLogger(__name__)

# Multi-valued frames expose their values joined by this separator
VALUE_SEPARATOR = '\x00'

class FrameKind(Enum):
    """Closed set of frame variants the adapter knows how to mutate."""
    PLAIN_TEXT = 'plain'
    USER_TEXT = 'user'
    COMMENT = 'comment'
    LYRICS = 'lyrics'

def classify(key: str, frame: Frame) -> Optional[FrameKind]:
    """Return the variant of a frame, or None when it carries no cleanable text."""
    if key == 'COMM' and isinstance(frame, COMM):
        return FrameKind.COMMENT
    if key == 'USLT' and isinstance(frame, USLT):
        return FrameKind.LYRICS
    if key == 'TXXX' and isinstance(frame, TXXX):
        return FrameKind.USER_TEXT
    # TIPL/TMCL and other paired frames have no text list
    if key.startswith('T') and isinstance(frame, TextFrame):
        return FrameKind.PLAIN_TEXT
    return None

def _split_values(value: str) -> List[str]:
    """Split joined text back into values, dropping the empty ones."""
    return [v for v in value.split(VALUE_SEPARATOR) if v.strip()]

def trim_values(value: str) -> str:
    """Strip whitespace and dangling separators off joined text."""
    return value.strip(VALUE_SEPARATOR + ' \t\r\n')

class FrameAdapter:
    """
    A frame of a TagDocument seen through a variant-independent interface.

    Plain text, comment and lyrics frames are singular per key and are
    replaced in place. User-defined text frames share the TXXX key and are
    told apart only by their description, so mutating one of them rebuilds
    the whole TXXX bucket.
    """

    def __init__(self, doc: TagDocument, key: str, frame: Frame, kind: FrameKind):
        self.doc = doc
        self.key = key
        self.frame = frame
        self.kind = kind

    @classmethod
    def wrap(cls, doc: TagDocument, key: str, frame: Frame) -> Optional['FrameAdapter']:
        """Adapter for a just-enumerated frame, None if the frame is not cleanable."""
        kind = classify(key, frame)
        if kind is None:
            return None
        return cls(doc, key, frame, kind)

    @property
    def description(self) -> str:
        """Description of TXXX/COMM/USLT frames, empty for plain text."""
        return getattr(self.frame, 'desc', '') or ''

    def get_text(self) -> str:
        """The displayed text we may need to clean."""
        if self.kind is FrameKind.LYRICS:
            return str(self.frame.text)
        return VALUE_SEPARATOR.join(str(v) for v in self.frame.text)

    def set_text(self, value: str) -> None:
        """Replace the text, keeping encoding, language and description."""
        f = self.frame
        if self.kind is FrameKind.PLAIN_TEXT:
            self.doc.add_frame(type(f)(encoding=f.encoding, text=_split_values(value)))
        elif self.kind is FrameKind.COMMENT:
            self.doc.add_frame(COMM(encoding=f.encoding, lang=f.lang, desc=f.desc,
                                    text=_split_values(value)))
        elif self.kind is FrameKind.LYRICS:
            self.doc.add_frame(USLT(encoding=f.encoding, lang=f.lang, desc=f.desc, text=value))
        else:
            replacement = TXXX(encoding=f.encoding, desc=f.desc, text=_split_values(value))
            self._rebuild_user_text(replacement)

    def delete(self) -> None:
        """Remove the frame from the document."""
        if self.kind is FrameKind.USER_TEXT:
            self._rebuild_user_text(None)
        else:
            self.doc.delete_frames(self.key)

    def _rebuild_user_text(self, replacement: Optional[TXXX]) -> None:
        """
        Read all TXXX frames, drop the key, re-add every sibling unchanged and
        the replacement (if any) in place of the frame with our description.

        Not atomic: the bucket is empty between delete and re-add.
        """
        frames = self.doc.get_frames(self.key)
        if not any(f.desc == self.frame.desc for f in frames):
            raise LookupError(
                f"no {self.key} frame with description {self.frame.desc!r} in {self.doc.path}"
            )

        self.doc.delete_frames(self.key)
        for f in frames:
            if f.desc != self.frame.desc:
                self.doc.add_frame(f)
            elif replacement is not None:
                self.doc.add_frame(replacement)

    def describe(self) -> str:
        """One log line with key, description, language and text."""
        parts = [self.key]
        if self.description:
            parts.append(self.description)
        lang = getattr(self.frame, 'lang', '')
        if lang:
            parts.append(lang)
        parts.append(printable(self.get_text()))
        return f"{': '.join(parts)} (encoding {int(self.frame.encoding)})"
