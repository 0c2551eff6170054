"""
Forbidden word scrubbing for tag text.
"""

from typing import Sequence, Tuple

def scrub(text: str, forbidden_words: Sequence[str]) -> Tuple[bool, str]:
    """
    Cut contamination off a tag value.

    Promotional additions usually trail the useful data, so everything from
    the leftmost occurrence of any forbidden word on is dropped and the rest
    is stripped of surrounding whitespace.

    Args:
        text: Value to clean
        forbidden_words: Literal substrings to look for (empty entries are ignored)

    Returns:
        (changed, result) - result is text itself when nothing was found

    Examples:
        >>> scrub("Artist - Title PROMO-TAG extra", ["PROMO-TAG"])
        (True, 'Artist - Title')
        >>> scrub("Clean Title", ["PROMO"])
        (False, 'Clean Title')
    """
    # Offsets are code point indices, str.find and slicing agree on them
    smallest = -1
    for word in forbidden_words:
        if not word:
            continue
        index = text.find(word)
        if index != -1 and (smallest == -1 or index < smallest):
            smallest = index

    if smallest == -1:
        return False, text

    return True, text[:smallest].strip()
