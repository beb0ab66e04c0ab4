"""
Transcript text cleanup and the meaningful-text filter.

A segment of silence usually transcribes to nothing, or to stray
punctuation ("...", "-"). Such text never gets a chunk id.
"""

import re
import string

_WHITESPACE_RUN = re.compile(r"\s{2,}")
_ASCII_PUNCTUATION = set(string.punctuation)


def clean_transcript(raw: str) -> str:
    """Drop NUL, trim, turn CR/LF into spaces, collapse whitespace runs"""
    text = (raw or "").replace("\0", "").strip()
    text = text.replace("\r", " ").replace("\n", " ")
    return _WHITESPACE_RUN.sub(" ", text).strip()


def has_meaningful_text(text: str) -> bool:
    """
    True when text carries something worth showing.

    Kept: any ASCII letter or digit, any non-ASCII character (CJK, emoji,
    accented letters), any other ASCII symbol that is not whitespace or
    punctuation. Rejected: empty text and text made only of whitespace and
    ASCII punctuation.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return False

    for ch in trimmed:
        if not ch.isascii():
            return True
        if ch.isalnum():
            return True
        if not ch.isspace() and ch not in _ASCII_PUNCTUATION:
            return True
    return False
