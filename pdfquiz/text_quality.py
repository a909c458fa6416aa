"""
Text Quality
============
Decides whether embedded PDF text is usable or OCR has to run.

Embedded-text extraction can "succeed" on scanned PDFs while yielding little
more than a stray font descriptor, so the check is a floor on the number of
non-whitespace characters.
"""

from __future__ import annotations

import re

MIN_EMBEDDED_TEXT_CHARACTERS = 25

# \s does not cover the byte order mark
_WHITESPACE = re.compile(r"[\s\ufeff]+")


def compact_length(text: str) -> int:
    """Number of characters left after removing all whitespace."""
    return len(_WHITESPACE.sub("", text or ""))


def needs_ocr(text: str) -> bool:
    """True when the text is too short to be real document content."""
    return compact_length(text) < MIN_EMBEDDED_TEXT_CHARACTERS
