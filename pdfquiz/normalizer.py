"""
Text Normalizer
===============
Splits a flat text blob into ordered sections suitable for independent
display.

Input conventions:
    - Pages are separated by form feeds (the extractor and OCR provider
      insert one between consecutive pages).
    - Paragraphs are separated by blank lines.

A heading-like line opens a new section. Untitled text is split at page
boundaries, and any section is split at a paragraph boundary once it grows
past ``max_section_chars``. Only whitespace is changed: joining the section
bodies in order gives back the input text modulo whitespace.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import NormalizedSection

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"
DEFAULT_MAX_SECTION_CHARS = 4000

MAX_HEADING_CHARS = 100
MAX_HEADING_WORDS = 12

# ─── Heading Patterns ─────────────────────────────────────────────────────────

# "1 Introduction", "2.3 Scope", "4. Results", "IV. Discussion"
NUMBERED_HEADING_PATTERN = re.compile(
    r"^(?:\d{1,2}(?:\.\d{1,2})*\.?|[IVXLC]{1,6}\.)\s+[A-Z]"
)

# "Chapter 3", "Section 2: Methods", "Appendix A"
KEYWORD_HEADING_PATTERN = re.compile(
    r"^(?:chapter|section|part|unit|lesson|module|appendix)\s+[\w.-]+",
    re.IGNORECASE,
)

# "# Title", "### Subsection"
MARKDOWN_HEADING_PATTERN = re.compile(r"^#{1,6}\s+\S")

# Lines ending like a sentence or clause are body text
SENTENCE_END_PATTERN = re.compile(r"[.,;!?]$")

_INLINE_WHITESPACE = re.compile(r"[ \t\v\u00a0]+")


def clean_line(line: str) -> str:
    """Collapse runs of inline whitespace and trim the line."""
    return _INLINE_WHITESPACE.sub(" ", line).strip()


def is_heading(line: str) -> bool:
    """Heuristic check whether a cleaned line reads as a section heading."""
    if not line or len(line) > MAX_HEADING_CHARS:
        return False
    if len(line.split()) > MAX_HEADING_WORDS:
        return False
    if MARKDOWN_HEADING_PATTERN.match(line):
        return True
    if SENTENCE_END_PATTERN.search(line):
        return False
    if NUMBERED_HEADING_PATTERN.match(line) or KEYWORD_HEADING_PATTERN.match(line):
        return True

    # Short ALL-CAPS lines ("INTRODUCTION", "KEY TERMS")
    letters = [c for c in line if c.isalpha()]
    return len(letters) >= 3 and line == line.upper()


def split_paragraphs(page_text: str) -> list[list[str]]:
    """Group the non-blank cleaned lines of a page into paragraphs."""
    paragraphs: list[list[str]] = []
    current: list[str] = []

    for raw_line in page_text.split("\n"):
        line = clean_line(raw_line)
        if line:
            current.append(line)
        elif current:
            paragraphs.append(current)
            current = []

    if current:
        paragraphs.append(current)
    return paragraphs


class TextNormalizer:
    """
    Builds NormalizedSection sequences from extracted or OCR text.

    Not thread-safe: keeps per-call state while building sections.
    """

    def __init__(self, max_section_chars: int = DEFAULT_MAX_SECTION_CHARS):
        self.max_section_chars = max_section_chars
        self._reset()

    def _reset(self):
        self._sections: list[NormalizedSection] = []
        self._heading: Optional[str] = None
        self._paragraphs: list[str] = []
        self._page_start = 1
        self._page_end = 1

    def normalize(self, text: str) -> list[NormalizedSection]:
        """
        Partition text into ordered sections.

        Args:
            text: Raw text, pages separated by form feeds.

        Returns:
            Sections in reading order. Empty or whitespace-only input gives
            an empty list.
        """
        self._reset()
        if not text or not text.strip():
            return []

        text = text.replace("\r\n", "\n").replace("\r", "\n")

        for page_number, page_text in enumerate(
            text.split(PAGE_BREAK), start=1
        ):
            # Titled sections run across pages; untitled ones stop here
            if self._heading is None:
                self._flush()

            for lines in split_paragraphs(page_text):
                if is_heading(lines[0]):
                    self._flush()
                    self._heading = lines[0]
                elif self._would_overflow(lines):
                    self._flush()
                self._append(lines, page_number)

        self._flush()
        sections = self._sections
        self._reset()

        logger.debug(f"Normalized text into {len(sections)} sections")
        return sections

    def _would_overflow(self, lines: list[str]) -> bool:
        if not self._paragraphs:
            return False
        current_size = sum(len(p) + 2 for p in self._paragraphs)
        added_size = sum(len(line) + 1 for line in lines)
        return current_size + added_size > self.max_section_chars

    def _append(self, lines: list[str], page_number: int):
        if not self._paragraphs:
            self._page_start = page_number
        self._paragraphs.append("\n".join(lines))
        self._page_end = page_number

    def _flush(self):
        if self._paragraphs:
            self._sections.append(NormalizedSection(
                order=len(self._sections),
                heading=self._heading,
                body="\n\n".join(self._paragraphs),
                page_start=self._page_start,
                page_end=self._page_end,
            ))
        self._heading = None
        self._paragraphs = []


def normalize_text(
    text: str,
    max_section_chars: int = DEFAULT_MAX_SECTION_CHARS,
) -> list[NormalizedSection]:
    """Convenience wrapper around TextNormalizer.normalize."""
    return TextNormalizer(max_section_chars).normalize(text)
