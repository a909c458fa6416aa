"""
Text Extractor
==============
Extracts embedded text and document metadata from PDF bytes using
PyMuPDF (fitz).

Fail-soft: a PDF that cannot be parsed yields empty text and minimal
metadata instead of an exception, which sends the upload down the OCR path.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import fitz  # PyMuPDF

from .models import DocumentMetadata, ParsedDocument
from .normalizer import PAGE_BREAK

logger = logging.getLogger(__name__)

# Quick heuristics to skip parsing when the document is clearly image-only
SAMPLE_BYTES = 32 * 1024
MIN_TEXTUAL_RATIO = 0.015
TEXT_MARKERS = ("/Font", "/ToUnicode", "BT", "Tf")

_ALNUM_RUN = re.compile(r"[A-Za-z0-9]{3,}")

# "D:20240131093000+01'00'", "D:20240131", "20240131093000Z"
PDF_DATE_PATTERN = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:(Z)|([+-])(\d{2})'?(\d{2})?'?)?"
)


def is_likely_image_only(data: bytes) -> bool:
    """
    Guess from the first bytes whether a PDF carries no text layer.

    Scanned PDFs are mostly compressed image streams: few alphanumeric runs
    and no font or text-object operators.
    """
    sample_length = min(len(data), SAMPLE_BYTES)
    if sample_length == 0:
        return True

    sample = bytes(data[:sample_length]).decode("latin-1")
    alnum_count = sum(len(match) for match in _ALNUM_RUN.findall(sample))
    ratio = alnum_count / sample_length
    has_text_markers = any(marker in sample for marker in TEXT_MARKERS)

    return ratio < MIN_TEXTUAL_RATIO and not has_text_markers


def parse_pdf_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a PDF date string. Returns None when it cannot be parsed."""
    if not value:
        return None

    match = PDF_DATE_PATTERN.match(value.strip())
    if not match:
        return None

    year, month, day, hour, minute, second, zulu, sign, tz_h, tz_m = (
        match.groups()
    )
    try:
        tzinfo = None
        if zulu:
            tzinfo = timezone.utc
        elif sign:
            offset = timedelta(hours=int(tz_h), minutes=int(tz_m or 0))
            tzinfo = timezone(offset if sign == "+" else -offset)

        return datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        return None


class PdfTextExtractor:
    """
    Reads the embedded text layer of a PDF.

    Page texts are joined with form feeds so downstream normalization can
    track page numbers.
    """

    def extract(self, data: bytes) -> ParsedDocument:
        """
        Extract text and metadata from PDF bytes.

        Args:
            data: Raw PDF file content.

        Returns:
            ParsedDocument. Text is empty when the PDF looks image-only or
            cannot be parsed.
        """
        if is_likely_image_only(data):
            logger.info("PDF looks image-only, skipping text extraction")
            return ParsedDocument()

        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.needs_pass:
                    logger.warning("PDF is password protected, no text extracted")
                    return ParsedDocument(
                        metadata=DocumentMetadata(page_count=doc.page_count)
                    )

                metadata = self._build_metadata(doc)
                pages = [page.get_text("text").strip() for page in doc]
        except Exception as e:
            logger.error(f"Failed to extract PDF text: {e}")
            return ParsedDocument()

        text = PAGE_BREAK.join(pages)
        if not text.strip():
            text = ""

        logger.info(
            f"Extracted {len(text)} characters from "
            f"{metadata.page_count} pages"
        )
        return ParsedDocument(text=text, metadata=metadata)

    def _build_metadata(self, doc: fitz.Document) -> DocumentMetadata:
        """Map the PDF information dictionary onto DocumentMetadata."""
        info = doc.metadata or {}

        def _field(key: str) -> Optional[str]:
            value = info.get(key)
            return (value.strip() or None) if isinstance(value, str) else None

        return DocumentMetadata(
            page_count=doc.page_count,
            title=_field("title"),
            author=_field("author"),
            creator=_field("creator"),
            producer=_field("producer"),
            subject=_field("subject"),
            keywords=_field("keywords"),
            creation_date=parse_pdf_date(info.get("creationDate")),
            modification_date=parse_pdf_date(info.get("modDate")),
        )
