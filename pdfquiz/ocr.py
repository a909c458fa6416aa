"""
OCR Provider
============
OCR fallback for PDFs without a usable text layer.

The default provider renders each page through PyMuPDF's Tesseract
integration, so Tesseract must be installed on the host. Any failure is
raised as OcrUnavailable; the upload pipeline decides how to degrade.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import fitz  # PyMuPDF

from .errors import OcrUnavailable
from .models import OcrResult
from .normalizer import PAGE_BREAK

logger = logging.getLogger(__name__)


class OcrProvider(Protocol):
    """Anything that can turn PDF bytes into text."""

    provider_name: str

    def run(self, data: bytes) -> OcrResult:
        ...


class TesseractOcrProvider:
    """OCR through PyMuPDF + Tesseract."""

    provider_name = "tesseract"

    def __init__(
        self,
        language: str = "eng",
        dpi: int = 300,
        tessdata: Optional[str] = None,
    ):
        self.language = language
        self.dpi = dpi
        self.tessdata = tessdata

    def run(self, data: bytes) -> OcrResult:
        """
        OCR every page of the PDF.

        Raises:
            OcrUnavailable: If the PDF cannot be opened or Tesseract fails.
        """
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                page_count = doc.page_count
                pages = []
                for page in doc:
                    textpage = page.get_textpage_ocr(
                        language=self.language,
                        dpi=self.dpi,
                        full=True,
                        tessdata=self.tessdata,
                    )
                    pages.append(
                        page.get_text("text", textpage=textpage).strip()
                    )
        except Exception as e:
            raise OcrUnavailable(f"Tesseract OCR failed: {e}") from e

        text = PAGE_BREAK.join(pages)
        if not text.strip():
            text = ""

        logger.info(
            f"OCR recognized {len(text)} characters on {page_count} pages"
        )
        return OcrResult(text=text, page_count=page_count)
