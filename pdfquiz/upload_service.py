"""
Upload Service
==============
Sequences one PDF upload through the text pipeline:

    PDF bytes → embedded text + metadata → (OCR fallback) → sections

OCR problems never raise: they leave ``needs_ocr`` set and explain the
outcome in ``message``. Only non-PDF input and unreadable uploads raise.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import ExtractionFailed, InputRejected
from .extractor import PdfTextExtractor
from .models import OcrSummary, ProcessedUpload
from .normalizer import DEFAULT_MAX_SECTION_CHARS, normalize_text
from .ocr import OcrProvider
from .text_quality import needs_ocr

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

MESSAGE_OCR_REQUIRED = "Embedded text insufficient. OCR fallback required."
MESSAGE_OCR_DISABLED = "Embedded text insufficient and OCR is disabled."
MESSAGE_OCR_SUCCEEDED = "Text extracted via OCR."
MESSAGE_OCR_EMPTY = "OCR did not detect readable text."
MESSAGE_OCR_FAILED = "OCR fallback failed. Please try again later."


def is_pdf_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Accept by MIME type or by a .pdf file extension."""
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime == PDF_CONTENT_TYPE or (filename or "").lower().endswith(".pdf")


def assert_pdf(filename: Optional[str], content_type: Optional[str]):
    if not is_pdf_upload(filename, content_type):
        raise InputRejected("Only PDF uploads are supported.")


class UploadService:
    """
    Runs extraction, OCR fallback and normalization for one upload.

    Holds no per-request state; one instance can serve many requests.
    """

    def __init__(
        self,
        extractor: Optional[PdfTextExtractor] = None,
        ocr_provider: Optional[OcrProvider] = None,
        max_section_chars: int = DEFAULT_MAX_SECTION_CHARS,
    ):
        self.extractor = extractor or PdfTextExtractor()
        self.ocr_provider = ocr_provider
        self.max_section_chars = max_section_chars

    def process(
        self,
        data: bytes,
        filename: str = "",
        content_type: str = "",
    ) -> ProcessedUpload:
        """
        Process an uploaded PDF.

        Args:
            data: Raw file content.
            filename: Original file name, used for type detection.
            content_type: MIME type reported by the client.

        Raises:
            InputRejected: If the upload is not a PDF.
            ExtractionFailed: If the upload is empty or the extractor
                breaks its fail-soft contract.
        """
        assert_pdf(filename, content_type)
        if not data:
            raise ExtractionFailed(
                "Uploaded file is empty", user_message="Uploaded file is empty."
            )

        try:
            parsed = self.extractor.extract(data)
        except Exception as e:
            logger.error(f"Text extraction failed for {filename!r}: {e}")
            raise ExtractionFailed(f"Text extraction failed: {e}") from e

        text = parsed.text
        ocr_required = needs_ocr(text)
        message = MESSAGE_OCR_REQUIRED if ocr_required else None
        ocr_summary = None

        if ocr_required and self.ocr_provider is None:
            logger.info(f"{filename!r}: embedded text insufficient, OCR disabled")
            message = MESSAGE_OCR_DISABLED
        elif ocr_required:
            provider_name = self.ocr_provider.provider_name
            logger.info(
                f"{filename!r}: embedded text insufficient, "
                f"running OCR ({provider_name})"
            )
            try:
                ocr_result = self.ocr_provider.run(data)
                recognized = bool(ocr_result.text.strip())
                ocr_summary = OcrSummary(
                    provider=provider_name,
                    success=recognized,
                    page_count=ocr_result.page_count,
                )
                if recognized:
                    text = ocr_result.text
                    ocr_required = False
                    message = MESSAGE_OCR_SUCCEEDED
                else:
                    message = MESSAGE_OCR_EMPTY
            except Exception as e:
                logger.error(f"OCR fallback failed for {filename!r}: {e}")
                ocr_summary = OcrSummary(
                    provider=provider_name, success=False, page_count=0
                )
                message = MESSAGE_OCR_FAILED

        sections = normalize_text(text, self.max_section_chars)

        logger.info(
            f"Processed {filename!r}: {len(sections)} sections, "
            f"needs_ocr={ocr_required}"
        )
        return ProcessedUpload(
            metadata=parsed.metadata,
            sections=sections,
            text=text,
            needs_ocr=ocr_required,
            message=message,
            ocr=ocr_summary,
        )
