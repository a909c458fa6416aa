"""
Quiz Engine
===========
Wires the extractor, OCR provider and lesson generator into the upload and
quiz pipelines.

Usage:
    engine = QuizEngine(EngineConfig.from_env())
    upload = engine.process_upload(pdf_bytes, filename="notes.pdf")
    quiz = engine.generate_quiz(upload.text)

Architecture:
    PDF → PdfTextExtractor → (TesseractOcrProvider) → TextNormalizer →
    ProcessedUpload;  text → OpenAIQuizAgent → validator → projector →
    QuizResult
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import ProjectionError, QuizGenerationFailed
from .extractor import PdfTextExtractor
from .models import IngestResult, ProcessedUpload, QuizResult
from .normalizer import DEFAULT_MAX_SECTION_CHARS
from .ocr import OcrProvider, TesseractOcrProvider
from .quiz_agent import (
    DEFAULT_QUESTION_COUNT,
    DEFAULT_QUIZ_MODEL,
    DEFAULT_TEMPERATURE,
    LessonGenerator,
    OpenAIQuizAgent,
)
from .quiz_service import QuizService, build_quiz_result
from .upload_service import UploadService

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# --- env helpers ---
def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    v = env.get(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, str(default)))
    except ValueError:
        return default


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(env.get(name, str(default)))
    except ValueError:
        return default


@dataclass
class EngineConfig:
    """Configuration for the quiz engine."""

    # Lesson generation
    openai_api_key: Optional[str] = None
    quiz_model: str = DEFAULT_QUIZ_MODEL
    quiz_temperature: float = DEFAULT_TEMPERATURE
    quiz_question_count: int = DEFAULT_QUESTION_COUNT

    # OCR fallback
    ocr_enabled: bool = True
    ocr_language: str = "eng"
    ocr_dpi: int = 300
    tessdata: Optional[str] = None

    # Normalization
    max_section_chars: int = DEFAULT_MAX_SECTION_CHARS

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            quiz_model=env.get("PDFQUIZ_MODEL", DEFAULT_QUIZ_MODEL),
            quiz_temperature=_get_float(
                env, "PDFQUIZ_TEMPERATURE", DEFAULT_TEMPERATURE
            ),
            quiz_question_count=_get_int(
                env, "PDFQUIZ_QUESTION_COUNT", DEFAULT_QUESTION_COUNT
            ),
            ocr_enabled=_get_bool(env, "PDFQUIZ_OCR_ENABLED", True),
            ocr_language=env.get("PDFQUIZ_OCR_LANGUAGE", "eng"),
            ocr_dpi=_get_int(env, "PDFQUIZ_OCR_DPI", 300),
            tessdata=env.get("TESSDATA_PREFIX") or None,
            max_section_chars=_get_int(
                env, "PDFQUIZ_MAX_SECTION_CHARS", DEFAULT_MAX_SECTION_CHARS
            ),
            log_level=env.get("PDFQUIZ_LOG_LEVEL", "INFO"),
            log_file=env.get("PDFQUIZ_LOG_FILE") or None,
        )


class QuizEngine:
    """
    Entry point for the upload and quiz pipelines.

    Collaborators default to the production implementations built from the
    config; pass them explicitly to substitute fakes.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        extractor: Optional[PdfTextExtractor] = None,
        ocr_provider: Optional[OcrProvider] = None,
        generator: Optional[LessonGenerator] = None,
    ):
        self.config = config or EngineConfig()
        self._setup_logging()

        if ocr_provider is None and self.config.ocr_enabled:
            ocr_provider = TesseractOcrProvider(
                language=self.config.ocr_language,
                dpi=self.config.ocr_dpi,
                tessdata=self.config.tessdata,
            )
        if generator is None:
            generator = OpenAIQuizAgent(
                api_key=self.config.openai_api_key,
                model=self.config.quiz_model,
                temperature=self.config.quiz_temperature,
                question_count=self.config.quiz_question_count,
            )

        self.upload_service = UploadService(
            extractor=extractor or PdfTextExtractor(),
            ocr_provider=ocr_provider,
            max_section_chars=self.config.max_section_chars,
        )
        self.quiz_service = QuizService(generator)

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # Configure root logger for the pdfquiz package
        package_logger = logging.getLogger("pdfquiz")
        package_logger.setLevel(log_level)

        # Console handler, unless the root logger already prints our records
        if not package_logger.handlers and not logging.getLogger().handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file).resolve()
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path
                for h in package_logger.handlers
            )
            if not already_attached:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
                )
                package_logger.addHandler(file_handler)

    def process_upload(
        self,
        data: bytes,
        filename: str = "",
        content_type: str = "",
    ) -> ProcessedUpload:
        """Extract, OCR if needed, and normalize an uploaded PDF."""
        return self.upload_service.process(data, filename, content_type)

    def generate_quiz(self, text: str) -> QuizResult:
        """Generate a quiz widget from document text."""
        return self.quiz_service.generate(text)

    def build_quiz(self, raw_lesson_plan: Any) -> QuizResult:
        """Validate and project a lesson plan that was generated elsewhere."""
        return build_quiz_result(raw_lesson_plan)

    def ingest(
        self,
        data: bytes,
        filename: str = "",
        content_type: str = "",
    ) -> IngestResult:
        """
        Process an upload and, when it yielded usable text, generate a quiz.

        A quiz failure does not discard the upload result: the generic
        failure message is returned alongside it.

        Raises:
            InputRejected: If the upload is not a PDF.
            ExtractionFailed: If the upload cannot be read.
        """
        document_id = str(uuid.uuid4())
        upload = self.process_upload(data, filename, content_type)

        quiz = None
        quiz_error = None
        if upload.needs_ocr or not upload.text.strip():
            logger.info(
                f"Document {document_id}: no usable text, skipping quiz generation"
            )
        else:
            try:
                quiz = self.generate_quiz(upload.text)
            except (QuizGenerationFailed, ProjectionError) as e:
                logger.error(f"Document {document_id}: quiz generation failed: {e}")
                quiz_error = e.user_message

        return IngestResult(
            document_id=document_id,
            upload=upload,
            quiz=quiz,
            quiz_error=quiz_error,
        )
