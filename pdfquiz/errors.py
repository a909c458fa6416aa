"""
Pipeline Errors
===============
Exceptions raised by the upload and quiz pipelines.

Every error carries a ``user_message`` that is safe to hand to an end user.
The exception text itself may hold internal detail and is only logged.
"""

from __future__ import annotations

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    user_message = "Unable to process the request."

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class InputRejected(PipelineError):
    """The upload is not something the pipeline accepts (e.g. not a PDF)."""

    user_message = "Only PDF uploads are supported."

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        # The rejection reason is the user-facing text as well.
        super().__init__(detail, user_message or detail or None)


class ExtractionFailed(PipelineError):
    """The upload could not be read at all."""

    user_message = "Unable to process PDF."


class OcrUnavailable(PipelineError):
    """The OCR provider failed for this document."""

    user_message = "OCR fallback failed. Please try again later."


class QuizGenerationFailed(PipelineError):
    """Generic quiz generation failure surfaced to callers."""

    user_message = "Unable to generate quiz. Please try again."


class EmptyGenerationResult(QuizGenerationFailed):
    """The lesson-generation agent returned no output."""

    def __init__(self, detail: str = "Quiz agent returned no output"):
        super().__init__(detail)


class SchemaViolation(QuizGenerationFailed):
    """A lesson plan did not conform to the strict lesson-plan schema."""

    def __init__(self, detail: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(detail)
        self.errors = errors or []


class ProjectionError(PipelineError):
    """A projected widget state failed its own schema check."""

    user_message = "Unable to generate quiz. Please try again."
