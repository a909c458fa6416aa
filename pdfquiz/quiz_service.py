"""
Quiz Service
============
Sequences quiz generation:

    source text → lesson-generation agent → strict validation → widget state

Every stage failure surfaces as a QuizGenerationFailed (or subclass) whose
user message is generic; the detailed cause is logged. No retries are made
here.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import EmptyGenerationResult, InputRejected, QuizGenerationFailed
from .lesson_validator import validate_lesson_plan
from .models import QuizResult, QuizWidget
from .quiz_agent import LessonGenerator
from .widget_projector import project_lesson_plan

logger = logging.getLogger(__name__)


def _is_empty_output(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, (str, bytes, bytearray)):
        return not raw.strip()
    return False


def build_quiz_result(raw_lesson_plan: Any) -> QuizResult:
    """
    Validate an already generated lesson plan and project its widget state.

    Raises:
        SchemaViolation: If the plan fails strict validation.
        ProjectionError: If the projected widget state is malformed.
    """
    lesson_plan = validate_lesson_plan(raw_lesson_plan)
    widget_state = project_lesson_plan(lesson_plan)
    return QuizResult(lesson_plan=lesson_plan, widget=QuizWidget(data=widget_state))


class QuizService:
    """Generates a quiz from text with an injected lesson generator."""

    def __init__(self, generator: LessonGenerator):
        self.generator = generator

    def generate(self, text: str) -> QuizResult:
        """
        Generate, validate and project a quiz for the given text.

        Raises:
            InputRejected: If the text is empty.
            EmptyGenerationResult: If the agent produced no output.
            SchemaViolation: If the agent output fails validation.
            QuizGenerationFailed: If the agent call itself failed.
        """
        if not text or not text.strip():
            raise InputRejected("Quiz generation requires non-empty text.")

        logger.info(f"Generating quiz from {len(text)} characters of text")

        try:
            raw_lesson_plan = self.generator.generate(text)
        except Exception as e:
            logger.exception(f"Lesson generation failed: {e}")
            raise QuizGenerationFailed(f"Lesson generation failed: {e}") from e

        if _is_empty_output(raw_lesson_plan):
            logger.error("Quiz agent returned no output")
            raise EmptyGenerationResult()

        result = build_quiz_result(raw_lesson_plan)
        logger.info(
            f"Quiz generated: {len(result.lesson_plan.questions)} questions"
        )
        return result
