"""
Lesson Plan Validator
=====================
Strict validation of lesson plans produced by the generation agent.

The agent is non-deterministic, so nothing is repaired here: wrong types,
missing or unknown fields and choice counts other than five are rejected.
Full error detail goes to the log; callers get a SchemaViolation.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .errors import SchemaViolation
from .models import LessonPlan

logger = logging.getLogger(__name__)


def validate_lesson_plan(raw: Any) -> LessonPlan:
    """
    Validate a raw lesson plan against the strict LessonPlan schema.

    Args:
        raw: A mapping, a LessonPlan instance, or a JSON document
            (str/bytes).

    Returns:
        The validated LessonPlan.

    Raises:
        SchemaViolation: If the input does not conform to the schema.
    """
    if isinstance(raw, LessonPlan):
        raw = raw.model_dump()

    try:
        if isinstance(raw, (str, bytes, bytearray)):
            plan = LessonPlan.model_validate_json(raw)
        else:
            plan = LessonPlan.model_validate(raw)
    except ValidationError as e:
        errors = e.errors(
            include_url=False, include_context=False, include_input=False
        )
        logger.error(
            f"Lesson plan failed schema validation "
            f"({e.error_count()} errors): {e}"
        )
        raise SchemaViolation(
            f"Lesson plan failed schema validation: "
            f"{e.error_count()} error(s)",
            errors=errors,
        ) from e

    logger.debug(f"Validated lesson plan with {len(plan.questions)} questions")
    return plan


def format_errors(errors: list[dict[str, Any]]) -> list[str]:
    """Render pydantic error entries as 'path: message' lines."""
    lines = []
    for error in errors:
        path = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        lines.append(f"{path}: {error.get('msg', 'invalid')}")
    return lines
