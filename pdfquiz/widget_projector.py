"""
Widget Projector
================
Deterministic projection of a validated LessonPlan into the initial state
of the step-by-step quiz widget.

Questions and choices get 1-based positional ids. The plan's string choice
ids are only used to resolve which position is correct; they are never
copied into the widget state.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .errors import ProjectionError
from .models import LessonPlan, LessonQuestion, WidgetState

logger = logging.getLogger(__name__)

HEADER_LABEL = "Quiz"
BADGE_LABEL = "PDF Generated"
START_LABEL = "Start"

# Used when a question's correct_choice_id matches none of its choices
FALLBACK_CORRECT_CHOICE_ID = 1


def choice_positions(question: LessonQuestion) -> dict[str, int]:
    """Map each source choice id to its 1-based position (first wins)."""
    positions: dict[str, int] = {}
    for position, choice in enumerate(question.choices, start=1):
        positions.setdefault(choice.id, position)
    return positions


def resolve_correct_choice_id(question: LessonQuestion) -> Optional[int]:
    """Position of the correct choice, or None when it does not resolve."""
    return choice_positions(question).get(question.correct_choice_id)


def unresolved_choice_questions(plan: LessonPlan) -> list[int]:
    """1-based ids of questions whose correct_choice_id matches no choice."""
    return [
        question_id
        for question_id, question in enumerate(plan.questions, start=1)
        if resolve_correct_choice_id(question) is None
    ]


def _project_question(question: LessonQuestion, question_id: int) -> dict:
    correct_choice_id = resolve_correct_choice_id(question)
    if correct_choice_id is None:
        logger.warning(
            f"Question {question_id}: correct_choice_id "
            f"{question.correct_choice_id!r} matches no choice "
            f"({[c.id for c in question.choices]}); "
            f"defaulting to choice {FALLBACK_CORRECT_CHOICE_ID}"
        )
        correct_choice_id = FALLBACK_CORRECT_CHOICE_ID

    return {
        "id": question_id,
        "question": question.question,
        "choices": [
            {"id": position, "label": choice.label}
            for position, choice in enumerate(question.choices, start=1)
        ],
        "hint": question.hint,
        "explanation": question.explanation,
        "correct_choice_id": correct_choice_id,
    }


def project_lesson_plan(plan: LessonPlan) -> WidgetState:
    """
    Build the initial widget state for a validated lesson plan.

    The assembled state is validated against the strict WidgetState schema
    before it is returned.

    Raises:
        ProjectionError: If the assembled state violates the widget schema.
    """
    questions = [
        _project_question(question, question_id)
        for question_id, question in enumerate(plan.questions, start=1)
    ]
    total = len(questions)

    state = {
        "lesson": {
            "title": plan.lesson.title,
            "source": plan.lesson.source,
            "description": plan.lesson.description,
            "questions": questions,
        },
        "mode": "intro",
        "current_page": 0,
        "progress": {"index": 0, "total": total},
        "header_label": HEADER_LABEL,
        "badge_label": BADGE_LABEL,
        "current_question": None,
        "option_list": [],
        "current_answer_value": "",
        "answers": [
            {
                "question_id": question["id"],
                "selected_choice_id": None,
                "is_correct": False,
                "attempted": False,
            }
            for question in questions
        ],
        "view_locked": False,
        "show_hint": False,
        "show_explanation": False,
        "controls": {
            "can_back": False,
            "can_next": True,
            "next_label": START_LABEL,
        },
        "score": {"correct": 0, "total": total},
    }

    try:
        widget_state = WidgetState.model_validate(state)
    except ValidationError as e:
        logger.error(f"Projected widget state failed validation: {e}")
        raise ProjectionError(
            f"Projected widget state is invalid: {e.error_count()} error(s)"
        ) from e

    logger.debug(f"Projected widget state with {total} questions")
    return widget_state
