"""
Test Configuration and Fixtures
"""

from __future__ import annotations

import copy

import fitz
import pytest


def _question(index: int, correct_choice_id: str = "c3") -> dict:
    return {
        "question": f"Question {index}: which organelle performs photosynthesis?",
        "choices": [
            {"id": f"c{n}", "label": f"Option {n} of question {index}"}
            for n in range(1, 6)
        ],
        "correct_choice_id": correct_choice_id,
        "hint": f"Hint for question {index}",
        "explanation": f"Explanation for question {index}",
    }


@pytest.fixture
def make_lesson_plan():
    """Factory for raw lesson plan dicts with n questions."""

    def _make(n_questions: int = 3, correct_choice_id: str = "c3") -> dict:
        return copy.deepcopy({
            "lesson": {
                "title": "Plant Biology",
                "source": "biology.pdf",
                "description": "Basics of photosynthesis",
            },
            "questions": [
                _question(i, correct_choice_id)
                for i in range(1, n_questions + 1)
            ],
        })

    return _make


@pytest.fixture
def lesson_plan_dict(make_lesson_plan):
    return make_lesson_plan()


@pytest.fixture
def make_pdf():
    """Factory building in-memory PDFs with one text string per page."""

    def _make(pages: list[str], metadata: dict | None = None) -> bytes:
        doc = fitz.open()
        for page_text in pages:
            page = doc.new_page()
            if page_text:
                page.insert_text((72, 72), page_text, fontsize=12)
        if metadata:
            doc.set_metadata(metadata)
        data = doc.tobytes()
        doc.close()
        return data

    return _make
