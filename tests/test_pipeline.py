"""
Test Suite for the Text and Quiz Pipelines
==========================================
Unit tests for OCR decision, normalization, lesson-plan validation and
widget projection.
"""

from __future__ import annotations

import json
import logging
import re

import pytest

from pdfquiz.errors import QuizGenerationFailed, SchemaViolation
from pdfquiz.lesson_validator import format_errors, validate_lesson_plan
from pdfquiz.models import (
    DocumentMetadata,
    LessonPlan,
    NormalizedSection,
    OcrSummary,
    ProcessedUpload,
    WidgetState,
)
from pdfquiz.normalizer import (
    TextNormalizer,
    clean_line,
    is_heading,
    normalize_text,
)
from pdfquiz.text_quality import (
    MIN_EMBEDDED_TEXT_CHARACTERS,
    compact_length,
    needs_ocr,
)
from pdfquiz.widget_projector import (
    BADGE_LABEL,
    HEADER_LABEL,
    choice_positions,
    project_lesson_plan,
    resolve_correct_choice_id,
    unresolved_choice_questions,
)


def _strip_ws(text: str) -> str:
    return re.sub(r"\s+", "", text)


# ═══════════════════════════════════════════════════════════════════════════════
# MODEL TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestUploadModels:
    """Test upload-side models and their camelCase serialization."""

    def test_processed_upload_serialization(self):
        upload = ProcessedUpload(
            metadata=DocumentMetadata(page_count=2, title="Notes"),
            sections=[NormalizedSection(order=0, body="Some text")],
            text="Some text",
            needs_ocr=False,
            ocr=OcrSummary(provider="tesseract", success=True, page_count=2),
        )
        data = upload.to_json_dict()
        assert data["needsOcr"] is False
        assert data["metadata"]["pageCount"] == 2
        assert data["ocr"]["pageCount"] == 2
        assert data["sections"][0]["pageStart"] == 1
        assert "message" not in data

    def test_accepts_field_names_and_aliases(self):
        by_name = DocumentMetadata(page_count=3)
        by_alias = DocumentMetadata.model_validate({"pageCount": 3})
        assert by_name == by_alias

    def test_section_rejects_empty_body(self):
        with pytest.raises(ValueError):
            NormalizedSection(order=0, body="")

    def test_section_word_count(self):
        section = NormalizedSection(order=0, body="one two\nthree")
        assert section.word_count == 3


# ═══════════════════════════════════════════════════════════════════════════════
# OCR DECISION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestNeedsOcr:
    """Test the whitespace-stripped character floor."""

    def test_threshold_value(self):
        assert MIN_EMBEDDED_TEXT_CHARACTERS == 25

    def test_empty_text(self):
        assert needs_ocr("") is True
        assert needs_ocr("   \n\t\f ") is True

    def test_exact_boundary(self):
        assert needs_ocr("a" * 24) is True
        assert needs_ocr("a" * 25) is False

    def test_byte_order_marks_are_whitespace(self):
        assert compact_length("\ufeff" * 30) == 0
        assert needs_ocr("\ufeff" * 30 + "short") is True

    def test_whitespace_is_not_counted(self):
        spaced = " \n".join("x" * 24)
        assert compact_length(spaced) == 24
        assert needs_ocr(spaced) is True
        assert needs_ocr(spaced + "\tz") is False

    def test_real_text(self):
        assert needs_ocr("Photosynthesis converts light energy into sugar.") is False


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALIZER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestHeadingDetection:
    """Test heading heuristics."""

    def test_headings(self):
        assert is_heading("INTRODUCTION")
        assert is_heading("KEY TERMS")
        assert is_heading("1 Introduction")
        assert is_heading("2.3 Scope and Limits")
        assert is_heading("4. Results")
        assert is_heading("IV. Discussion")
        assert is_heading("Chapter 3: Cell Biology")
        assert is_heading("Appendix A")
        assert is_heading("## Key Terms")

    def test_non_headings(self):
        assert not is_heading("")
        assert not is_heading("This is a normal sentence.")
        assert not is_heading("1. Open the file.")
        assert not is_heading("3 apples were on the table")
        assert not is_heading("introduction to plants")
        assert not is_heading("NOTE.")
        assert not is_heading("AB")
        assert not is_heading("X" * 101)
        assert not is_heading(" ".join(["WORD"] * 13))

    def test_clean_line(self):
        assert clean_line("  Hello \t\t world  ") == "Hello world"


class TestTextNormalizer:
    """Test sectioning of flat text."""

    def test_empty_input(self):
        assert normalize_text("") == []
        assert normalize_text("   \n\n\t  ") == []
        assert normalize_text("\f\f") == []

    def test_heading_sections(self):
        text = (
            "INTRODUCTION\n"
            "Photosynthesis converts light into energy.\n"
            "\n"
            "It happens in chloroplasts.\n"
            "\n"
            "1 Methods\n"
            "We measured oxygen output."
        )
        sections = normalize_text(text)

        assert len(sections) == 2
        assert sections[0].heading == "INTRODUCTION"
        assert sections[0].body == (
            "INTRODUCTION\n"
            "Photosynthesis converts light into energy.\n"
            "\n"
            "It happens in chloroplasts."
        )
        assert sections[1].heading == "1 Methods"
        assert sections[1].body == "1 Methods\nWe measured oxygen output."

    def test_text_before_first_heading(self):
        sections = normalize_text(
            "Preamble text here.\n\nCHAPTER 1\nBody of chapter one."
        )
        assert [s.heading for s in sections] == [None, "CHAPTER 1"]
        assert sections[0].body == "Preamble text here."

    def test_untitled_text_splits_on_pages(self):
        sections = normalize_text("First page text.\fSecond page text.")
        assert len(sections) == 2
        assert (sections[0].page_start, sections[0].page_end) == (1, 1)
        assert (sections[1].page_start, sections[1].page_end) == (2, 2)

    def test_titled_section_spans_pages(self):
        sections = normalize_text("CHAPTER ONE\nAlpha text.\fBeta text.")
        assert len(sections) == 1
        assert sections[0].page_start == 1
        assert sections[0].page_end == 2
        assert sections[0].body == "CHAPTER ONE\nAlpha text.\n\nBeta text."

    def test_blank_pages_keep_page_numbers(self):
        sections = normalize_text("\f  \fThird page text.")
        assert len(sections) == 1
        assert sections[0].page_start == 3

    def test_overflow_splits_at_paragraph_boundary(self):
        text = "a" * 20 + "\n\n" + "b" * 20
        sections = normalize_text(text, max_section_chars=30)
        assert [s.body for s in sections] == ["a" * 20, "b" * 20]
        assert all(s.heading is None for s in sections)

    def test_no_split_under_limit(self):
        text = "a" * 20 + "\n\n" + "b" * 20
        assert len(normalize_text(text, max_section_chars=100)) == 1

    def test_whitespace_normalization(self):
        sections = normalize_text("Hello    world\t\tagain   \r\n\r\nLine two")
        assert len(sections) == 1
        assert sections[0].body == "Hello world again\n\nLine two"

    def test_order_matches_reading_order(self):
        text = "ONE\na.\n\nTWO\nb.\n\nTHREE\nc."
        sections = normalize_text(text)
        assert [s.order for s in sections] == [0, 1, 2]
        assert [s.heading for s in sections] == ["ONE", "TWO", "THREE"]

    @pytest.mark.parametrize("text", [
        "Just one line",
        "INTRODUCTION\nSome body.\n\n\n\n2 Next Part\nMore body text here.",
        "Page one.\fPAGE TWO\nbody\f\fpage four   with   spaces",
        "  leading\n\n\ttrailing  \n",
        "a" * 50 + "\n\n" + "b" * 50 + "\n\n" + "c" * 50,
    ])
    def test_bodies_reconstruct_input(self, text):
        sections = normalize_text(text, max_section_chars=60)
        joined = "".join(s.body for s in sections)
        assert _strip_ws(joined) == _strip_ws(text)
        assert all(s.body.strip() for s in sections)

    def test_normalizer_is_reusable(self):
        normalizer = TextNormalizer()
        first = normalizer.normalize("HEADING\nbody text.")
        second = normalizer.normalize("HEADING\nbody text.")
        assert first == second
        assert len(second) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# LESSON PLAN VALIDATOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestLessonPlanValidator:
    """Test strict lesson plan validation."""

    def test_valid_plan(self, lesson_plan_dict):
        plan = validate_lesson_plan(lesson_plan_dict)
        assert isinstance(plan, LessonPlan)
        assert len(plan.questions) == 3
        assert plan.questions[0].choices[2].id == "c3"

    def test_valid_json_string(self, lesson_plan_dict):
        plan = validate_lesson_plan(json.dumps(lesson_plan_dict))
        assert plan.lesson.title == "Plant Biology"

    def test_plan_instance_is_revalidated(self, lesson_plan_dict):
        plan = validate_lesson_plan(lesson_plan_dict)
        assert validate_lesson_plan(plan) == plan

    def test_rejects_four_choices(self, lesson_plan_dict):
        lesson_plan_dict["questions"][1]["choices"].pop()
        with pytest.raises(SchemaViolation) as exc_info:
            validate_lesson_plan(lesson_plan_dict)
        assert exc_info.value.errors
        assert exc_info.value.errors[0]["loc"][:3] == ("questions", 1, "choices")

    def test_rejects_six_choices(self, lesson_plan_dict):
        lesson_plan_dict["questions"][0]["choices"].append(
            {"id": "c6", "label": "Extra"}
        )
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(lesson_plan_dict)

    def test_rejects_extra_top_level_field(self, lesson_plan_dict):
        lesson_plan_dict["difficulty"] = "easy"
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(lesson_plan_dict)

    def test_rejects_extra_nested_fields(self, lesson_plan_dict):
        lesson_plan_dict["questions"][0]["choices"][0]["is_correct"] = True
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(lesson_plan_dict)

    def test_rejects_missing_field(self, lesson_plan_dict):
        del lesson_plan_dict["questions"][0]["hint"]
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(lesson_plan_dict)

    def test_rejects_wrong_types(self, lesson_plan_dict):
        lesson_plan_dict["questions"][0]["correct_choice_id"] = 3
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(lesson_plan_dict)

    def test_rejects_non_json_and_none(self):
        with pytest.raises(SchemaViolation):
            validate_lesson_plan("this is not json")
        with pytest.raises(SchemaViolation):
            validate_lesson_plan(None)

    def test_schema_violation_is_generic_for_users(self, lesson_plan_dict):
        lesson_plan_dict["extra"] = 1
        with pytest.raises(QuizGenerationFailed) as exc_info:
            validate_lesson_plan(lesson_plan_dict)
        assert exc_info.value.user_message == (
            "Unable to generate quiz. Please try again."
        )

    def test_format_errors(self):
        lines = format_errors([
            {"loc": ("questions", 0, "choices"), "msg": "List should have at least 5 items"},
            {"loc": (), "msg": "Input should be an object"},
        ])
        assert lines == [
            "questions.0.choices: List should have at least 5 items",
            "<root>: Input should be an object",
        ]


# ═══════════════════════════════════════════════════════════════════════════════
# WIDGET PROJECTOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestWidgetProjector:
    """Test deterministic widget-state projection."""

    def test_counts_and_defaults(self, make_lesson_plan):
        plan = validate_lesson_plan(make_lesson_plan(4))
        state = project_lesson_plan(plan)

        assert isinstance(state, WidgetState)
        assert len(state.lesson.questions) == 4
        assert len(state.answers) == 4
        assert state.progress.index == 0
        assert state.progress.total == 4
        assert state.score.correct == 0
        assert state.score.total == 4
        assert state.mode == "intro"
        assert state.current_page == 0
        assert state.controls.model_dump() == {
            "can_back": False,
            "can_next": True,
            "next_label": "Start",
        }
        assert state.current_question is None
        assert state.option_list == []
        assert state.current_answer_value == ""
        assert state.header_label == HEADER_LABEL
        assert state.badge_label == BADGE_LABEL
        assert not state.view_locked
        assert not state.show_hint
        assert not state.show_explanation

    def test_positional_ids(self, lesson_plan_dict):
        state = project_lesson_plan(validate_lesson_plan(lesson_plan_dict))

        assert [q.id for q in state.lesson.questions] == [1, 2, 3]
        for question in state.lesson.questions:
            assert [c.id for c in question.choices] == [1, 2, 3, 4, 5]
        assert [a.question_id for a in state.answers] == [1, 2, 3]

    def test_answers_unattempted(self, lesson_plan_dict):
        state = project_lesson_plan(validate_lesson_plan(lesson_plan_dict))
        for answer in state.answers:
            assert answer.selected_choice_id is None
            assert answer.is_correct is False
            assert answer.attempted is False

    def test_text_copied_verbatim(self, lesson_plan_dict):
        plan = validate_lesson_plan(lesson_plan_dict)
        state = project_lesson_plan(plan)

        assert state.lesson.title == "Plant Biology"
        assert state.lesson.source == "biology.pdf"
        assert state.lesson.description == "Basics of photosynthesis"
        for source, projected in zip(plan.questions, state.lesson.questions):
            assert projected.question == source.question
            assert projected.hint == source.hint
            assert projected.explanation == source.explanation
            assert [c.label for c in projected.choices] == [
                c.label for c in source.choices
            ]

    def test_correct_choice_resolved_by_position(self, make_lesson_plan):
        plan = validate_lesson_plan(make_lesson_plan(1, correct_choice_id="c3"))
        state = project_lesson_plan(plan)
        assert state.lesson.questions[0].correct_choice_id == 3

    @pytest.mark.parametrize("correct_id,expected", [
        ("c1", 1), ("c2", 2), ("c4", 4), ("c5", 5),
    ])
    def test_correct_choice_each_position(self, make_lesson_plan, correct_id, expected):
        plan = validate_lesson_plan(make_lesson_plan(1, correct_choice_id=correct_id))
        assert project_lesson_plan(plan).lesson.questions[0].correct_choice_id == expected

    def test_unresolved_correct_choice_defaults_to_first(self, make_lesson_plan, caplog):
        plan = validate_lesson_plan(make_lesson_plan(2, correct_choice_id="zz"))

        with caplog.at_level(logging.WARNING, logger="pdfquiz"):
            state = project_lesson_plan(plan)

        assert [q.correct_choice_id for q in state.lesson.questions] == [1, 1]
        assert "matches no choice" in caplog.text
        assert unresolved_choice_questions(plan) == [1, 2]

    def test_duplicate_source_ids_first_wins(self, lesson_plan_dict):
        choices = lesson_plan_dict["questions"][0]["choices"]
        for choice, new_id in zip(choices, ["x", "x", "y", "z", "w"]):
            choice["id"] = new_id
        lesson_plan_dict["questions"][0]["correct_choice_id"] = "x"
        plan = validate_lesson_plan(lesson_plan_dict)

        assert choice_positions(plan.questions[0]) == {"x": 1, "y": 3, "z": 4, "w": 5}
        assert resolve_correct_choice_id(plan.questions[0]) == 1

    def test_source_ids_not_copied(self, lesson_plan_dict):
        plan = validate_lesson_plan(lesson_plan_dict)
        dumped = project_lesson_plan(plan).model_dump()
        for question in dumped["lesson"]["questions"]:
            assert all(isinstance(c["id"], int) for c in question["choices"])
        assert plan.questions[0].choices[0].id == "c1"

    def test_idempotent(self, lesson_plan_dict):
        plan = validate_lesson_plan(lesson_plan_dict)
        assert project_lesson_plan(plan) == project_lesson_plan(plan)
        assert (
            project_lesson_plan(plan).model_dump_json()
            == project_lesson_plan(plan).model_dump_json()
        )

    def test_empty_plan(self, make_lesson_plan):
        state = project_lesson_plan(validate_lesson_plan(make_lesson_plan(0)))
        assert state.lesson.questions == []
        assert state.answers == []
        assert state.progress.total == 0
        assert state.score.total == 0

    def test_widget_state_schema_is_strict(self, lesson_plan_dict):
        data = project_lesson_plan(validate_lesson_plan(lesson_plan_dict)).model_dump()
        data["unexpected"] = True
        with pytest.raises(ValueError):
            WidgetState.model_validate(data)

        data.pop("unexpected")
        data["mode"] = "finished"
        with pytest.raises(ValueError):
            WidgetState.model_validate(data)
