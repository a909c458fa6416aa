"""
Data Models
===========
Pydantic models for the upload and quiz pipelines.

Upload-side records serialize with camelCase keys for the web client.
Lesson plans and widget state are strict: unknown fields, coercible-but-wrong
types, and wrong cardinalities are rejected rather than repaired.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


CHOICES_PER_QUESTION = 5
QUIZ_WIDGET_ID = "step_by_step_quiz"


class CamelModel(BaseModel):
    """Base for records exposed to the web client with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StrictModel(BaseModel):
    """Base for schemas that must reject anything they do not declare."""

    model_config = ConfigDict(extra="forbid", strict=True)


# ─── Document Models ──────────────────────────────────────────────────────────


class DocumentMetadata(CamelModel):
    """Metadata read from the PDF information dictionary."""
    page_count: int = Field(default=0, ge=0)
    title: Optional[str] = None
    author: Optional[str] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None


class ParsedDocument(CamelModel):
    """Embedded text and metadata of one uploaded PDF."""
    text: str = ""
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class NormalizedSection(CamelModel):
    """
    One logical chunk of document text, in reading order.
    The heading line, when present, is also the first line of the body.
    """
    order: int = Field(ge=0)
    heading: Optional[str] = None
    body: str = Field(min_length=1)
    page_start: int = Field(default=1, ge=1)
    page_end: int = Field(default=1, ge=1)

    @computed_field
    @property
    def word_count(self) -> int:
        return len(self.body.split())


class OcrResult(BaseModel):
    """Raw output of an OCR provider."""
    text: str = ""
    page_count: int = Field(default=0, ge=0)


class OcrSummary(CamelModel):
    """Outcome of an OCR fallback attempt."""
    provider: str
    success: bool
    page_count: int = 0


class ProcessedUpload(CamelModel):
    """
    Result of running one upload through extraction, OCR fallback and
    normalization.
    """
    metadata: DocumentMetadata
    sections: list[NormalizedSection] = Field(default_factory=list)
    text: str = ""
    needs_ocr: bool
    message: Optional[str] = None
    ocr: Optional[OcrSummary] = None


# ─── Lesson Plan (generated) ──────────────────────────────────────────────────


class LessonChoice(StrictModel):
    id: str
    label: str


class LessonQuestion(StrictModel):
    question: str
    choices: list[LessonChoice] = Field(
        min_length=CHOICES_PER_QUESTION, max_length=CHOICES_PER_QUESTION
    )
    correct_choice_id: str
    hint: str
    explanation: str


class LessonInfo(StrictModel):
    title: str
    source: str
    description: str


class LessonPlan(StrictModel):
    """Quiz content produced by the lesson-generation agent."""
    lesson: LessonInfo
    questions: list[LessonQuestion]


# ─── Widget State (UI projection) ─────────────────────────────────────────────


class WidgetChoice(StrictModel):
    id: int
    label: str


class WidgetQuestion(StrictModel):
    id: int
    question: str
    choices: list[WidgetChoice] = Field(
        min_length=CHOICES_PER_QUESTION, max_length=CHOICES_PER_QUESTION
    )
    hint: str
    explanation: str
    correct_choice_id: int = Field(ge=1, le=CHOICES_PER_QUESTION)


class WidgetLesson(StrictModel):
    title: str
    source: str
    description: str
    questions: list[WidgetQuestion]


class RadioOption(StrictModel):
    label: str
    value: str
    disabled: Optional[bool] = None


class AnswerState(StrictModel):
    question_id: int
    selected_choice_id: Optional[int]
    is_correct: bool
    attempted: bool


class Progress(StrictModel):
    index: int
    total: int


class Controls(StrictModel):
    can_back: bool
    can_next: bool
    next_label: str


class Score(StrictModel):
    correct: int
    total: int


class WidgetState(StrictModel):
    """Fully populated, UI-ready state of the step-by-step quiz widget."""
    lesson: WidgetLesson
    mode: Literal["intro", "question", "summary"]
    current_page: int
    progress: Progress
    header_label: str
    badge_label: str
    current_question: Optional[WidgetQuestion]
    option_list: list[RadioOption]
    current_answer_value: Optional[str] = None
    answers: list[AnswerState]
    view_locked: bool
    show_hint: bool
    show_explanation: bool
    controls: Controls
    score: Score


class QuizWidget(BaseModel):
    id: str = QUIZ_WIDGET_ID
    data: WidgetState


class QuizResult(CamelModel):
    """A validated lesson plan together with its widget projection."""
    lesson_plan: LessonPlan
    widget: QuizWidget

    def to_json_dict(self) -> dict:
        # Nested lesson/widget payloads keep their snake_case keys.
        return {
            "lessonPlan": self.lesson_plan.model_dump(mode="json"),
            "widget": self.widget.model_dump(mode="json"),
        }


class IngestResult(BaseModel):
    """Upload result plus the quiz generated from it, if any."""
    document_id: str
    upload: ProcessedUpload
    quiz: Optional[QuizResult] = None
    quiz_error: Optional[str] = None
