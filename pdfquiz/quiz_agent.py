"""
Quiz Agent
==========
Lesson-plan generation through the OpenAI chat completions API.

The agent is a black box to the rest of the pipeline: it takes source text
and returns whatever the model produced (decoded JSON when possible), or
None when the model produced nothing. Validation happens downstream.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_QUESTION_COUNT = 9
REQUEST_TIMEOUT_SECONDS = 120

QUIZ_INSTRUCTIONS = """
You are a quiz designer with a strong teaching background. Turn the provided
source text into exactly {question_count} multiple-choice questions.

Rules:
- Every question has exactly 5 answer choices and exactly one correct choice.
- Every fact must come from the source text. Never invent data.
- Keep the tone concise and instructional.
- Hints help the learner reason toward the answer without giving it away.
- Explanations point to the relevant part of the source and confirm the
  correct choice.

Respond with one JSON object and nothing else, using exactly these fields:
{{
  "lesson": {{"title": str, "source": str, "description": str}},
  "questions": [
    {{
      "question": str,
      "choices": [{{"id": str, "label": str}}, ... 5 items],
      "correct_choice_id": str (the id of one of the choices),
      "hint": str,
      "explanation": str
    }}
  ]
}}
""".strip()


class LessonGenerator(Protocol):
    """Produces a raw lesson plan from source text, or None."""

    def generate(self, text: str) -> Optional[Any]:
        ...


class OpenAIQuizAgent:
    """Quiz writer backed by an OpenAI chat model in JSON mode."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_QUIZ_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        question_count: int = DEFAULT_QUESTION_COUNT,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.question_count = question_count
        self._client = client

    def _get_client(self) -> OpenAI:
        # Created on first use so a missing key only fails quiz requests
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key, timeout=REQUEST_TIMEOUT_SECONDS
            )
        return self._client

    @property
    def instructions(self) -> str:
        return QUIZ_INSTRUCTIONS.format(question_count=self.question_count)

    def generate(self, text: str) -> Optional[Any]:
        """
        Ask the model for a lesson plan.

        Returns:
            The decoded JSON object, the raw output when it is not valid
            JSON, or None when the model returned no content.
        """
        logger.info(
            f"Requesting lesson plan from {self.model} "
            f"({len(text)} characters of source text)"
        )
        response = self._get_client().chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": self.instructions},
                {"role": "user", "content": text},
            ],
        )

        if not response.choices:
            return None
        content = response.choices[0].message.content
        if not content or not content.strip():
            return None

        try:
            return json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Quiz agent returned output that is not valid JSON")
            return content
