"""Validation of raw question records coming from the remote or file tiers.

Records are checked one at a time; a malformed record is dropped on its own
and never partially accepted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from trivia_quiz.constants.quiz_constants import OPTION_LABELS
from trivia_quiz.core.models import Question

logger = logging.getLogger(__name__)


class QuestionRecord(BaseModel):
    """Schema of a single question record."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: int | str | None = None
    text: str
    options: dict[str, str]
    correct_answer: Literal["A", "B", "C"]

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Question text must not be empty.")
        return value

    @field_validator("options")
    @classmethod
    def _three_labelled_options(cls, value: dict[str, str]) -> dict[str, str]:
        if set(value) != set(OPTION_LABELS):
            raise ValueError("Options must define exactly the labels A, B and C.")
        cleaned = {label: value[label].strip() for label in OPTION_LABELS}
        if any(not text for text in cleaned.values()):
            raise ValueError("Option text cannot be empty.")
        return cleaned

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            text=self.text,
            options=dict(self.options),
            correct_answer=self.correct_answer,
        )


def parse_question(raw: Any) -> Question | None:
    """Return a :class:`Question` for a valid record, otherwise ``None``."""
    if not isinstance(raw, Mapping):
        logger.debug("Rejected question record that is not an object: %r", raw)
        return None
    try:
        return QuestionRecord.model_validate(dict(raw)).to_question()
    except ValidationError as exc:
        logger.debug("Rejected question record %r: %s", raw.get("id"), exc.errors())
        return None


def validate_questions(raw_records: Iterable[Any]) -> list[Question]:
    """Keep only the records that pass validation, preserving their order."""
    records = list(raw_records)
    questions = [question for question in map(parse_question, records) if question is not None]
    rejected = len(records) - len(questions)
    if rejected:
        logger.info("Discarded %d invalid question record(s) out of %d", rejected, len(records))
    return questions


def question_from_remote_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Map a remote ``questions`` row onto the record layout used by the file tier."""
    return {
        "id": row.get("id"),
        "text": row.get("prompt"),
        "options": {
            "A": row.get("option_a"),
            "B": row.get("option_b"),
            "C": row.get("option_c"),
        },
        "correct_answer": row.get("correct"),
    }
