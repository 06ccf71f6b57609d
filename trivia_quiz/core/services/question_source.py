"""Service resolving the question bank from the remote, file and built-in tiers."""

from __future__ import annotations

from collections.abc import Sequence
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTIONS_FILE, QUESTIONS_CONTAINER_FIELD
from trivia_quiz.core.errors import NoValidQuestionsError, RemoteServiceError
from trivia_quiz.core.models import Question, QuestionBank, SourceTier
from trivia_quiz.core.question_schema import question_from_remote_row, validate_questions

logger = logging.getLogger(__name__)


class QuestionFeed(Protocol):
    """Remote capability returning raw question rows."""

    def fetch_questions(self) -> list[dict[str, Any]]: ...


# Used only when neither the remote service nor the bundled file yields questions.
BUILT_IN_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="builtin-1",
        text="Which planet is known as the Red Planet?",
        options={"A": "Venus", "B": "Mars", "C": "Jupiter"},
        correct_answer="B",
    ),
    Question(
        id="builtin-2",
        text="How many continents are there on Earth?",
        options={"A": "Seven", "B": "Five", "C": "Six"},
        correct_answer="A",
    ),
    Question(
        id="builtin-3",
        text="What is the chemical symbol for gold?",
        options={"A": "Gd", "B": "Go", "C": "Au"},
        correct_answer="C",
    ),
    Question(
        id="builtin-4",
        text="Which ocean is the largest?",
        options={"A": "Atlantic", "B": "Pacific", "C": "Indian"},
        correct_answer="B",
    ),
    Question(
        id="builtin-5",
        text="Who painted the Mona Lisa?",
        options={"A": "Leonardo da Vinci", "B": "Michelangelo", "C": "Raphael"},
        correct_answer="A",
    ),
)


class QuestionSource:
    """Loads a validated :class:`QuestionBank`, falling through the source tiers."""

    def __init__(
        self,
        remote: QuestionFeed | None = None,
        questions_file: Path | None = DEFAULT_QUESTIONS_FILE,
        fallback_questions: Sequence[Question] = BUILT_IN_QUESTIONS,
    ) -> None:
        self._remote = remote
        self._questions_file = questions_file
        self._fallback_questions = tuple(fallback_questions)
        self._bank: QuestionBank | None = None
        self._load_lock = Lock()

    @property
    def bank(self) -> QuestionBank | None:
        return self._bank

    @property
    def is_loading(self) -> bool:
        return self._load_lock.locked()

    def load(self) -> QuestionBank | None:
        """Resolve a fresh bank, replacing the previous one in full.

        Returns ``None`` without doing any work when another load is already
        in flight. Raises :class:`NoValidQuestionsError` when every tier comes
        back empty.
        """
        if not self._load_lock.acquire(blocking=False):
            logger.info("Question load already in progress")
            return None
        try:
            bank = self._resolve()
            self._bank = bank
            logger.info("Loaded %d questions from the %s tier", len(bank), bank.tier.value)
            return bank
        finally:
            self._load_lock.release()

    def _resolve(self) -> QuestionBank:
        tiers = (
            (SourceTier.REMOTE, self._load_remote),
            (SourceTier.LOCAL_FILE, self._load_file),
            (SourceTier.BUILT_IN, self._load_built_in),
        )
        for tier, loader in tiers:
            questions = loader()
            if questions:
                return QuestionBank(questions=tuple(questions), tier=tier)
            logger.debug("Tier %s yielded no valid questions", tier.value)
        raise NoValidQuestionsError("No valid questions are available from any source.")

    def _load_remote(self) -> list[Question]:
        if self._remote is None:
            return []
        try:
            rows = self._remote.fetch_questions()
        except RemoteServiceError as exc:
            logger.warning("Could not load questions from the remote service: %s", exc)
            return []
        return validate_questions(question_from_remote_row(row) for row in rows if isinstance(row, dict))

    def _load_file(self) -> list[Question]:
        if self._questions_file is None:
            return []
        try:
            document = json.loads(self._questions_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read questions file %s: %s", self._questions_file, exc)
            return []
        records = document.get(QUESTIONS_CONTAINER_FIELD) if isinstance(document, dict) else None
        if not isinstance(records, list):
            logger.warning(
                "Questions file %s has no '%s' array", self._questions_file, QUESTIONS_CONTAINER_FIELD
            )
            return []
        return validate_questions(records)

    def _load_built_in(self) -> list[Question]:
        return list(self._fallback_questions)
