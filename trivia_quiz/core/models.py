"""Domain models for the trivia quiz."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto


class SourceTier(Enum):
    """Where a question bank was loaded from."""

    REMOTE = "remote"
    LOCAL_FILE = "local"
    BUILT_IN = "fallback"


class SessionPhase(Enum):
    IDLE = auto()
    IN_PROGRESS = auto()
    FINISHED = auto()


class OptionMark(Enum):
    """Visual state of one answer option."""

    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class TimerLevel(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly three labelled options."""

    text: str
    options: dict[str, str]
    correct_answer: str
    id: int | str | None = None

    @property
    def correct_option_text(self) -> str:
        return self.options[self.correct_answer]


@dataclass(frozen=True, slots=True)
class QuestionBank:
    """Validated, immutable pool of questions and the tier it came from."""

    questions: tuple[Question, ...]
    tier: SourceTier
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.questions)


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """One completed session's score as it was persisted."""

    score: int
    recorded_at: datetime
    duration_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class AggregateStats:
    """Statistics derived from every stored attempt."""

    count: int = 0
    max_score: int = 0
    average: float = 0.0
    min_score: int = 0

    @classmethod
    def from_scores(cls, scores: Iterable[int]) -> "AggregateStats":
        values = list(scores)
        if not values:
            return cls()
        return cls(
            count=len(values),
            max_score=max(values),
            average=sum(values) / len(values),
            min_score=min(values),
        )

    @property
    def average_display(self) -> str:
        return f"{self.average:.1f}"


@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    """How a single question was resolved, by the player or by the clock."""

    index: int
    chosen: str | None
    correct: str
    is_correct: bool
    timed_out: bool
    points_awarded: int


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Summary produced when a session reaches the finished phase."""

    score: int
    max_score: int
    message: str
    stats: AggregateStats
    record: AttemptRecord | None
    recent: tuple[AttemptRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session used by the window and the player API."""

    phase: SessionPhase
    current_index: int
    total_questions: int
    score: int
    question: Question | None
    answered: bool
    option_marks: dict[str, OptionMark]
    remaining_seconds: int
    progress_ratio: float
    timer_level: TimerLevel
    last_outcome: AnswerOutcome | None = None
    result: SessionResult | None = None

    def to_payload(self) -> dict[str, object]:
        """Serialize to plain JSON-compatible values."""
        question = None
        if self.question is not None:
            question = {
                "id": self.question.id,
                "text": self.question.text,
                "options": dict(self.question.options),
            }
        outcome = None
        if self.last_outcome is not None:
            outcome = {
                "chosen": self.last_outcome.chosen,
                "correct": self.last_outcome.correct,
                "is_correct": self.last_outcome.is_correct,
                "timed_out": self.last_outcome.timed_out,
            }
        result = None
        if self.result is not None:
            result = {
                "score": self.result.score,
                "max_score": self.result.max_score,
                "message": self.result.message,
                "stats": {
                    "count": self.result.stats.count,
                    "max_score": self.result.stats.max_score,
                    "average": self.result.stats.average_display,
                    "min_score": self.result.stats.min_score,
                },
                "recent": [
                    {"score": attempt.score, "recorded_at": attempt.recorded_at.isoformat()}
                    for attempt in self.result.recent
                ],
            }
        return {
            "phase": self.phase.name.lower(),
            "current_index": self.current_index,
            "total_questions": self.total_questions,
            "score": self.score,
            "question": question,
            "answered": self.answered,
            "option_marks": {label: mark.value for label, mark in self.option_marks.items()},
            "remaining_seconds": self.remaining_seconds,
            "progress_ratio": self.progress_ratio,
            "timer_level": self.timer_level.value,
            "last_outcome": outcome,
            "result": result,
        }
