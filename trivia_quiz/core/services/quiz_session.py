"""Service owning the quiz session lifecycle and the timed-answer protocol.

The session moves ``IDLE -> IN_PROGRESS -> FINISHED``. While in progress each
question is either unanswered or answered; it becomes answered exactly once,
by the player or by the countdown, guarded by the ``answered`` flag. Every
transition away from a question stops the countdown and cancels narration
first so nothing from the old question bleeds into the next one.
Entering ``FINISHED`` hands persistence to a worker thread; ``finished`` is
emitted once the attempt is stored and the statistics are read back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import random
from threading import Thread

from PySide6.QtCore import QObject, QTimer, Signal

from trivia_quiz.audio.narration import NarrationPort, ScheduledNarration
from trivia_quiz.constants.quiz_constants import (
    CORRECT_ANSWER_NARRATION,
    DEFAULT_TIME_LIMIT_SECONDS,
    FEEDBACK_NARRATION_DELAY_MS,
    HIGH_SCORE_MESSAGE,
    HIGH_SCORE_THRESHOLD,
    INCORRECT_ANSWER_NARRATION,
    LOW_SCORE_MESSAGE,
    MIDDLE_SCORE_MESSAGE,
    MIDDLE_SCORE_THRESHOLD,
    OPTION_LABELS,
    POINTS_PER_QUESTION,
    PROMPT_NARRATION_DELAY_MS,
    RESULT_NARRATION,
    REVEAL_CORRECT_DELAY_MS,
    TIMEOUT_NARRATION,
)
from trivia_quiz.constants.storage_constants import RECENT_ATTEMPTS_LIMIT
from trivia_quiz.core.errors import (
    EmptyBankError,
    NoValidQuestionsError,
    QuestionsLoadingError,
    SessionStateError,
    WriteError,
)
from trivia_quiz.core.models import (
    AggregateStats,
    AnswerOutcome,
    AttemptRecord,
    OptionMark,
    Question,
    SessionPhase,
    SessionResult,
    SessionSnapshot,
)
from trivia_quiz.core.services.countdown_timer import CountdownTimer
from trivia_quiz.core.services.persistence_gateway import PersistenceGateway
from trivia_quiz.core.services.question_source import QuestionSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionTiming:
    """Per-question time limit and the delays between visual and spoken feedback."""

    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS
    prompt_delay_ms: int = PROMPT_NARRATION_DELAY_MS
    feedback_delay_ms: int = FEEDBACK_NARRATION_DELAY_MS
    reveal_delay_ms: int = REVEAL_CORRECT_DELAY_MS


def select_result_message(score: int) -> str:
    if score >= HIGH_SCORE_THRESHOLD:
        return HIGH_SCORE_MESSAGE
    if score >= MIDDLE_SCORE_THRESHOLD:
        return MIDDLE_SCORE_MESSAGE
    return LOW_SCORE_MESSAGE


class AttemptRecorder(QObject):
    """Saves a finished attempt on a worker thread and reports back via a signal.

    Remote persistence may block for the full request timeout. ``recorded``
    is delivered queued to the thread this object lives on.
    """

    recorded = Signal(int, object, object, object)  # run id, AttemptRecord | None, AggregateStats, recent

    def __init__(self, gateway: PersistenceGateway, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._gateway = gateway

    def record(self, run_id: int, score: int, duration_seconds: float | None) -> Thread:
        thread = Thread(
            target=self._run,
            args=(run_id, score, duration_seconds),
            name="AttemptRecorder",
            daemon=True,
        )
        thread.start()
        return thread

    def _run(self, run_id: int, score: int, duration_seconds: float | None) -> None:
        record = None
        try:
            record = self._gateway.record_attempt(score, duration_seconds)
        except WriteError as exc:
            logger.error("Attempt with score %d could not be stored: %s", score, exc)
        stats = self._gateway.stats()
        recent = tuple(self._gateway.history(RECENT_ATTEMPTS_LIMIT))
        self.recorded.emit(run_id, record, stats, recent)


class QuizSession(QObject):
    """One player's run through a shuffled working set of questions."""

    question_loaded = Signal(int, object)  # index, Question
    option_marked = Signal(str, object)  # label, OptionMark
    answer_resolved = Signal(object)  # AnswerOutcome
    timer_ticked = Signal(int, float, object)  # remaining, ratio, TimerLevel
    finished = Signal(object)  # SessionResult
    state_changed = Signal()

    def __init__(
        self,
        source: QuestionSource,
        gateway: PersistenceGateway,
        *,
        narrator: NarrationPort | None = None,
        timer: CountdownTimer | None = None,
        timing: SessionTiming | None = None,
        max_questions: int | None = None,
        rng: random.Random | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._source = source
        self._gateway = gateway
        self._timing = timing or SessionTiming()
        self._max_questions = max_questions
        self._rng = rng or random.Random()

        self._narration = ScheduledNarration(narrator, parent=self)
        self._timer = timer if timer is not None else CountdownTimer(parent=self)
        self._timer.ticked.connect(self._handle_timer_tick)
        self._timer.expired.connect(self._handle_timer_expired)

        self._reveal_timer = QTimer(self)
        self._reveal_timer.setSingleShot(True)
        self._reveal_timer.timeout.connect(self._reveal_correct_option)

        self._recorder = AttemptRecorder(gateway, parent=self)
        self._recorder.recorded.connect(self._handle_attempt_recorded)

        self._phase = SessionPhase.IDLE
        self._questions: list[Question] = []
        self._run_id = 0
        self._current_index = 0
        self._score = 0
        self._answered = False
        self._started_at: datetime | None = None
        self._option_marks: dict[str, OptionMark] = {}
        self._last_outcome: AnswerOutcome | None = None
        self._result: SessionResult | None = None
        self._reset_marks()

    # --- Read access ---

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def score(self) -> int:
        return self._score

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def answered(self) -> bool:
        return self._answered

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_question(self) -> Question | None:
        if self._phase != SessionPhase.IN_PROGRESS:
            return None
        return self._questions[self._current_index]

    @property
    def result(self) -> SessionResult | None:
        return self._result

    @property
    def timer(self) -> CountdownTimer:
        return self._timer

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self._phase,
            current_index=self._current_index,
            total_questions=len(self._questions),
            score=self._score,
            question=self.current_question,
            answered=self._answered,
            option_marks=dict(self._option_marks),
            remaining_seconds=self._timer.remaining,
            progress_ratio=self._timer.progress_ratio,
            timer_level=self._timer.level,
            last_outcome=self._last_outcome,
            result=self._result,
        )

    # --- Transitions ---

    def start(self) -> None:
        if self._phase != SessionPhase.IDLE:
            raise SessionStateError(f"Cannot start a session that is {self._phase.name.lower()}.")
        bank = self._source.bank
        if bank is None:
            try:
                bank = self._source.load()
            except NoValidQuestionsError as exc:
                raise EmptyBankError("No questions are available; reload and try again.") from exc
            if bank is None:
                raise QuestionsLoadingError("Questions are still loading.")
        if not bank.questions:
            raise EmptyBankError("No questions are available; reload and try again.")

        working_set = list(bank.questions)
        self._rng.shuffle(working_set)
        if self._max_questions is not None:
            working_set = working_set[: self._max_questions]

        self._run_id += 1
        self._questions = working_set
        self._current_index = 0
        self._score = 0
        self._last_outcome = None
        self._result = None
        self._started_at = datetime.now(timezone.utc)
        self._phase = SessionPhase.IN_PROGRESS
        logger.info("Session started with %d questions from the %s tier", len(working_set), bank.tier.value)
        self._load_current_question()

    def submit_answer(self, label: str) -> AnswerOutcome | None:
        """Resolve the current question with the player's choice.

        Ignored (returns ``None``) when the question is already answered or no
        question is in play.
        """
        if label not in OPTION_LABELS:
            raise ValueError(f"Unknown option label '{label}'.")
        if self._phase != SessionPhase.IN_PROGRESS or self._answered:
            logger.debug("Ignoring answer %s; question not awaiting input", label)
            return None

        question = self._questions[self._current_index]
        self._narration.cancel()
        self._timer.stop()
        self._answered = True

        is_correct = label == question.correct_answer
        if is_correct:
            self._score += POINTS_PER_QUESTION
            self._mark_option(label, OptionMark.CORRECT)
            self._narration.say_after(CORRECT_ANSWER_NARRATION, self._timing.feedback_delay_ms)
        else:
            self._mark_option(label, OptionMark.INCORRECT)
            self._reveal_timer.start(self._timing.reveal_delay_ms)
            self._narration.say_after(
                INCORRECT_ANSWER_NARRATION.format(answer=question.correct_option_text),
                self._timing.feedback_delay_ms,
            )

        outcome = AnswerOutcome(
            index=self._current_index,
            chosen=label,
            correct=question.correct_answer,
            is_correct=is_correct,
            timed_out=False,
            points_awarded=POINTS_PER_QUESTION if is_correct else 0,
        )
        return self._publish_outcome(outcome)

    def advance(self) -> bool:
        """Move past an answered question; returns False when not allowed."""
        if self._phase != SessionPhase.IN_PROGRESS or not self._answered:
            logger.debug("Ignoring advance; current question is not answered")
            return False
        self._leave_question()
        if self._current_index + 1 < len(self._questions):
            self._current_index += 1
            self._load_current_question()
        else:
            self._finish()
        return True

    def restart(self) -> None:
        self._leave_question()
        self._run_id += 1
        self._phase = SessionPhase.IDLE
        self._questions = []
        self._current_index = 0
        self._score = 0
        self._answered = False
        self._started_at = None
        self._last_outcome = None
        self._result = None
        self._reset_marks()
        logger.info("Session reset")
        self.state_changed.emit()

    def shutdown(self) -> None:
        """Silence the countdown and narration before the application exits."""
        self._leave_question()

    # --- Internals ---

    def _load_current_question(self) -> None:
        question = self._questions[self._current_index]
        self._answered = False
        self._last_outcome = None
        self._reset_marks()
        self.question_loaded.emit(self._current_index, question)
        self._narration.say_after(question.text, self._timing.prompt_delay_ms)
        self._timer.start(self._timing.time_limit_seconds)
        self.state_changed.emit()

    def _leave_question(self) -> None:
        self._timer.stop()
        self._narration.cancel()
        self._reveal_timer.stop()

    def _handle_timer_tick(self, remaining: int, ratio: float, level: object) -> None:
        self.timer_ticked.emit(remaining, ratio, level)

    def _handle_timer_expired(self) -> None:
        if self._phase != SessionPhase.IN_PROGRESS or self._answered:
            return
        question = self._questions[self._current_index]
        self._narration.cancel()
        self._answered = True
        self._reveal_correct_option()
        self._narration.say_after(
            TIMEOUT_NARRATION.format(answer=question.correct_option_text),
            self._timing.feedback_delay_ms,
        )
        logger.info("Time expired on question %d", self._current_index + 1)
        self._publish_outcome(
            AnswerOutcome(
                index=self._current_index,
                chosen=None,
                correct=question.correct_answer,
                is_correct=False,
                timed_out=True,
                points_awarded=0,
            )
        )

    def _reveal_correct_option(self) -> None:
        if self._phase != SessionPhase.IN_PROGRESS:
            return
        question = self._questions[self._current_index]
        self._mark_option(question.correct_answer, OptionMark.CORRECT)
        self.state_changed.emit()

    def _publish_outcome(self, outcome: AnswerOutcome) -> AnswerOutcome:
        self._last_outcome = outcome
        self.answer_resolved.emit(outcome)
        self.state_changed.emit()
        return outcome

    def _finish(self) -> None:
        self._timer.stop()
        self._phase = SessionPhase.FINISHED
        duration = None
        if self._started_at is not None:
            duration = (datetime.now(timezone.utc) - self._started_at).total_seconds()
        logger.info("Session finished with %d points; saving attempt", self._score)
        self._recorder.record(self._run_id, self._score, duration)
        self.state_changed.emit()

    def _handle_attempt_recorded(
        self,
        run_id: int,
        record: AttemptRecord | None,
        stats: AggregateStats,
        recent: tuple[AttemptRecord, ...],
    ) -> None:
        if run_id != self._run_id or self._phase != SessionPhase.FINISHED:
            logger.debug("Dropping attempt result from an abandoned run")
            return
        message = select_result_message(self._score)
        self._result = SessionResult(
            score=self._score,
            max_score=POINTS_PER_QUESTION * len(self._questions),
            message=message,
            stats=stats,
            record=record,
            recent=recent,
        )
        logger.info("Result ready: %d points (%d attempts recorded)", self._score, stats.count)
        self.finished.emit(self._result)
        self._narration.say_after(
            RESULT_NARRATION.format(score=self._score, message=message),
            self._timing.prompt_delay_ms,
        )
        self.state_changed.emit()

    def _mark_option(self, label: str, mark: OptionMark) -> None:
        self._option_marks[label] = mark
        self.option_marked.emit(label, mark)

    def _reset_marks(self) -> None:
        self._option_marks = {label: OptionMark.NONE for label in OPTION_LABELS}
