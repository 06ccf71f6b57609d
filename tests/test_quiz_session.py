import random
import threading

import pytest
from PySide6.QtTest import QTest

from conftest import FakeRemoteStore, make_question, wait_until
from trivia_quiz.constants.quiz_constants import (
    CORRECT_ANSWER_NARRATION,
    HIGH_SCORE_MESSAGE,
    LOW_SCORE_MESSAGE,
    MIDDLE_SCORE_MESSAGE,
)
from trivia_quiz.core.errors import EmptyBankError, QuestionsLoadingError, SessionStateError
from trivia_quiz.core.models import OptionMark, SessionPhase
from trivia_quiz.core.services.countdown_timer import CountdownTimer
from trivia_quiz.core.services.persistence_gateway import PersistenceGateway
from trivia_quiz.core.services.question_source import BUILT_IN_QUESTIONS, QuestionSource
from trivia_quiz.core.services.quiz_session import QuizSession, SessionTiming, select_result_message

FAST_TIMING = SessionTiming(time_limit_seconds=10, prompt_delay_ms=0, feedback_delay_ms=0, reveal_delay_ms=0)


def _wrong_label(question):
    return next(label for label in ("A", "B", "C") if label != question.correct_answer)


def _make_session(local_store, narrator=None, questions=None, tick_interval_ms=60000, timing=FAST_TIMING, **kwargs):
    if questions is None:
        questions = [make_question(1, "A"), make_question(2, "B"), make_question(3, "C")]
    source = QuestionSource(questions_file=None, fallback_questions=questions)
    gateway = PersistenceGateway(local_store)
    session = QuizSession(
        source,
        gateway,
        narrator=narrator,
        timer=CountdownTimer(tick_interval_ms=tick_interval_ms),
        timing=timing,
        rng=random.Random(3),
        **kwargs,
    )
    return session, gateway


def test_score_is_ten_per_correct_answer(local_store):
    session, gateway = _make_session(local_store)
    session.start()

    session.submit_answer(session.current_question.correct_answer)
    session.advance()
    session.submit_answer(_wrong_label(session.current_question))
    session.advance()
    session.submit_answer(session.current_question.correct_answer)
    session.advance()

    assert session.phase is SessionPhase.FINISHED
    assert wait_until(lambda: session.result is not None)
    assert session.result.score == 20
    assert session.result.max_score == 30
    assert session.result.message == LOW_SCORE_MESSAGE
    assert gateway.stats().count == 1
    assert session.result.stats.max_score == 20


def test_advance_is_ignored_until_answered(local_store):
    session, _ = _make_session(local_store)
    session.start()

    assert session.advance() is False
    assert session.current_index == 0
    session.shutdown()


def test_second_answer_is_ignored(local_store):
    session, _ = _make_session(local_store)
    session.start()
    question = session.current_question

    first = session.submit_answer(question.correct_answer)
    second = session.submit_answer(_wrong_label(question))

    assert first.is_correct
    assert second is None
    assert session.score == 10
    assert session.snapshot().option_marks[question.correct_answer] is OptionMark.CORRECT
    session.shutdown()


def test_expiry_after_answer_is_ignored(local_store):
    session, _ = _make_session(local_store)
    session.start()
    session.submit_answer(session.current_question.correct_answer)

    session.timer.expired.emit()

    assert session.snapshot().last_outcome.timed_out is False
    assert session.score == 10
    session.shutdown()


def test_unknown_label_is_rejected(local_store):
    session, _ = _make_session(local_store)
    session.start()

    with pytest.raises(ValueError):
        session.submit_answer("D")
    assert session.answered is False
    session.shutdown()


def test_wrong_answer_marks_choice_then_reveals_correct(local_store):
    session, _ = _make_session(local_store)
    session.start()
    question = session.current_question
    wrong = _wrong_label(question)

    outcome = session.submit_answer(wrong)

    assert outcome.is_correct is False
    assert outcome.points_awarded == 0
    assert session.snapshot().option_marks[wrong] is OptionMark.INCORRECT
    assert wait_until(lambda: session.snapshot().option_marks[question.correct_answer] is OptionMark.CORRECT)
    session.shutdown()


def test_all_timeouts_score_zero_and_are_persisted(local_store):
    timing = SessionTiming(time_limit_seconds=1, prompt_delay_ms=0, feedback_delay_ms=0, reveal_delay_ms=0)
    session, gateway = _make_session(local_store, tick_interval_ms=5, timing=timing)
    session.start()

    for _ in range(3):
        question = session.current_question
        assert wait_until(lambda: session.answered)
        snapshot = session.snapshot()
        assert snapshot.last_outcome.timed_out
        assert snapshot.last_outcome.chosen is None
        assert snapshot.option_marks[question.correct_answer] is OptionMark.CORRECT
        session.advance()

    assert session.phase is SessionPhase.FINISHED
    assert wait_until(lambda: session.result is not None)
    assert session.result.score == 0
    assert session.result.message == LOW_SCORE_MESSAGE
    assert gateway.stats().count == 1
    assert gateway.stats().max_score == 0


def test_narration_follows_the_quiz(local_store, narrator):
    session, _ = _make_session(local_store, narrator=narrator)
    session.start()
    question = session.current_question

    assert wait_until(lambda: question.text in narrator.spoken)
    session.submit_answer(question.correct_answer)
    assert wait_until(lambda: CORRECT_ANSWER_NARRATION in narrator.spoken)
    session.shutdown()


def test_restart_then_start_uses_same_question_set(local_store):
    session, _ = _make_session(local_store)
    session.start()
    first_ids = {question.id for question in session.questions}
    session.submit_answer("A")

    session.restart()

    assert session.phase is SessionPhase.IDLE
    assert session.score == 0
    assert not session.timer.is_ticking
    session.start()
    assert {question.id for question in session.questions} == first_ids
    assert session.score == 0
    assert session.answered is False
    session.shutdown()


def test_start_twice_is_rejected(local_store):
    session, _ = _make_session(local_store)
    session.start()

    with pytest.raises(SessionStateError):
        session.start()
    session.shutdown()


def test_empty_bank_cannot_start(local_store):
    session, _ = _make_session(local_store, questions=[])

    with pytest.raises(EmptyBankError):
        session.start()
    assert session.phase is SessionPhase.IDLE


def test_start_while_bank_is_loading(local_store):
    class LoadingSource:
        bank = None

        def load(self):
            return None

    session = QuizSession(LoadingSource(), PersistenceGateway(local_store), timer=CountdownTimer(tick_interval_ms=60000))

    with pytest.raises(QuestionsLoadingError):
        session.start()


def test_max_questions_truncates_working_set(local_store):
    questions = [make_question(number) for number in range(1, 8)]
    session, _ = _make_session(local_store, questions=questions, max_questions=4)

    session.start()

    assert len(session.questions) == 4
    assert session.snapshot().total_questions == 4
    session.shutdown()


def test_snapshot_payload_is_json_ready(local_store):
    session, _ = _make_session(local_store)
    session.start()

    payload = session.snapshot().to_payload()

    assert payload["phase"] == "in_progress"
    assert payload["question"]["text"] == session.current_question.text
    assert payload["option_marks"] == {"A": "none", "B": "none", "C": "none"}
    assert payload["timer_level"] == "normal"
    session.shutdown()


@pytest.mark.parametrize(
    ("score", "message"),
    [(100, HIGH_SCORE_MESSAGE), (80, HIGH_SCORE_MESSAGE), (79, MIDDLE_SCORE_MESSAGE),
     (50, MIDDLE_SCORE_MESSAGE), (49, LOW_SCORE_MESSAGE), (0, LOW_SCORE_MESSAGE)],
)
def test_result_message_tiers(score, message):
    assert select_result_message(score) == message


def test_five_built_in_questions_all_correct_score_fifty(local_store):
    session, _ = _make_session(local_store, questions=list(BUILT_IN_QUESTIONS))
    session.start()

    while session.phase is SessionPhase.IN_PROGRESS:
        session.submit_answer(session.current_question.correct_answer)
        session.advance()

    assert wait_until(lambda: session.result is not None)
    assert session.result.score == 50
    assert session.result.max_score == 50
    assert session.result.message == MIDDLE_SCORE_MESSAGE


def test_remote_write_failure_on_finish_is_stored_locally(local_store):
    source = QuestionSource(questions_file=None, fallback_questions=[make_question(1, "A")])
    gateway = PersistenceGateway(local_store, FakeRemoteStore(fail_writes=True))
    session = QuizSession(source, gateway, timer=CountdownTimer(tick_interval_ms=60000), timing=FAST_TIMING)
    session.start()

    session.submit_answer("A")
    session.advance()

    assert wait_until(lambda: session.result is not None)
    assert session.result.record.score == 10
    assert session.result.stats.count == 1
    assert gateway.stats().max_score == 10


def test_result_arrives_after_attempt_is_saved(local_store):
    session, _ = _make_session(local_store, questions=[make_question(1, "A")])
    finished = []
    session.finished.connect(finished.append)
    session.start()

    session.submit_answer("A")
    session.advance()

    assert session.phase is SessionPhase.FINISHED
    assert wait_until(lambda: finished)
    assert finished[0] is session.result
    assert session.result.record.score == 10
    assert [attempt.score for attempt in session.result.recent] == [10]


def test_recent_attempts_are_newest_first(local_store):
    session, _ = _make_session(local_store, questions=[make_question(1, "A")])
    for label in ("B", "A"):
        session.start()
        session.submit_answer(label)
        session.advance()
        assert wait_until(lambda: session.result is not None)
        session.restart()

    session.start()
    session.submit_answer("A")
    session.advance()
    assert wait_until(lambda: session.result is not None)

    assert [attempt.score for attempt in session.result.recent] == [10, 10, 0]
    assert session.result.stats.count == 3


def test_restart_while_saving_drops_the_stale_result(local_store):
    class SlowGateway(PersistenceGateway):
        def __init__(self, local):
            super().__init__(local)
            self.release = threading.Event()

        def record_attempt(self, score, duration_seconds=None):
            self.release.wait(5)
            return super().record_attempt(score, duration_seconds)

    source = QuestionSource(questions_file=None, fallback_questions=[make_question(1, "A")])
    gateway = SlowGateway(local_store)
    session = QuizSession(source, gateway, timer=CountdownTimer(tick_interval_ms=60000), timing=FAST_TIMING)
    finished = []
    session.finished.connect(finished.append)
    session.start()
    session.submit_answer("A")
    session.advance()
    assert session.result is None

    session.restart()
    gateway.release.set()

    assert wait_until(lambda: gateway.stats().count == 1)
    QTest.qWait(50)
    assert finished == []
    assert session.phase is SessionPhase.IDLE
    assert session.result is None
