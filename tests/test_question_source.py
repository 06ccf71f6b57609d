import json
from threading import Event, Thread

import pytest

from conftest import FakeFeed
from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTIONS_FILE
from trivia_quiz.core.errors import NoValidQuestionsError, RemoteServiceError
from trivia_quiz.core.models import SourceTier
from trivia_quiz.core.services.question_source import BUILT_IN_QUESTIONS, QuestionSource


def _file_record(number, valid=True):
    record = {
        "id": number,
        "text": f"File question {number}?",
        "options": {"A": "one", "B": "two", "C": "three"},
        "correct_answer": "C",
    }
    if not valid:
        record["correct_answer"] = "Z"
    return record


def _write_questions(path, records):
    path.write_text(json.dumps({"questions": records}), encoding="utf-8")
    return path


def test_remote_rows_take_priority(tmp_path):
    feed = FakeFeed(
        rows=[{"id": 1, "prompt": "Remote?", "option_a": "x", "option_b": "y", "option_c": "z", "correct": "A"}]
    )
    questions_file = _write_questions(tmp_path / "q.json", [_file_record(1)])

    bank = QuestionSource(remote=feed, questions_file=questions_file).load()

    assert bank.tier is SourceTier.REMOTE
    assert [question.text for question in bank.questions] == ["Remote?"]


def test_remote_failure_falls_back_to_valid_file_records(tmp_path):
    feed = FakeFeed(error=RemoteServiceError("offline"))
    records = [_file_record(1), _file_record(2, valid=False), _file_record(3), _file_record(4, valid=False), _file_record(5)]
    questions_file = _write_questions(tmp_path / "q.json", records)

    bank = QuestionSource(remote=feed, questions_file=questions_file).load()

    assert bank.tier is SourceTier.LOCAL_FILE
    assert [question.id for question in bank.questions] == [1, 3, 5]


def test_empty_remote_falls_back_to_file(tmp_path):
    questions_file = _write_questions(tmp_path / "q.json", [_file_record(1)])

    bank = QuestionSource(remote=FakeFeed(rows=[]), questions_file=questions_file).load()

    assert bank.tier is SourceTier.LOCAL_FILE


def test_missing_file_falls_back_to_built_in(tmp_path):
    source = QuestionSource(questions_file=tmp_path / "missing.json")

    bank = source.load()

    assert bank.tier is SourceTier.BUILT_IN
    assert bank.questions == BUILT_IN_QUESTIONS
    assert source.bank is bank


def test_file_without_questions_array_falls_back(tmp_path):
    questions_file = tmp_path / "q.json"
    questions_file.write_text(json.dumps({"items": [_file_record(1)]}), encoding="utf-8")

    bank = QuestionSource(questions_file=questions_file).load()

    assert bank.tier is SourceTier.BUILT_IN


def test_every_tier_empty_raises(tmp_path):
    source = QuestionSource(questions_file=tmp_path / "missing.json", fallback_questions=())

    with pytest.raises(NoValidQuestionsError):
        source.load()
    assert source.bank is None


def test_reload_replaces_bank(tmp_path):
    questions_file = _write_questions(tmp_path / "q.json", [_file_record(1)])
    source = QuestionSource(questions_file=questions_file)
    first = source.load()

    _write_questions(questions_file, [_file_record(1), _file_record(2)])
    second = source.load()

    assert len(first) == 1
    assert len(second) == 2
    assert source.bank is second


def test_load_while_in_flight_returns_none(tmp_path):
    entered = Event()
    release = Event()

    class BlockingFeed:
        def fetch_questions(self):
            entered.set()
            release.wait(timeout=5)
            return []

    source = QuestionSource(remote=BlockingFeed(), questions_file=tmp_path / "missing.json")
    results = []
    worker = Thread(target=lambda: results.append(source.load()))
    worker.start()
    assert entered.wait(timeout=5)

    assert source.is_loading
    assert source.load() is None

    release.set()
    worker.join(timeout=5)
    assert results[0].tier is SourceTier.BUILT_IN
    assert not source.is_loading


def test_bundled_file_is_valid():
    bank = QuestionSource(questions_file=DEFAULT_QUESTIONS_FILE).load()

    assert bank.tier is SourceTier.LOCAL_FILE
    assert len(bank) >= 10
