from __future__ import annotations

import os
from pathlib import Path
import time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication, QSettings
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from trivia_quiz.core.errors import RemoteServiceError
from trivia_quiz.core.models import AttemptRecord, Question
from trivia_quiz.core.services.persistence_gateway import LocalAttemptStore


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QApplication([])
    yield app


def wait_until(predicate, timeout_ms: int = 2000) -> bool:
    deadline = time.monotonic() + timeout_ms / 1000
    while time.monotonic() < deadline:
        if predicate():
            return True
        QTest.qWait(10)
    return predicate()


class RecordingNarrator:
    def __init__(self):
        self.spoken: list[str] = []
        self.cancel_count = 0

    def speak(self, text: str) -> None:
        self.spoken.append(text)

    def cancel(self) -> None:
        self.cancel_count += 1


class RecordingTickSound:
    def __init__(self):
        self.ticks = 0
        self.silenced = 0

    def tick(self) -> None:
        self.ticks += 1

    def silence(self) -> None:
        self.silenced += 1


class FakeFeed:
    """Stand-in for the remote question feed."""

    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.calls = 0

    def fetch_questions(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.rows)


class FakeRemoteStore:
    name = "remote"

    def __init__(self, reachable: bool = True, fail_writes: bool = False, stats=None):
        self.reachable = reachable
        self.fail_writes = fail_writes
        self.stats = stats
        self.probe_calls = 0
        self.appended: list[int] = []

    def probe(self) -> bool:
        self.probe_calls += 1
        return self.reachable

    def append(self, score, recorded_at, duration_seconds):
        if self.fail_writes:
            raise RemoteServiceError("insert failed")
        self.appended.append(score)
        return AttemptRecord(score=score, recorded_at=recorded_at, duration_seconds=duration_seconds)

    def history(self, limit=None):
        raise RemoteServiceError("history unavailable")

    def aggregate(self):
        if self.stats is None:
            raise RemoteServiceError("stats unavailable")
        return self.stats


def make_question(number: int, correct: str = "A") -> Question:
    return Question(
        id=number,
        text=f"Question {number}?",
        options={"A": f"alpha {number}", "B": f"bravo {number}", "C": f"charlie {number}"},
        correct_answer=correct,
    )


@pytest.fixture
def local_store(tmp_path: Path) -> LocalAttemptStore:
    return LocalAttemptStore(QSettings(str(tmp_path / "history.ini"), QSettings.Format.IniFormat))


@pytest.fixture
def narrator() -> RecordingNarrator:
    return RecordingNarrator()


@pytest.fixture
def tick_sound() -> RecordingTickSound:
    return RecordingTickSound()
