"""Thread-safe hand-off between the Qt session and the API server thread."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

from PySide6.QtCore import QObject, Signal, Slot

from trivia_quiz.core.errors import QuizError
from trivia_quiz.core.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)

COMMANDS: tuple[str, ...] = ("start", "answer", "next", "restart")


class SessionBridge(QObject):
    """Publishes session snapshots and runs player commands on the Qt thread.

    The API thread only ever reads the cached payload (under a lock) and emits
    ``command_requested``; Qt queues that signal to this object's thread, so
    the session itself is touched from one thread only.
    """

    command_requested = Signal(str, str)

    def __init__(self, session: QuizSession, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._session = session
        self._lock = Lock()
        self._payload: dict[str, Any] = session.snapshot().to_payload()
        self._last_error: str | None = None

        session.state_changed.connect(self.refresh)
        session.timer_ticked.connect(self.refresh)
        self.command_requested.connect(self._dispatch)

    def snapshot_payload(self) -> dict[str, Any]:
        with self._lock:
            payload = dict(self._payload)
            payload["last_error"] = self._last_error
            return payload

    def request_command(self, name: str, label: str | None = None) -> None:
        if name not in COMMANDS:
            raise ValueError(f"Unknown command '{name}'.")
        self.command_requested.emit(name, label or "")

    def refresh(self, *_args: object) -> None:
        payload = self._session.snapshot().to_payload()
        with self._lock:
            self._payload = payload

    @Slot(str, str)
    def _dispatch(self, name: str, label: str) -> None:
        error = None
        try:
            if name == "start":
                self._session.start()
            elif name == "answer":
                self._session.submit_answer(label)
            elif name == "next":
                self._session.advance()
            elif name == "restart":
                self._session.restart()
        except (QuizError, ValueError) as exc:
            logger.warning("Player command '%s' rejected: %s", name, exc)
            error = str(exc)
        with self._lock:
            self._last_error = error
        self.refresh()
