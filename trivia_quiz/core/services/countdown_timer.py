"""Per-question countdown with tick sound and warning escalation."""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QTimer, Signal

from trivia_quiz.audio.tick_sound import NullTickSound, TickSoundPort
from trivia_quiz.constants.quiz_constants import (
    CRITICAL_THRESHOLD_SECONDS,
    DEFAULT_TIME_LIMIT_SECONDS,
    TICK_INTERVAL_MS,
    WARNING_THRESHOLD_SECONDS,
)
from trivia_quiz.core.models import TimerLevel

logger = logging.getLogger(__name__)


def level_for_remaining(remaining: int) -> TimerLevel:
    if remaining <= CRITICAL_THRESHOLD_SECONDS:
        return TimerLevel.CRITICAL
    if remaining <= WARNING_THRESHOLD_SECONDS:
        return TimerLevel.WARNING
    return TimerLevel.NORMAL


class CountdownTimer(QObject):
    """Counts whole seconds down to zero and emits ``expired`` once per run."""

    ticked = Signal(int, float, object)  # remaining, progress ratio, TimerLevel
    expired = Signal()

    def __init__(
        self,
        tick_sound: TickSoundPort | None = None,
        *,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._tick_sound = tick_sound if tick_sound is not None else NullTickSound()
        self._duration = DEFAULT_TIME_LIMIT_SECONDS
        self._remaining = 0
        self._ticking = False
        self._level = TimerLevel.NORMAL

        self._timer = QTimer(self)
        self._timer.setInterval(tick_interval_ms)
        self._timer.timeout.connect(self._handle_tick)

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def is_ticking(self) -> bool:
        return self._ticking

    @property
    def level(self) -> TimerLevel:
        return self._level

    @property
    def progress_ratio(self) -> float:
        if self._duration <= 0:
            return 0.0
        return max(0.0, min(1.0, self._remaining / self._duration))

    def start(self, duration_seconds: int = DEFAULT_TIME_LIMIT_SECONDS) -> None:
        if duration_seconds <= 0:
            raise ValueError("Countdown duration must be a positive number of seconds.")
        self.stop()
        self._duration = duration_seconds
        self._remaining = duration_seconds
        self._level = level_for_remaining(duration_seconds)
        self._ticking = True
        self._play_tick()
        self.ticked.emit(self._remaining, self.progress_ratio, self._level)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._ticking = False
        try:
            self._tick_sound.silence()
        except Exception as exc:  # audio must never interrupt the countdown
            logger.debug("Tick sound silence failed: %s", exc)

    def _handle_tick(self) -> None:
        if not self._ticking:
            return
        self._remaining -= 1
        self._level = level_for_remaining(self._remaining)
        self._play_tick()
        self.ticked.emit(self._remaining, self.progress_ratio, self._level)
        # A ``ticked`` listener may already have stopped the countdown.
        if self._remaining <= 0 and self._ticking:
            self.stop()
            self.expired.emit()

    def _play_tick(self) -> None:
        try:
            self._tick_sound.tick()
        except Exception as exc:  # audio must never interrupt the countdown
            logger.debug("Tick sound failed: %s", exc)
