"""Clock tick played once per countdown second."""

from __future__ import annotations

import logging
import math
from pathlib import Path
import struct
import tempfile
from typing import Protocol
import wave

from PySide6.QtCore import QObject, QUrl
from PySide6.QtMultimedia import QMediaDevices, QSoundEffect

from trivia_quiz.constants.quiz_constants import (
    TICK_TONE_DURATION_MS,
    TICK_TONE_FREQUENCY_HZ,
    TICK_TONE_VOLUME,
)

logger = logging.getLogger(__name__)

_SAMPLE_RATE = 44100
_TONE_PATH = Path(tempfile.gettempdir()) / "trivia_quiz_tick.wav"


class TickSoundPort(Protocol):
    def tick(self) -> None: ...

    def silence(self) -> None: ...


class NullTickSound:
    """Used when sound is disabled or no output device exists."""

    def tick(self) -> None:
        pass

    def silence(self) -> None:
        pass


class QtTickSound:
    """Short decaying sine tone played through :class:`QSoundEffect`."""

    def __init__(self, tone_path: Path = _TONE_PATH, parent: QObject | None = None) -> None:
        if not tone_path.exists():
            write_tone_wav(tone_path)
        self._effect = QSoundEffect(parent)
        self._effect.setSource(QUrl.fromLocalFile(str(tone_path)))
        self._effect.setVolume(1.0)

    def tick(self) -> None:
        if self._effect.status() == QSoundEffect.Status.Error:
            return
        if self._effect.isPlaying():
            self._effect.stop()
        self._effect.play()

    def silence(self) -> None:
        if self._effect.isPlaying():
            self._effect.stop()


def create_tick_sound(enabled: bool = True, parent: QObject | None = None) -> TickSoundPort:
    """Return a Qt tick sound when audio output is available, otherwise a silent one."""
    if not enabled:
        return NullTickSound()
    if not QMediaDevices.audioOutputs():
        logger.warning("No audio output device found; countdown will be silent")
        return NullTickSound()
    try:
        return QtTickSound(parent=parent)
    except OSError as exc:
        logger.warning("Tick sound unavailable: %s", exc)
        return NullTickSound()


def write_tone_wav(
    path: Path,
    frequency_hz: int = TICK_TONE_FREQUENCY_HZ,
    duration_ms: int = TICK_TONE_DURATION_MS,
    volume: float = TICK_TONE_VOLUME,
) -> Path:
    """Write a mono 16-bit sine tone with an exponential fade-out."""
    frame_count = int(_SAMPLE_RATE * duration_ms / 1000)
    # Decay from ``volume`` to roughly 1% over the tone, like a gain ramp.
    decay = math.log(0.01 / volume) / max(frame_count - 1, 1)
    frames = bytearray()
    for index in range(frame_count):
        gain = volume * math.exp(decay * index)
        sample = gain * math.sin(2 * math.pi * frequency_hz * index / _SAMPLE_RATE)
        frames += struct.pack("<h", int(sample * 32767))
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(_SAMPLE_RATE)
        handle.writeframes(bytes(frames))
    return path
