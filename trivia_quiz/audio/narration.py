"""Best-effort voice narration.

Only one utterance is audible at a time: every new request supersedes the
pending or playing one. Narration never raises into the caller; failures are
logged and dropped.
"""

from __future__ import annotations

import logging
from typing import Protocol

from PySide6.QtCore import QLocale, QObject, QTimer
from PySide6.QtTextToSpeech import QTextToSpeech, QVoice

logger = logging.getLogger(__name__)


class NarrationPort(Protocol):
    def speak(self, text: str) -> None: ...

    def cancel(self) -> None: ...


class NullNarrator:
    """Narrator used when speech output is disabled or unavailable."""

    def speak(self, text: str) -> None:
        logger.debug("Narration skipped: %s", text)

    def cancel(self) -> None:
        pass


class QtNarrator:
    """Speaks through the platform text-to-speech engine."""

    def __init__(
        self,
        language: str = "en-US",
        voice_hint: str | None = None,
        parent: QObject | None = None,
    ) -> None:
        self._engine = QTextToSpeech(parent)
        self._engine.setLocale(QLocale(language.replace("-", "_")))
        self._engine.setRate(0.0)
        self._engine.setPitch(0.2)
        self._engine.setVolume(1.0)
        self._engine.stateChanged.connect(self._handle_state_changed)
        voice = _pick_voice(self._engine.availableVoices(), language, voice_hint)
        if voice is not None:
            self._engine.setVoice(voice)
            logger.info("Narrating with voice %s", voice.name())
        else:
            logger.info("Narrating with the default voice")

    def speak(self, text: str) -> None:
        self._engine.stop()
        self._engine.say(text)

    def cancel(self) -> None:
        if self._engine.state() == QTextToSpeech.State.Speaking:
            self._engine.stop()

    def _handle_state_changed(self, state: QTextToSpeech.State) -> None:
        if state == QTextToSpeech.State.Error:
            logger.warning("Speech engine error: %s", self._engine.errorString())


def _pick_voice(voices: list[QVoice], language: str, voice_hint: str | None) -> QVoice | None:
    language_code = language.replace("_", "-").split("-")[0].lower()
    matching = [
        voice for voice in voices if voice.locale().name().lower().startswith(language_code)
    ]
    if voice_hint:
        hinted = [voice for voice in matching if voice_hint.lower() in voice.name().lower()]
        if hinted:
            return hinted[0]
    return matching[0] if matching else None


def create_narrator(
    enabled: bool = True,
    language: str = "en-US",
    voice_hint: str | None = None,
    parent: QObject | None = None,
) -> NarrationPort:
    """Return a Qt narrator when a speech engine exists, otherwise a silent one."""
    if not enabled:
        return NullNarrator()
    if not QTextToSpeech.availableEngines():
        logger.warning("No text-to-speech engine available; narration disabled")
        return NullNarrator()
    return QtNarrator(language=language, voice_hint=voice_hint, parent=parent)


class ScheduledNarration(QObject):
    """Delays utterances on the event loop and keeps a single narration channel."""

    def __init__(self, narrator: NarrationPort | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._narrator = narrator if narrator is not None else NullNarrator()
        self._pending_text: str | None = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._speak_pending)

    @property
    def pending_text(self) -> str | None:
        return self._pending_text

    def say_after(self, text: str, delay_ms: int = 0) -> None:
        if not isinstance(text, str) or not text.strip():
            logger.warning("Ignoring empty narration request")
            return
        self.cancel()
        self._pending_text = text
        self._timer.start(max(0, delay_ms))

    def cancel(self) -> None:
        self._timer.stop()
        self._pending_text = None
        try:
            self._narrator.cancel()
        except Exception as exc:  # narration must never break the quiz flow
            logger.warning("Narration cancel failed: %s", exc)

    def _speak_pending(self) -> None:
        text, self._pending_text = self._pending_text, None
        if text is None:
            return
        try:
            self._narrator.speak(text)
        except Exception as exc:  # narration must never break the quiz flow
            logger.warning("Narration failed for %r: %s", text[:50], exc)
