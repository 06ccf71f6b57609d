"""Environment-driven application configuration.

Values are read from the process environment, optionally seeded from a
``.env`` file in the working directory. Anything not set falls back to the
constants modules.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from trivia_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTIONS_FILE, DEFAULT_TIME_LIMIT_SECONDS
from trivia_quiz.core.errors import ConfigError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True)
class AppConfig:
    """Resolved settings for one run of the application."""

    supabase_url: str | None = None
    supabase_key: str | None = None
    questions_file: Path = DEFAULT_QUESTIONS_FILE
    history_file: Path | None = None
    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS
    max_questions: int | None = None
    narration_enabled: bool = True
    narration_language: str = "en-US"
    narration_voice_hint: str | None = "Google"
    sound_enabled: bool = True
    server_enabled: bool = True
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build an :class:`AppConfig` from ``environ`` (defaults to ``os.environ``)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    def text(name: str) -> str | None:
        value = environ.get(name, "").strip()
        return value or None

    questions_file = text("TRIVIA_QUESTIONS_FILE")
    history_file = text("TRIVIA_HISTORY_FILE")
    return AppConfig(
        supabase_url=text("TRIVIA_SUPABASE_URL"),
        supabase_key=text("TRIVIA_SUPABASE_KEY"),
        questions_file=Path(questions_file) if questions_file else DEFAULT_QUESTIONS_FILE,
        history_file=Path(history_file) if history_file else None,
        time_limit_seconds=_positive_int(environ, "TRIVIA_TIME_LIMIT", DEFAULT_TIME_LIMIT_SECONDS),
        max_questions=_optional_positive_int(environ, "TRIVIA_MAX_QUESTIONS"),
        narration_enabled=_flag(environ, "TRIVIA_NARRATION_ENABLED", True),
        narration_language=text("TRIVIA_NARRATION_LANGUAGE") or "en-US",
        narration_voice_hint=text("TRIVIA_NARRATION_VOICE") or "Google",
        sound_enabled=_flag(environ, "TRIVIA_SOUND_ENABLED", True),
        server_enabled=_flag(environ, "TRIVIA_SERVER_ENABLED", True),
        host=text("TRIVIA_HOST") or DEFAULT_HOST,
        port=_positive_int(environ, "TRIVIA_PORT", DEFAULT_PORT),
        log_level=(text("TRIVIA_LOG_LEVEL") or "INFO").upper(),
    )


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got '{raw}'.")


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = _optional_positive_int(environ, name)
    return default if value is None else value


def _optional_positive_int(environ: Mapping[str, str], name: str) -> int | None:
    raw = environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got '{raw}'.") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be a positive integer.")
    return value
