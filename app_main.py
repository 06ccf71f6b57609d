"""Application entry point for TriviaQuiz."""

from __future__ import annotations

import socket
import sys

from PySide6.QtWidgets import QApplication

from trivia_quiz.audio.narration import create_narrator
from trivia_quiz.audio.tick_sound import create_tick_sound
from trivia_quiz.core.services.countdown_timer import CountdownTimer
from trivia_quiz.core.services.persistence_gateway import (
    LocalAttemptStore,
    PersistenceGateway,
    RemoteAttemptStore,
)
from trivia_quiz.core.services.question_source import QuestionSource
from trivia_quiz.core.services.quiz_session import QuizSession, SessionTiming
from trivia_quiz.remote.supabase_client import SupabaseClient
from trivia_quiz.server.api_server import start_api_server
from trivia_quiz.server.session_bridge import SessionBridge
from trivia_quiz.ui.quiz_window import QuizWindow
from trivia_quiz.utils.config import load_config
from trivia_quiz.utils.logging_config import configure_logging


def _determine_player_url(port: int) -> str:
    """Best-effort determination of the local IP for the browser player URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Load configuration, wire the quiz services, and launch the Qt UI."""
    config = load_config()
    logger = configure_logging(config.log_level)
    logger.info("Starting TriviaQuiz")

    app = QApplication(sys.argv)

    client = SupabaseClient(config.supabase_url, config.supabase_key) if config.remote_configured else None
    if client is None:
        logger.info("Supabase is not configured; using local questions and history")

    source = QuestionSource(remote=client, questions_file=config.questions_file)
    local_store = (
        LocalAttemptStore.from_file(config.history_file)
        if config.history_file is not None
        else LocalAttemptStore()
    )
    remote_store = RemoteAttemptStore(client) if client is not None else None
    gateway = PersistenceGateway(local_store, remote_store)
    gateway.select_backing()

    narrator = create_narrator(
        enabled=config.narration_enabled,
        language=config.narration_language,
        voice_hint=config.narration_voice_hint,
        parent=app,
    )
    tick_sound = create_tick_sound(enabled=config.sound_enabled, parent=app)
    session = QuizSession(
        source,
        gateway,
        narrator=narrator,
        timer=CountdownTimer(tick_sound),
        timing=SessionTiming(time_limit_seconds=config.time_limit_seconds),
        max_questions=config.max_questions,
    )

    player_url = None
    bridge = SessionBridge(session)
    if config.server_enabled:
        start_api_server(bridge, host=config.host, port=config.port)
        player_url = _determine_player_url(config.port)
        logger.info("Player page available at %s", player_url)

    window = QuizWindow(session, source, player_url=player_url)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
