"""Qt main window presenting the welcome, question and results pages."""

from __future__ import annotations

from enum import Enum
import logging
from threading import Thread

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from trivia_quiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from trivia_quiz.constants.quiz_constants import OPTION_LABELS
from trivia_quiz.constants.ui_constants import (
    ATTEMPT_STATS_TEMPLATE,
    CLEAR_HISTORY_BUTTON,
    FINISH_BUTTON,
    FIRST_ATTEMPT_TEXT,
    HISTORY_CLEARED_MESSAGE,
    HISTORY_CLEARED_TITLE,
    LOAD_FAILED_MESSAGE,
    LOAD_FAILED_TITLE,
    NEXT_BUTTON,
    PLAYER_URL_TEMPLATE,
    QUESTION_NUMBER_TEMPLATE,
    RECENT_ATTEMPT_TEMPLATE,
    RECENT_ATTEMPT_TIME_FORMAT,
    RECENT_ATTEMPTS_TITLE,
    RESTART_BUTTON,
    SAVING_RESULT_TEXT,
    SCORE_TEMPLATE,
    START_BUTTON,
    TIMER_EXPIRED,
    TIMER_TEMPLATE,
    WELCOME_LOADING,
    WELCOME_READY_TEMPLATE,
    WELCOME_TITLE,
    WINDOW_TITLE,
)
from trivia_quiz.core.errors import QuizError
from trivia_quiz.core.models import (
    AggregateStats,
    AnswerOutcome,
    AttemptRecord,
    OptionMark,
    Question,
    QuestionBank,
    SessionPhase,
    SessionResult,
    TimerLevel,
)
from trivia_quiz.core.services.question_source import QuestionSource
from trivia_quiz.core.services.quiz_session import QuizSession
from trivia_quiz.styling.styles import Styles
from trivia_quiz.ui.dialog_helpers import show_error, show_info

logger = logging.getLogger(__name__)


class _Page(Enum):
    WELCOME = 0
    QUESTION = 1
    RESULTS = 2


_PHASE_PAGES = {
    SessionPhase.IDLE: _Page.WELCOME,
    SessionPhase.IN_PROGRESS: _Page.QUESTION,
    SessionPhase.FINISHED: _Page.RESULTS,
}


class BankLoader(QObject):
    """Loads the question bank on a worker thread and reports back via signals."""

    loaded = Signal(object)  # QuestionBank
    failed = Signal(str)

    def __init__(self, source: QuestionSource, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._source = source

    def start(self) -> Thread:
        thread = Thread(target=self._run, name="QuestionLoader", daemon=True)
        thread.start()
        return thread

    def _run(self) -> None:
        try:
            bank = self._source.load()
        except QuizError as exc:
            logger.error("Question bank could not be loaded: %s", exc)
            self.failed.emit(str(exc))
            return
        if bank is not None:
            self.loaded.emit(bank)


def format_stats_line(stats: AggregateStats) -> str:
    if stats.count <= 1:
        return FIRST_ATTEMPT_TEXT
    return ATTEMPT_STATS_TEMPLATE.format(
        count=stats.count,
        best=stats.max_score,
        average=stats.average_display,
    )


class QuizWindow(QMainWindow):
    """Desktop presentation of a :class:`QuizSession`."""

    def __init__(
        self,
        session: QuizSession,
        source: QuestionSource,
        player_url: str | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.session = session
        self._source = source
        self._player_url = player_url
        self._question_total = 0

        self._build_ui()
        self.setStyleSheet(Styles.get_main_window_style())
        self._connect_session()

        self._loader = BankLoader(source, self)
        self._loader.loaded.connect(self._handle_bank_loaded)
        self._loader.failed.connect(self._handle_bank_failed)
        if source.bank is not None:
            self._handle_bank_loaded(source.bank)
        else:
            self._loader.start()

    # --- Layout ---

    def _build_ui(self) -> None:
        self.page_stack = QStackedWidget(self)
        self.page_stack.addWidget(self._build_welcome_page())
        self.page_stack.addWidget(self._build_question_page())
        self.page_stack.addWidget(self._build_results_page())
        self.setCentralWidget(self.page_stack)

    def _build_welcome_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)

        title = QLabel(WELCOME_TITLE, page)
        title.setStyleSheet(Styles.get_large_label_style())
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        self.status_label = QLabel(WELCOME_LOADING, page)
        self.status_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.status_label)

        if self._player_url:
            url_label = QLabel(PLAYER_URL_TEMPLATE.format(url=self._player_url), page)
            url_label.setAlignment(Qt.AlignCenter)
            url_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
            layout.addWidget(url_label)

        button_row = QHBoxLayout()
        self.start_button = QPushButton(START_BUTTON, page)
        self.start_button.setEnabled(False)
        self.start_button.clicked.connect(self._handle_start)
        button_row.addWidget(self.start_button)

        about_button = QPushButton(f"About {APP_NAME}", page)
        about_button.clicked.connect(self._handle_about)
        button_row.addWidget(about_button)
        layout.addLayout(button_row)
        return page

    def _build_question_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)

        header = QHBoxLayout()
        self.number_label = QLabel("", page)
        header.addWidget(self.number_label)
        header.addStretch()
        self.score_label = QLabel(SCORE_TEMPLATE.format(score=0), page)
        header.addWidget(self.score_label)
        layout.addLayout(header)

        self.question_label = QLabel("", page)
        self.question_label.setWordWrap(True)
        self.question_label.setStyleSheet(Styles.get_large_label_style())
        layout.addWidget(self.question_label)

        timer_row = QHBoxLayout()
        self.timer_label = QLabel("", page)
        timer_row.addWidget(self.timer_label)
        self.timer_progress = QProgressBar(page)
        self.timer_progress.setRange(0, 1000)
        self.timer_progress.setTextVisible(False)
        timer_row.addWidget(self.timer_progress, stretch=1)
        layout.addLayout(timer_row)

        self.option_buttons: dict[str, QPushButton] = {}
        for label in OPTION_LABELS:
            button = QPushButton("", page)
            button.clicked.connect(lambda _checked=False, chosen=label: self.session.submit_answer(chosen))
            layout.addWidget(button)
            self.option_buttons[label] = button

        self.next_button = QPushButton(NEXT_BUTTON, page)
        self.next_button.setEnabled(False)
        self.next_button.clicked.connect(self.session.advance)
        layout.addWidget(self.next_button)
        return page

    def _build_results_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)

        self.final_score_label = QLabel("", page)
        self.final_score_label.setAlignment(Qt.AlignCenter)
        self.final_score_label.setStyleSheet(Styles.get_large_label_style())
        layout.addWidget(self.final_score_label)

        self.result_message_label = QLabel("", page)
        self.result_message_label.setWordWrap(True)
        self.result_message_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.result_message_label)

        self.stats_label = QLabel("", page)
        self.stats_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.stats_label)

        recent_title = QLabel(RECENT_ATTEMPTS_TITLE, page)
        layout.addWidget(recent_title)
        self.recent_list = QListWidget(page)
        layout.addWidget(self.recent_list)

        button_row = QHBoxLayout()
        restart_button = QPushButton(RESTART_BUTTON, page)
        restart_button.clicked.connect(self.session.restart)
        button_row.addWidget(restart_button)
        self.clear_history_button = QPushButton(CLEAR_HISTORY_BUTTON, page)
        self.clear_history_button.setEnabled(False)
        self.clear_history_button.clicked.connect(self._handle_clear_history)
        button_row.addWidget(self.clear_history_button)
        layout.addLayout(button_row)
        return page

    # --- Session wiring ---

    def _connect_session(self) -> None:
        self.session.question_loaded.connect(self._handle_question_loaded)
        self.session.option_marked.connect(self._handle_option_marked)
        self.session.answer_resolved.connect(self._handle_answer_resolved)
        self.session.timer_ticked.connect(self._handle_timer_ticked)
        self.session.finished.connect(self._handle_finished)
        self.session.state_changed.connect(self._sync_page)

    def _handle_bank_loaded(self, bank: QuestionBank) -> None:
        self.status_label.setText(WELCOME_READY_TEMPLATE.format(count=len(bank), tier=bank.tier.value))
        self.start_button.setEnabled(True)

    def _handle_bank_failed(self, message: str) -> None:
        self.status_label.setText(message)
        # Start retries the load.
        self.start_button.setEnabled(True)
        show_error(self, LOAD_FAILED_TITLE, LOAD_FAILED_MESSAGE)

    def _handle_start(self) -> None:
        self.start_button.setEnabled(False)
        try:
            self.session.start()
        except QuizError as exc:
            logger.error("Session could not start: %s", exc)
            show_error(self, LOAD_FAILED_TITLE, f"{LOAD_FAILED_MESSAGE}\n\n{exc}")
        finally:
            self.start_button.setEnabled(True)

    def _handle_about(self) -> None:
        show_info(self, f"About {APP_NAME}", f"{APP_NAME} {APP_VERSION}\n\n{APP_ABOUT_TEXT}\n\n{APP_LICENSE}")

    def _handle_question_loaded(self, index: int, question: Question) -> None:
        self._question_total = len(self.session.questions)
        self.number_label.setText(QUESTION_NUMBER_TEMPLATE.format(number=index + 1, total=self._question_total))
        self.score_label.setText(SCORE_TEMPLATE.format(score=self.session.score))
        self.question_label.setText(question.text)
        for label, button in self.option_buttons.items():
            button.setText(f"{label}. {question.options[label]}")
            button.setStyleSheet(Styles.get_option_style(OptionMark.NONE))
            button.setEnabled(True)
        self.next_button.setEnabled(False)
        is_last = index + 1 >= self._question_total
        self.next_button.setText(FINISH_BUTTON if is_last else NEXT_BUTTON)

    def _handle_option_marked(self, label: str, mark: OptionMark) -> None:
        button = self.option_buttons.get(label)
        if button is not None:
            button.setStyleSheet(Styles.get_option_style(mark))

    def _handle_answer_resolved(self, outcome: AnswerOutcome) -> None:
        for button in self.option_buttons.values():
            button.setEnabled(False)
        self.next_button.setEnabled(True)
        self.score_label.setText(SCORE_TEMPLATE.format(score=self.session.score))
        if outcome.timed_out:
            self.timer_label.setText(TIMER_EXPIRED)

    def _handle_timer_ticked(self, remaining: int, ratio: float, level: TimerLevel) -> None:
        self.timer_label.setText(TIMER_TEMPLATE.format(seconds=max(0, remaining)))
        self.timer_progress.setValue(int(ratio * 1000))
        self.timer_progress.setStyleSheet(Styles.get_timer_style(level))

    def _handle_finished(self, result: SessionResult) -> None:
        self.final_score_label.setText(f"{result.score} / {result.max_score}")
        self.result_message_label.setText(result.message)
        self.stats_label.setText(format_stats_line(result.stats))
        self._show_recent(result.recent)
        # Clearing only affects this device, so it is offered when attempts are stored here.
        self.clear_history_button.setEnabled(self.session.gateway.backing == "local")

    def _handle_clear_history(self) -> None:
        self.session.gateway.clear_local_history()
        self.stats_label.setText(format_stats_line(AggregateStats()))
        self.recent_list.clear()
        self.clear_history_button.setEnabled(False)
        show_info(self, HISTORY_CLEARED_TITLE, HISTORY_CLEARED_MESSAGE)

    def _show_recent(self, recent: tuple[AttemptRecord, ...]) -> None:
        self.recent_list.clear()
        for attempt in recent:
            when = attempt.recorded_at.astimezone().strftime(RECENT_ATTEMPT_TIME_FORMAT)
            self.recent_list.addItem(RECENT_ATTEMPT_TEMPLATE.format(when=when, score=attempt.score))

    def _sync_page(self) -> None:
        if self.session.phase is SessionPhase.FINISHED and self.session.result is None:
            self.final_score_label.setText(SCORE_TEMPLATE.format(score=self.session.score))
            self.result_message_label.setText("")
            self.stats_label.setText(SAVING_RESULT_TEXT)
            self.recent_list.clear()
            self.clear_history_button.setEnabled(False)
        self.page_stack.setCurrentIndex(_PHASE_PAGES[self.session.phase].value)

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.session.shutdown()
        super().closeEvent(event)
