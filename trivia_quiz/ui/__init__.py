"""Qt UI components for the quiz window."""

from .dialog_helpers import show_error, show_info
from .quiz_window import QuizWindow

__all__ = [
    "QuizWindow",
    "show_error",
    "show_info",
]
