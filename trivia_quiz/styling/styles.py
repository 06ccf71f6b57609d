"""Centralized stylesheets for the quiz window."""

from trivia_quiz.core.models import OptionMark, TimerLevel

from .color_palette import ColorPalette, Theme

_MARK_COLORS = {
    OptionMark.CORRECT: ColorPalette.ANSWER_CORRECT,
    OptionMark.INCORRECT: ColorPalette.ANSWER_INCORRECT,
}

_TIMER_COLORS = {
    TimerLevel.NORMAL: ColorPalette.TIMER_NORMAL,
    TimerLevel.WARNING: ColorPalette.TIMER_WARNING,
    TimerLevel.CRITICAL: ColorPalette.TIMER_CRITICAL,
}


class Styles:
    """Helper class to generate Qt stylesheets based on the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.LIGHT) -> str:
        return f"""
            QMainWindow, QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: 14px;
            }}
            QPushButton {{
                background-color: {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
                color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 8px;
                padding: 10px 16px;
            }}
            QPushButton:disabled {{
                color: {ColorPalette.TEXT_MUTED.get(theme)};
            }}
        """

    @staticmethod
    def get_large_label_style() -> str:
        return "font-size: 16pt; font-weight: bold;"

    @staticmethod
    def get_option_style(mark: OptionMark, theme: Theme = Theme.LIGHT) -> str:
        colors = _MARK_COLORS.get(mark)
        if colors is None:
            return ""
        return f"background-color: {colors.get(theme)}; color: #FFFFFF;"

    @staticmethod
    def get_timer_style(level: TimerLevel, theme: Theme = Theme.LIGHT) -> str:
        color = _TIMER_COLORS[level].get(theme)
        return f"QProgressBar::chunk {{ background-color: {color}; border-radius: 4px; }}"
