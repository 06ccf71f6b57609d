"""Color palette for the quiz window supporting light and dark themes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Theme(Enum):
    """Application theme options."""
    LIGHT = auto()
    DARK = auto()


@dataclass(frozen=True)
class ThemeColors:
    """Color definitions for a specific theme."""
    light: str
    dark: str

    def get(self, theme: Theme) -> str:
        """Get color value for the specified theme."""
        return self.light if theme == Theme.LIGHT else self.dark


class ColorPalette:
    """Centralized color definitions for the quiz window."""

    TEXT_PRIMARY = ThemeColors(
        light="#172033",      # Ink blue
        dark="#EEF2F8"        # Pale blue
    )

    TEXT_MUTED = ThemeColors(
        light="#5B6475",      # Slate
        dark="#9AA4B5"        # Light slate
    )

    BACKGROUND_PRIMARY = ThemeColors(
        light="#F7F9FC",      # Off white
        dark="#111827"        # Night
    )

    BORDER_PRIMARY = ThemeColors(
        light="#C9D2E0",      # Mist
        dark="#374151"        # Charcoal
    )

    BUTTON_PRIMARY_BG = ThemeColors(
        light="#3B5BDB",      # Indigo
        dark="#5C7CFA"        # Light indigo
    )

    BUTTON_PRIMARY_TEXT = ThemeColors(
        light="#FFFFFF",
        dark="#FFFFFF"
    )

    # Answer marks
    ANSWER_CORRECT = ThemeColors(
        light="#16A34A",      # Green
        dark="#22C55E"        # Light Green
    )

    ANSWER_INCORRECT = ThemeColors(
        light="#DC2626",      # Red
        dark="#EF4444"        # Light Red
    )

    # Countdown levels
    TIMER_NORMAL = ThemeColors(
        light="#FACC15",      # Yellow
        dark="#FDE047"
    )

    TIMER_WARNING = ThemeColors(
        light="#F97316",      # Orange
        dark="#FB923C"
    )

    TIMER_CRITICAL = ThemeColors(
        light="#B91C1C",      # Dark Red
        dark="#EF4444"
    )
