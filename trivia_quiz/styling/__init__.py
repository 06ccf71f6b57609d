"""Styling module for the TriviaQuiz window."""

from .color_palette import ColorPalette, Theme

__all__ = ["ColorPalette", "Theme"]
