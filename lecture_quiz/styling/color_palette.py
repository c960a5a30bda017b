"""Color palette for the quiz window, supporting light and dark themes."""

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

    TEXT_PRIMARY = ThemeColors(light="#0F172A", dark="#E2E8F0")
    TEXT_SECONDARY = ThemeColors(light="#475569", dark="#94A3B8")

    BACKGROUND_PRIMARY = ThemeColors(light="#F8FAFC", dark="#020617")
    BACKGROUND_CARD = ThemeColors(light="#FFFFFF", dark="#0F172A")

    ACCENT = ThemeColors(light="#0891B2", dark="#22D3EE")
    BORDER = ThemeColors(light="#CBD5E1", dark="#334155")

    SUCCESS = ThemeColors(light="#15803D", dark="#22C55E")
    ERROR = ThemeColors(light="#B91C1C", dark="#EF4444")
    WARNING = ThemeColors(light="#B45309", dark="#FACC15")

    BUTTON_PRIMARY_BG = ThemeColors(light="#0891B2", dark="#0891B2")
    BUTTON_PRIMARY_TEXT = ThemeColors(light="#FFFFFF", dark="#FFFFFF")
    BUTTON_HOVER_BG = ThemeColors(light="#0E7490", dark="#0E7490")
