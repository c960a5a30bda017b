"""Centralized Qt stylesheets for the quiz window."""

from .color_palette import ColorPalette, Theme

class Styles:
    """Helper class to generate Qt stylesheets based on the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.DARK) -> str:
        return f"""
            QMainWindow, QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: 14px;
            }}
            QGroupBox {{
                background-color: {ColorPalette.BACKGROUND_CARD.get(theme)};
                border: 1px solid {ColorPalette.BORDER.get(theme)};
                border-radius: 6px;
                margin-top: 6px;
                padding-top: 10px;
            }}
            QPushButton {{
                background-color: {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
                color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)};
                border: none;
                border-radius: 4px;
                padding: 8px 16px;
            }}
            QPushButton:hover {{
                background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};
            }}
            QPushButton:disabled {{
                background-color: {ColorPalette.BORDER.get(theme)};
            }}
            QLineEdit, QComboBox {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER.get(theme)};
                border-radius: 4px;
                padding: 4px;
            }}
        """

    @staticmethod
    def get_title_style(theme: Theme = Theme.DARK) -> str:
        return f"font-size: 18pt; font-weight: bold; color: {ColorPalette.ACCENT.get(theme)};"

    @staticmethod
    def get_timer_style(urgent: bool, theme: Theme = Theme.DARK) -> str:
        color = ColorPalette.ERROR.get(theme) if urgent else ColorPalette.TEXT_PRIMARY.get(theme)
        return f"font-family: monospace; font-size: 16pt; font-weight: bold; color: {color};"

    @staticmethod
    def get_notice_style(level: str, theme: Theme = Theme.DARK) -> str:
        colors = {
            "success": ColorPalette.SUCCESS,
            "error": ColorPalette.ERROR,
            "warning": ColorPalette.WARNING,
        }
        color = colors.get(level, ColorPalette.ACCENT).get(theme)
        return f"font-weight: bold; color: {color};"

    @staticmethod
    def get_option_style(state: str, theme: Theme = Theme.DARK) -> str:
        """Style for an option button: "idle", "selected", "correct", "wrong" or "dimmed"."""
        border = {
            "selected": ColorPalette.ACCENT,
            "correct": ColorPalette.SUCCESS,
            "wrong": ColorPalette.ERROR,
        }.get(state, ColorPalette.BORDER).get(theme)
        opacity_color = ColorPalette.TEXT_SECONDARY if state == "dimmed" else ColorPalette.TEXT_PRIMARY
        return (
            f"QPushButton {{ text-align: left; padding: 12px; border-radius: 6px; "
            f"border: 2px solid {border}; "
            f"background-color: {ColorPalette.BACKGROUND_CARD.get(theme)}; "
            f"color: {opacity_color.get(theme)}; }}"
        )
