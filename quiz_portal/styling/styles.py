"""Centralized Qt stylesheets for the quiz window."""

from .color_palette import ColorPalette, Theme


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
                background-color: {ColorPalette.BUTTON_SECONDARY_BG.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};
            }}
            QPushButton:checked {{
                background-color: {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
                color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)};
                border: 1px solid {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
            }}
            QPushButton:disabled {{
                color: {ColorPalette.TEXT_SECONDARY.get(theme)};
            }}
            QGroupBox {{
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 6px;
                margin-top: 6px;
                padding-top: 10px;
            }}
        """

    @staticmethod
    def get_navigator_button_style(answered: bool, current: bool, theme: Theme = Theme.LIGHT) -> str:
        background = (
            ColorPalette.QUESTION_ATTEMPTED if answered else ColorPalette.QUESTION_UNATTEMPTED
        ).get(theme)
        text = ColorPalette.BUTTON_PRIMARY_TEXT.get(theme) if answered else ColorPalette.TEXT_PRIMARY.get(theme)
        border = ColorPalette.BORDER_FOCUS.get(theme) if current else background
        return (
            f"background-color: {background}; color: {text}; "
            f"border: 2px solid {border}; border-radius: 4px; padding: 6px 0;"
        )

    @staticmethod
    def get_timer_style(expiring: bool, theme: Theme = Theme.LIGHT) -> str:
        color = (ColorPalette.TIMER_EXPIRING if expiring else ColorPalette.TIMER_NORMAL).get(theme)
        return f"font-size: 16pt; font-weight: bold; color: {color};"

    @staticmethod
    def get_large_label_style() -> str:
        return "font-size: 16pt; font-weight: bold;"
