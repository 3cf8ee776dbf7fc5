"""Qt UI components for the desktop quiz client."""

from .countdown_timer import QtCountdown
from .dialog_helpers import confirm_submit, show_error, show_info
from .question_renderer import render_question_document
from .quiz_window import QuizWindow

__all__ = [
    "QuizWindow",
    "QtCountdown",
    "confirm_submit",
    "show_error",
    "show_info",
    "render_question_document",
]
