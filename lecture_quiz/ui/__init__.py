"""Qt UI for taking quizzes."""

from .dialog_helpers import confirm_leave_quiz, show_error
from .qt_scheduler import QtScheduler
from .quiz_window import QuizWindow

__all__ = [
    "QtScheduler",
    "QuizWindow",
    "confirm_leave_quiz",
    "show_error",
]
