"""Helper functions for common dialog patterns in the quiz window."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget


def show_error(parent: QWidget | None, title: str, message: str) -> None:
    """Show error dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Error message
    """
    QMessageBox.critical(parent, title, message)


def confirm_leave_quiz(parent: QWidget) -> bool:
    """Ask before closing the window during an active quiz.

    Returns:
        True if the user wants to leave, False otherwise
    """
    reply = QMessageBox.question(
        parent,
        "Leave Quiz",
        "Your progress will be lost and nothing will be submitted. Leave anyway?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes
