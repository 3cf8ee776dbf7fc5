"""Helper functions for common dialog patterns in the quiz window."""

from __future__ import annotations

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QMessageBox, QWidget

from quiz_portal.constants.ui_constants import (
    SUBMIT_DIALOG_TEXT,
    SUBMIT_DIALOG_TITLE,
    UNANSWERED_WARNING_TEMPLATE,
)


def _apply_optional_font(widget: QWidget, font_point_size: int | None) -> None:
    """Apply font size to a widget when requested."""
    if font_point_size is None or font_point_size <= 0:
        return

    font: QFont = widget.font()
    font.setPointSize(font_point_size)
    widget.setFont(font)


def confirm_submit(parent: QWidget, unanswered_count: int) -> bool:
    """Ask the student to confirm the final submission.

    Unanswered questions are mentioned but never block the submission.

    Args:
        parent: Parent widget for the dialog
        unanswered_count: Number of questions without an answer

    Returns:
        True if the student confirmed, False otherwise
    """
    text = SUBMIT_DIALOG_TEXT
    if unanswered_count > 0:
        text = f"{UNANSWERED_WARNING_TEMPLATE.format(count=unanswered_count)}\n\n{text}"
    reply = QMessageBox.question(
        parent,
        SUBMIT_DIALOG_TITLE,
        text,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def show_error(parent: QWidget, title: str, message: str) -> None:
    """Show error dialog."""
    QMessageBox.critical(parent, title, message)


def show_info(
    parent: QWidget,
    title: str,
    message: str,
    *,
    font_point_size: int | None = None,
) -> None:
    """Show information dialog.

    Args:
        parent: Parent widget for the dialog
        title: Dialog title
        message: Information message
        font_point_size: Optional font size for the dialog text
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Information)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)
    msg_box.setStandardButtons(QMessageBox.Ok)
    _apply_optional_font(msg_box, font_point_size)
    msg_box.exec()
