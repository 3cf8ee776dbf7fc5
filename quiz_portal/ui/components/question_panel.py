"""Component showing the current question, its options and navigation buttons."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QHBoxLayout, QPushButton, QVBoxLayout, QWidget

from quiz_portal.constants.ui_constants import NEXT_BUTTON, PREV_BUTTON, SUBMIT_BUTTON
from quiz_portal.core.models import SessionPhase, SessionSnapshot
from quiz_portal.styling.color_palette import Theme
from quiz_portal.ui.question_renderer import render_question_document


class QuestionPanel(QWidget):
    """UI component for answering one question at a time."""

    def __init__(
        self,
        on_select: Callable[[str, str], None],
        on_move: Callable[[int], None],
        on_submit: Callable[[], None],
        font_size: int = 14,
        theme: Theme = Theme.LIGHT,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._on_select = on_select
        self._on_move = on_move
        self._on_submit = on_submit
        self._font_size = font_size
        self._theme = theme
        self._rendered_question_id: str | None = None
        self._option_buttons: list[QPushButton] = []
        self._cursor = 0

        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        self.prompt_view = QWebEngineView(self)
        self.prompt_view.setMinimumHeight(180)
        layout.addWidget(self.prompt_view, stretch=1)

        self._options_layout = QVBoxLayout()
        layout.addLayout(self._options_layout)

        button_row = QHBoxLayout()
        self.prev_button = QPushButton(PREV_BUTTON, self)
        self.prev_button.clicked.connect(lambda: self._on_move(self._cursor - 1))
        button_row.addWidget(self.prev_button)
        button_row.addStretch()
        self.next_button = QPushButton(NEXT_BUTTON, self)
        self.next_button.clicked.connect(lambda: self._on_move(self._cursor + 1))
        button_row.addWidget(self.next_button)
        self.submit_button = QPushButton(SUBMIT_BUTTON, self)
        self.submit_button.clicked.connect(self._on_submit)
        button_row.addWidget(self.submit_button)
        layout.addLayout(button_row)

    def update_from_snapshot(self, snapshot: SessionSnapshot) -> None:
        question = snapshot.current_question
        if question is None:
            return
        self._cursor = snapshot.cursor
        if question.id != self._rendered_question_id:
            self._rendered_question_id = question.id
            self.prompt_view.setHtml(render_question_document(question, self._font_size, self._theme))
            self._rebuild_options(question.id, question.option_labels(), question.options)

        selected = snapshot.answers.get(question.id)
        in_progress = snapshot.phase is SessionPhase.IN_PROGRESS
        for button in self._option_buttons:
            button.setChecked(button.property("option_label") == selected)
            button.setEnabled(in_progress)

        last_index = len(snapshot.questions) - 1
        self.prev_button.setEnabled(in_progress and snapshot.cursor > 0)
        self.next_button.setEnabled(in_progress and snapshot.cursor < last_index)
        self.submit_button.setEnabled(in_progress)

    def _rebuild_options(self, question_id: str, labels: tuple[str, ...], options: tuple[str, ...]) -> None:
        for button in self._option_buttons:
            self._options_layout.removeWidget(button)
            button.deleteLater()
        self._option_buttons = []
        for label, text in zip(labels, options):
            button = QPushButton(f"{label}.  {text}", self)
            button.setCheckable(True)
            button.setProperty("option_label", label)
            button.setStyleSheet(f"text-align: left; font-size: {self._font_size}pt;")
            button.clicked.connect(
                lambda _checked=False, qid=question_id, chosen=label: self._on_select(qid, chosen)
            )
            self._options_layout.addWidget(button)
            self._option_buttons.append(button)
