"""Grid of numbered buttons for jumping between questions."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtWidgets import QGridLayout, QGroupBox, QPushButton, QVBoxLayout, QWidget

from quiz_portal.constants.ui_constants import NAVIGATOR_COLUMNS, NAVIGATOR_TITLE
from quiz_portal.core.models import SessionSnapshot
from quiz_portal.styling.color_palette import Theme
from quiz_portal.styling.styles import Styles


class NavigatorPanel(QGroupBox):
    """Shows which questions were attempted and which one is current."""

    def __init__(
        self,
        on_jump: Callable[[int], None],
        theme: Theme = Theme.LIGHT,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(NAVIGATOR_TITLE, parent)
        self._on_jump = on_jump
        self._theme = theme
        self._buttons: list[QPushButton] = []

        layout = QVBoxLayout()
        self.setLayout(layout)
        self._grid = QGridLayout()
        layout.addLayout(self._grid)
        layout.addStretch()

    def update_from_snapshot(self, snapshot: SessionSnapshot) -> None:
        if len(self._buttons) != len(snapshot.questions):
            self._rebuild(len(snapshot.questions))
        for index, (button, question) in enumerate(zip(self._buttons, snapshot.questions)):
            button.setStyleSheet(
                Styles.get_navigator_button_style(
                    answered=question.id in snapshot.answers,
                    current=index == snapshot.cursor,
                    theme=self._theme,
                )
            )

    def set_navigation_enabled(self, enabled: bool) -> None:
        for button in self._buttons:
            button.setEnabled(enabled)

    def _rebuild(self, count: int) -> None:
        for button in self._buttons:
            self._grid.removeWidget(button)
            button.deleteLater()
        self._buttons = []
        for index in range(count):
            button = QPushButton(str(index + 1), self)
            button.clicked.connect(lambda _checked=False, i=index: self._on_jump(i))
            self._grid.addWidget(button, index // NAVIGATOR_COLUMNS, index % NAVIGATOR_COLUMNS)
            self._buttons.append(button)
