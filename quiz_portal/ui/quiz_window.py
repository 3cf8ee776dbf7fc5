"""Qt main window for taking one timed quiz."""

from __future__ import annotations

import asyncio
from enum import Enum, auto
import logging

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from quiz_portal.constants.quiz_constants import LOW_TIME_WARNING_SECONDS
from quiz_portal.constants.ui_constants import (
    LOADING_MESSAGE,
    QUESTION_COUNTER_TEMPLATE,
    QUIZ_LOAD_FAILED_MESSAGE,
    QUIZ_NOT_FOUND_TITLE,
    RESULT_PENDING_MESSAGE,
    RESULT_SCORE_TEMPLATE,
    RESULT_TITLE,
    RETURN_BUTTON,
    SUBMITTING_MESSAGE,
    TIME_UP_MESSAGE,
    TIME_UP_TITLE,
    WINDOW_TITLE,
)
from quiz_portal.core.errors import QuizPortalError
from quiz_portal.core.models import SessionPhase, SubmissionReceipt
from quiz_portal.core.services.countdown import TickCallback
from quiz_portal.core.services.question_store import QuestionStore
from quiz_portal.core.services.quiz_catalog import QuizCatalog
from quiz_portal.core.services.quiz_session import QuizSession
from quiz_portal.core.services.result_sink import ResultSink
from quiz_portal.styling.color_palette import Theme
from quiz_portal.styling.styles import Styles
from quiz_portal.ui.components.navigator_panel import NavigatorPanel
from quiz_portal.ui.components.question_panel import QuestionPanel
from quiz_portal.ui.countdown_timer import QtCountdown
from quiz_portal.ui.dialog_helpers import confirm_submit, show_error, show_info

logger = logging.getLogger(__name__)


class WindowPage(Enum):
    """Which page of the quiz window is visible."""

    LOADING = auto()
    QUIZ = auto()
    RESULT = auto()


def format_remaining_time(seconds: int) -> str:
    """Format seconds as MM:SS."""
    minutes, rest = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{rest:02d}"


def describe_receipt(receipt: SubmissionReceipt | None) -> str:
    if receipt is None or not receipt.is_scored:
        return RESULT_PENDING_MESSAGE
    return RESULT_SCORE_TEMPLATE.format(score=receipt.score, total=receipt.total)


class QuizWindow(QMainWindow):
    """Window owning exactly one ``QuizSession`` for its whole lifetime.

    Must run under ``QtAsyncio`` so the session's loading and submission
    coroutines share the Qt event loop with the countdown.
    """

    def __init__(
        self,
        catalog: QuizCatalog,
        question_store: QuestionStore,
        result_sink: ResultSink,
        quiz_id: str,
        student_id: str,
        theme: Theme = Theme.LIGHT,
        font_size: int = 14,
    ) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)

        self._catalog = catalog
        self._quiz_id = quiz_id
        self._student_id = student_id
        self._theme = theme
        self._font_size = font_size
        self._watched_submission: asyncio.Task | None = None
        self._session = QuizSession(
            question_store,
            result_sink,
            user_id=student_id,
            countdown_factory=self._create_countdown,
        )

        self._build_ui()
        self.setStyleSheet(Styles.get_main_window_style(theme))
        self._set_page(WindowPage.LOADING)

    @property
    def session(self) -> QuizSession:
        return self._session

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        header_row = QHBoxLayout()
        self.counter_label = QLabel("", self)
        self.counter_label.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(self.counter_label)
        header_row.addStretch()
        self.timer_label = QLabel("", self)
        header_row.addWidget(self.timer_label)
        root_layout.addLayout(header_row)

        self.page_stack = QStackedWidget(self)

        self.loading_label = QLabel(LOADING_MESSAGE, self)
        self.loading_label.setAlignment(Qt.AlignCenter)
        self.page_stack.addWidget(self.loading_label)

        quiz_page = QWidget(self)
        quiz_layout = QHBoxLayout()
        quiz_page.setLayout(quiz_layout)
        self.question_panel = QuestionPanel(
            on_select=self._handle_select,
            on_move=self._handle_move,
            on_submit=self._handle_submit,
            font_size=self._font_size,
            theme=self._theme,
            parent=quiz_page,
        )
        quiz_layout.addWidget(self.question_panel, stretch=3)
        self.navigator_panel = NavigatorPanel(on_jump=self._handle_move, theme=self._theme, parent=quiz_page)
        quiz_layout.addWidget(self.navigator_panel, stretch=1)
        self.page_stack.addWidget(quiz_page)

        result_page = QWidget(self)
        result_layout = QVBoxLayout()
        result_page.setLayout(result_layout)
        self.result_title = QLabel(RESULT_TITLE, result_page)
        self.result_title.setStyleSheet(Styles.get_large_label_style())
        self.result_title.setAlignment(Qt.AlignCenter)
        result_layout.addWidget(self.result_title)
        self.result_label = QLabel("", result_page)
        self.result_label.setWordWrap(True)
        self.result_label.setAlignment(Qt.AlignCenter)
        result_layout.addWidget(self.result_label)
        self.return_button = QPushButton(RETURN_BUTTON, result_page)
        self.return_button.clicked.connect(self.close)
        result_layout.addWidget(self.return_button, alignment=Qt.AlignCenter)
        self.page_stack.addWidget(result_page)

        root_layout.addWidget(self.page_stack, stretch=1)

    def _set_page(self, page: WindowPage) -> None:
        index_map = {
            WindowPage.LOADING: 0,
            WindowPage.QUIZ: 1,
            WindowPage.RESULT: 2,
        }
        self.page_stack.setCurrentIndex(index_map[page])
        self.counter_label.setVisible(page == WindowPage.QUIZ)
        self.timer_label.setVisible(page == WindowPage.QUIZ)

    # --- Loading ---

    def begin(self) -> None:
        """Start loading the quiz; call once the asyncio loop is running."""
        asyncio.ensure_future(self._load_quiz())

    async def _load_quiz(self) -> None:
        try:
            quiz = self._catalog.check_availability(self._quiz_id, self._student_id)
            await self._session.load(quiz.quiz_id, quiz.time_limit_minutes)
        except QuizPortalError as exc:
            logger.warning("Could not start quiz %s: %s", self._quiz_id, exc)
            QTimer.singleShot(0, lambda message=str(exc): self._show_load_error(message))
            return
        except Exception:
            logger.exception("Loading quiz %s failed", self._quiz_id)
            QTimer.singleShot(0, lambda: self._show_load_error(QUIZ_LOAD_FAILED_MESSAGE))
            return
        if self._session.phase is SessionPhase.IN_PROGRESS:
            self._set_page(WindowPage.QUIZ)
            self._refresh()

    def _show_load_error(self, message: str) -> None:
        show_error(self, QUIZ_NOT_FOUND_TITLE, message)
        self.close()

    # --- Session interaction ---

    def _create_countdown(self, on_tick: TickCallback) -> QtCountdown:
        countdown = QtCountdown(on_tick, parent=self)
        countdown.ticked.connect(self._handle_countdown_tick)
        return countdown

    def _handle_select(self, question_id: str, option_label: str) -> None:
        self._session.set_answer(question_id, option_label)
        self._refresh()

    def _handle_move(self, index: int) -> None:
        self._session.set_cursor(index)
        self._refresh()

    def _handle_submit(self) -> None:
        if not confirm_submit(self, self._session.unanswered_count()):
            return
        self._watch_submission(self._session.submit(), automatic=False)
        self._refresh()

    def _handle_countdown_tick(self) -> None:
        if self._session.phase is SessionPhase.SUBMITTING:
            # The tick that reached zero already submitted; this returns that task.
            self._watch_submission(self._session.submit(), automatic=True)
        self._refresh()

    def _watch_submission(self, task: asyncio.Task | None, automatic: bool) -> None:
        if task is None or task is self._watched_submission:
            return
        self._watched_submission = task
        task.add_done_callback(lambda _task: self._handle_submission_finished())
        if automatic:
            QTimer.singleShot(
                0,
                lambda: show_info(self, TIME_UP_TITLE, TIME_UP_MESSAGE, font_point_size=self._font_size),
            )

    def _handle_submission_finished(self) -> None:
        snapshot = self._session.snapshot()
        if snapshot.phase is SessionPhase.COMPLETE:
            self.result_title.setText(RESULT_TITLE)
            self.result_label.setText(describe_receipt(snapshot.receipt))
        else:
            self.result_title.setText(WINDOW_TITLE)
            self.result_label.setText(snapshot.error_message or "")
        self._set_page(WindowPage.RESULT)

    def _refresh(self) -> None:
        snapshot = self._session.snapshot()
        if not snapshot.questions:
            return
        self.counter_label.setText(
            QUESTION_COUNTER_TEMPLATE.format(number=snapshot.cursor + 1, total=len(snapshot.questions))
        )
        if snapshot.phase is SessionPhase.SUBMITTING:
            self.timer_label.setText(SUBMITTING_MESSAGE)
        else:
            self.timer_label.setText(format_remaining_time(snapshot.remaining_seconds))
        self.timer_label.setStyleSheet(
            Styles.get_timer_style(snapshot.remaining_seconds < LOW_TIME_WARNING_SECONDS, self._theme)
        )
        self.question_panel.update_from_snapshot(snapshot)
        self.navigator_panel.update_from_snapshot(snapshot)
        self.navigator_panel.set_navigation_enabled(snapshot.phase is SessionPhase.IN_PROGRESS)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        self._session.close()
        super().closeEvent(event)
