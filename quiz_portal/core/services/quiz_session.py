"""State machine for one student's single timed attempt at one quiz.

Lifecycle::

    LOADING ──load ok──▶ IN_PROGRESS ──submit / timer hits 0──▶ SUBMITTING ──▶ COMPLETE
       │                      │                                     │
       └──not found──▶ ERROR ◀┘ close()                            └──sink failed──▶ ERROR

``submit()`` is the only way out of ``IN_PROGRESS`` towards persistence and it
checks the phase before doing anything, so a countdown tick reaching zero and
a click on "Submit" can race freely: the answers are sent exactly once.
"""

from __future__ import annotations

import asyncio
import logging

from quiz_portal.constants.quiz_constants import (
    SECONDS_PER_MINUTE,
    SESSION_CLOSED_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
)
from quiz_portal.core.errors import NotFoundError, SessionStateError, SubmissionError
from quiz_portal.core.models import Question, SessionPhase, SessionSnapshot, SubmissionReceipt
from quiz_portal.core.services.countdown import AsyncioCountdown, Countdown, CountdownFactory
from quiz_portal.core.services.question_store import QuestionStore
from quiz_portal.core.services.result_sink import ResultSink

logger = logging.getLogger(__name__)


class QuizSession:
    """Owns cursor, answers, countdown and the one-shot submission of an attempt."""

    def __init__(
        self,
        question_store: QuestionStore,
        result_sink: ResultSink,
        user_id: str,
        countdown_factory: CountdownFactory = AsyncioCountdown,
    ) -> None:
        self._question_store = question_store
        self._result_sink = result_sink
        self._user_id = user_id
        self._countdown_factory = countdown_factory

        self._phase = SessionPhase.LOADING
        self._quiz_id: str | None = None
        self._questions: tuple[Question, ...] = ()
        self._cursor: int = 0
        self._answers: dict[str, str] = {}
        self._remaining_seconds: int = 0
        self._error_message: str | None = None
        self._receipt: SubmissionReceipt | None = None
        self._countdown: Countdown | None = None
        self._submission: asyncio.Task[SubmissionReceipt | None] | None = None

    # --- Read-only state ---

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def quiz_id(self) -> str | None:
        return self._quiz_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def answers(self) -> dict[str, str]:
        return dict(self._answers)

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def receipt(self) -> SubmissionReceipt | None:
        return self._receipt

    @property
    def current_question(self) -> Question | None:
        if not self._questions:
            return None
        return self._questions[self._cursor]

    @property
    def is_countdown_active(self) -> bool:
        return self._countdown is not None and self._countdown.is_active

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self._phase,
            quiz_id=self._quiz_id,
            cursor=self._cursor,
            questions=self._questions,
            answers=dict(self._answers),
            remaining_seconds=self._remaining_seconds,
            error_message=self._error_message,
            receipt=self._receipt,
        )

    def unanswered_count(self) -> int:
        return sum(1 for question in self._questions if question.id not in self._answers)

    # --- Lifecycle ---

    async def load(self, quiz_id: str, time_limit_minutes: int) -> None:
        """Fetch the questions of ``quiz_id`` and start the countdown.

        Raises:
            SessionStateError: the session was already loaded once.
            ValueError: ``time_limit_minutes`` is not positive.
            NotFoundError: the quiz has no questions; the phase is ``ERROR``.
        """
        if self._quiz_id is not None:
            raise SessionStateError("A quiz session can only be loaded once.")
        if time_limit_minutes <= 0:
            raise ValueError("Time limit must be a positive number of minutes.")

        self._reset(quiz_id)
        logger.info("Loading quiz %s for %s", quiz_id, self._user_id)
        try:
            questions = await self._question_store.fetch_questions(quiz_id)
            if not questions:
                raise NotFoundError(f"No questions found for quiz '{quiz_id}'.")
        except NotFoundError as exc:
            self._enter_error(str(exc))
            raise
        except Exception:
            logger.exception("Question store failed for quiz %s", quiz_id)
            self._enter_error(f"Unable to load quiz '{quiz_id}'.")
            raise

        if self._phase is not SessionPhase.LOADING:
            logger.info("Quiz %s was closed while loading; discarding questions", quiz_id)
            return

        self._questions = tuple(questions)
        self._remaining_seconds = time_limit_minutes * SECONDS_PER_MINUTE
        self._phase = SessionPhase.IN_PROGRESS
        self._countdown = self._countdown_factory(self.tick)
        self._countdown.start()
        logger.info(
            "Quiz %s in progress: %d questions, %d seconds",
            quiz_id,
            len(self._questions),
            self._remaining_seconds,
        )

    def close(self) -> None:
        """Tear the session down when its view goes away.

        An unsubmitted attempt is abandoned (nothing is persisted). A
        submission already in flight is left to finish.
        """
        self._stop_countdown()
        if self._phase in (SessionPhase.LOADING, SessionPhase.IN_PROGRESS):
            logger.info("Quiz %s closed before submission", self._quiz_id)
            self._enter_error(SESSION_CLOSED_MESSAGE)

    # --- Mutations (IN_PROGRESS only) ---

    def set_cursor(self, index: int) -> bool:
        if self._phase is not SessionPhase.IN_PROGRESS:
            logger.debug("Ignoring cursor move in phase %s", self._phase.value)
            return False
        if not 0 <= index < len(self._questions):
            return False
        self._cursor = index
        return True

    def set_answer(self, question_id: str, option_label: str) -> bool:
        if self._phase is not SessionPhase.IN_PROGRESS:
            logger.debug("Ignoring answer for %s in phase %s", question_id, self._phase.value)
            return False
        if not any(question.id == question_id for question in self._questions):
            logger.warning("Ignoring answer for unknown question %s in quiz %s", question_id, self._quiz_id)
            return False
        self._answers[question_id] = option_label
        return True

    def tick(self) -> None:
        """Advance the countdown by one second; auto-submits at zero."""
        if self._phase is not SessionPhase.IN_PROGRESS or self._remaining_seconds <= 0:
            return
        self._remaining_seconds -= 1
        if self._remaining_seconds == 0:
            logger.info("Time limit reached for quiz %s; submitting automatically", self._quiz_id)
            self.submit()

    def submit(self) -> asyncio.Task[SubmissionReceipt | None] | None:
        """Submit the answers once.

        Returns the submission task, which resolves to the receipt or to
        ``None`` when persistence failed. Calls after the first one return the
        same task; ``None`` means nothing was ever submitted.
        """
        if self._phase is not SessionPhase.IN_PROGRESS:
            logger.debug("Ignoring submit in phase %s", self._phase.value)
            return self._submission
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Cannot submit quiz %s: no running event loop", self._quiz_id)
            self._enter_error(SUBMISSION_FAILED_MESSAGE)
            return None

        self._phase = SessionPhase.SUBMITTING
        self._stop_countdown()
        answers = dict(self._answers)
        logger.info(
            "Submitting quiz %s for %s (%d answered, %d unanswered)",
            self._quiz_id,
            self._user_id,
            len(answers),
            self.unanswered_count(),
        )
        self._submission = loop.create_task(
            self._persist(self._quiz_id, answers, tuple(question.id for question in self._questions)),
            name=f"quiz-submit-{self._quiz_id}",
        )
        return self._submission

    # --- Internals ---

    async def _persist(
        self, quiz_id: str, answers: dict[str, str], question_ids: tuple[str, ...]
    ) -> SubmissionReceipt | None:
        try:
            receipt = await self._result_sink.submit_answers(
                quiz_id, self._user_id, answers, question_ids=question_ids
            )
            if not receipt.accepted:
                raise SubmissionError("The result store rejected the submission.")
        except SubmissionError as exc:
            logger.warning("Submission of quiz %s failed: %s", quiz_id, exc)
            self._enter_error(str(exc) or SUBMISSION_FAILED_MESSAGE)
            return None
        except Exception:
            logger.exception("Result sink crashed while submitting quiz %s", quiz_id)
            self._enter_error(SUBMISSION_FAILED_MESSAGE)
            return None

        self._receipt = receipt
        self._phase = SessionPhase.COMPLETE
        logger.info("Quiz %s complete for %s (score=%s)", quiz_id, self._user_id, receipt.score)
        return receipt

    def _reset(self, quiz_id: str) -> None:
        self._stop_countdown()
        self._phase = SessionPhase.LOADING
        self._quiz_id = quiz_id
        self._questions = ()
        self._cursor = 0
        self._answers = {}
        self._remaining_seconds = 0
        self._error_message = None
        self._receipt = None
        self._submission = None

    def _enter_error(self, message: str) -> None:
        self._stop_countdown()
        self._phase = SessionPhase.ERROR
        self._error_message = message

    def _stop_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.stop()
            self._countdown = None
