"""
Tests for the quiz session state machine.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import make_questions
from quiz_portal.constants.quiz_constants import SESSION_CLOSED_MESSAGE, SUBMISSION_FAILED_MESSAGE
from quiz_portal.core.errors import NotFoundError, SessionStateError, SubmissionError
from quiz_portal.core.models import SessionPhase, SubmissionReceipt
from quiz_portal.core.services.quiz_session import QuizSession


def _mock_store(count: int = 5) -> AsyncMock:
    store = AsyncMock()
    store.fetch_questions.return_value = make_questions(count)
    return store


def _mock_sink(receipt: SubmissionReceipt | None = None) -> AsyncMock:
    sink = AsyncMock()
    sink.submit_answers.return_value = receipt or SubmissionReceipt(accepted=True)
    return sink


class TestLoad:
    """Loading questions and starting the countdown."""

    @pytest.mark.asyncio
    async def test_load_starts_countdown_with_full_time(self, session, countdowns):
        assert session.phase is SessionPhase.LOADING

        await session.load("quiz-1", 30)

        assert session.phase is SessionPhase.IN_PROGRESS
        assert session.remaining_seconds == 1800
        assert session.cursor == 0
        assert len(session.questions) == 5
        assert session.unanswered_count() == 5
        assert len(countdowns.created) == 1
        assert countdowns.latest.is_active
        assert session.is_countdown_active

    @pytest.mark.asyncio
    async def test_unknown_quiz_enters_error_without_countdown(self, session, countdowns):
        with pytest.raises(NotFoundError):
            await session.load("missing", 10)

        assert session.phase is SessionPhase.ERROR
        assert "missing" in session.error_message
        assert countdowns.created == []
        assert session.set_cursor(0) is False
        assert session.submit() is None

    @pytest.mark.asyncio
    async def test_store_returning_no_questions_is_not_found(self, countdowns):
        store = _mock_store(0)
        session = QuizSession(store, _mock_sink(), user_id="s1", countdown_factory=countdowns)

        with pytest.raises(NotFoundError):
            await session.load("quiz-1", 10)

        assert session.phase is SessionPhase.ERROR
        assert countdowns.created == []

    @pytest.mark.asyncio
    async def test_store_failure_enters_error(self, countdowns):
        store = AsyncMock()
        store.fetch_questions.side_effect = RuntimeError("connection reset")
        session = QuizSession(store, _mock_sink(), user_id="s1", countdown_factory=countdowns)

        with pytest.raises(RuntimeError):
            await session.load("quiz-1", 10)

        assert session.phase is SessionPhase.ERROR
        assert session.error_message
        assert countdowns.created == []

    @pytest.mark.asyncio
    async def test_load_twice_is_rejected(self, session):
        await session.load("quiz-1", 10)

        with pytest.raises(SessionStateError):
            await session.load("quiz-1", 10)

    @pytest.mark.asyncio
    async def test_load_rejects_non_positive_time_limit(self, session, countdowns):
        with pytest.raises(ValueError):
            await session.load("quiz-1", 0)

        assert session.phase is SessionPhase.LOADING
        assert countdowns.created == []

    @pytest.mark.asyncio
    async def test_close_while_loading_discards_questions(self, countdowns):
        release = asyncio.Event()

        async def slow_fetch(quiz_id):
            await release.wait()
            return make_questions(3)

        store = AsyncMock()
        store.fetch_questions.side_effect = slow_fetch
        session = QuizSession(store, _mock_sink(), user_id="s1", countdown_factory=countdowns)

        load_task = asyncio.create_task(session.load("quiz-1", 10))
        await asyncio.sleep(0)
        session.close()
        release.set()
        await load_task

        assert session.phase is SessionPhase.ERROR
        assert session.questions == ()
        assert countdowns.created == []


class TestNavigationAndAnswers:
    """Cursor moves and option selection while the quiz is in progress."""

    @pytest.mark.asyncio
    async def test_set_cursor_respects_bounds(self, session):
        await session.load("quiz-1", 10)

        assert session.set_cursor(4) is True
        assert session.cursor == 4
        assert session.set_cursor(5) is False
        assert session.set_cursor(-1) is False
        assert session.cursor == 4
        assert session.current_question.id == "q5"

    @pytest.mark.asyncio
    async def test_set_answer_is_idempotent_and_overwrites(self, session):
        await session.load("quiz-1", 10)

        session.set_answer("q1", "A")
        session.set_answer("q1", "A")
        assert session.answers == {"q1": "A"}
        assert session.unanswered_count() == 4

        session.set_answer("q1", "B")
        assert session.answers == {"q1": "B"}
        assert session.unanswered_count() == 4

    @pytest.mark.asyncio
    async def test_answer_for_unknown_question_is_ignored(self, session):
        await session.load("quiz-1", 10)

        assert session.set_answer("q99", "A") is False
        assert session.answers == {}

    @pytest.mark.asyncio
    async def test_answers_property_is_a_copy(self, session):
        await session.load("quiz-1", 10)
        session.set_answer("q2", "C")

        answers = session.answers
        answers["q3"] = "A"

        assert session.answers == {"q2": "C"}

    @pytest.mark.asyncio
    async def test_unanswered_count_matches_snapshot(self, session):
        await session.load("quiz-1", 10)
        session.set_answer("q1", "A")
        session.set_answer("q3", "B")

        snapshot = session.snapshot()

        assert session.unanswered_count() == 3
        assert snapshot.unanswered_count == 3
        assert snapshot.current_question.id == "q1"

    @pytest.mark.asyncio
    async def test_mutations_are_ignored_once_submitting(self, session):
        await session.load("quiz-1", 10)
        session.set_answer("q1", "A")
        task = session.submit()

        assert session.set_answer("q2", "B") is False
        assert session.set_cursor(1) is False
        assert session.cursor == 0

        await task
        assert session.set_answer("q2", "B") is False
        assert session.answers == {"q1": "A"}


class TestCountdown:
    """Ticking and automatic submission."""

    @pytest.mark.asyncio
    async def test_remaining_time_never_increases(self, session, countdowns):
        await session.load("quiz-1", 1)
        seen = [session.remaining_seconds]

        for _ in range(70):
            session.tick()
            seen.append(session.remaining_seconds)

        assert seen == sorted(seen, reverse=True)
        assert seen[-1] == 0
        await session.submit()

    @pytest.mark.asyncio
    async def test_timeout_submits_automatically_once(self, countdowns):
        sink = _mock_sink()
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 1)
        session.set_answer("q2", "C")

        countdowns.latest.fire(60)

        assert session.phase is SessionPhase.SUBMITTING
        assert session.remaining_seconds == 0
        assert not countdowns.latest.is_active

        countdowns.latest.on_tick()
        receipt = await session.submit()

        assert receipt == SubmissionReceipt(accepted=True)
        assert session.phase is SessionPhase.COMPLETE
        sink.submit_answers.assert_awaited_once_with(
            "quiz-1", "s1", {"q2": "C"}, question_ids=("q1", "q2", "q3", "q4", "q5")
        )

    @pytest.mark.asyncio
    async def test_user_submit_racing_last_tick_submits_once(self, countdowns):
        sink = _mock_sink()
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 1)
        countdown = countdowns.latest
        countdown.fire(59)

        task = session.submit()
        countdown.on_tick()
        again = session.submit()
        await task

        assert again is task
        assert session.remaining_seconds == 1
        assert session.phase is SessionPhase.COMPLETE
        sink.submit_answers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tick_is_ignored_outside_in_progress(self, session):
        session.tick()

        assert session.remaining_seconds == 0
        assert session.phase is SessionPhase.LOADING

    def test_timeout_without_event_loop_enters_error(self, countdowns):
        sink = _mock_sink()
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        asyncio.run(session.load("quiz-1", 1))
        countdown = countdowns.latest

        countdown.fire(60)

        assert session.phase is SessionPhase.ERROR
        assert session.error_message == SUBMISSION_FAILED_MESSAGE
        assert not countdown.is_active
        assert session.submit() is None
        sink.submit_answers.assert_not_awaited()


class TestSubmit:
    """Submitting answers to the result sink."""

    @pytest.mark.asyncio
    async def test_submit_persists_answers_and_completes(self, session, result_sink):
        await session.load("quiz-1", 30)
        session.set_answer("q1", "A")

        receipt = await session.submit()

        assert session.phase is SessionPhase.COMPLETE
        assert receipt.score == 1
        assert receipt.total == 5
        assert session.receipt is receipt
        submissions = result_sink.get_submissions()
        assert len(submissions) == 1
        assert submissions[0].answers == {"q1": "A"}
        assert submissions[0].user_id == "21CS001"

    @pytest.mark.asyncio
    async def test_submit_stops_countdown(self, session, countdowns):
        await session.load("quiz-1", 30)

        task = session.submit()

        assert session.phase is SessionPhase.SUBMITTING
        assert not countdowns.latest.is_active
        await task

    @pytest.mark.asyncio
    async def test_submit_before_load_does_nothing(self, session):
        assert session.submit() is None
        assert session.phase is SessionPhase.LOADING

    @pytest.mark.asyncio
    async def test_repeated_submit_returns_same_task(self, countdowns):
        sink = _mock_sink()
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 30)

        first = session.submit()
        second = session.submit()
        await first
        third = session.submit()

        assert first is second is third
        sink.submit_answers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sink_error_enters_error_without_retry(self, countdowns):
        sink = _mock_sink()
        sink.submit_answers.side_effect = SubmissionError("results store is read-only")
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 30)

        receipt = await session.submit()

        assert receipt is None
        assert session.phase is SessionPhase.ERROR
        assert session.error_message == "results store is read-only"
        assert session.receipt is None
        await session.submit()
        sink.submit_answers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_sink_exception_enters_error(self, countdowns):
        sink = _mock_sink()
        sink.submit_answers.side_effect = RuntimeError("socket closed")
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 30)

        assert await session.submit() is None
        assert session.phase is SessionPhase.ERROR
        assert session.error_message == SUBMISSION_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_rejected_receipt_enters_error(self, countdowns):
        sink = _mock_sink(SubmissionReceipt(accepted=False))
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 30)

        await session.submit()

        assert session.phase is SessionPhase.ERROR
        assert session.receipt is None

    @pytest.mark.asyncio
    async def test_duplicate_submission_is_reported_as_error(self, question_store, result_sink, countdowns):
        first = QuizSession(question_store, result_sink, user_id="s1", countdown_factory=countdowns)
        second = QuizSession(question_store, result_sink, user_id="s1", countdown_factory=countdowns)
        await first.load("quiz-1", 10)
        await second.load("quiz-1", 10)

        await first.submit()
        await second.submit()

        assert first.phase is SessionPhase.COMPLETE
        assert second.phase is SessionPhase.ERROR
        assert len(result_sink.get_submissions()) == 1


class TestClose:
    """Tearing a session down."""

    @pytest.mark.asyncio
    async def test_close_while_in_progress_abandons_attempt(self, countdowns):
        sink = _mock_sink()
        session = QuizSession(_mock_store(), sink, user_id="s1", countdown_factory=countdowns)
        await session.load("quiz-1", 30)
        session.set_answer("q1", "A")

        session.close()

        assert session.phase is SessionPhase.ERROR
        assert session.error_message == SESSION_CLOSED_MESSAGE
        assert not countdowns.latest.is_active
        assert session.submit() is None
        sink.submit_answers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_during_submission_lets_it_finish(self, session):
        await session.load("quiz-1", 30)
        task = session.submit()

        session.close()
        await task

        assert session.phase is SessionPhase.COMPLETE

    @pytest.mark.asyncio
    async def test_close_after_completion_keeps_result(self, session):
        await session.load("quiz-1", 30)
        await session.submit()

        session.close()

        assert session.phase is SessionPhase.COMPLETE
        assert session.receipt is not None
