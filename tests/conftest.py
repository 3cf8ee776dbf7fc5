"""
Pytest configuration and shared fixtures for quiz portal tests.
"""

import pytest

from quiz_portal.core.models import Question
from quiz_portal.core.services.question_store import InMemoryQuestionStore
from quiz_portal.core.services.quiz_session import QuizSession
from quiz_portal.core.services.result_sink import InMemoryResultSink


class ManualCountdown:
    """Countdown driven by the test instead of a clock."""

    def __init__(self, on_tick):
        self.on_tick = on_tick
        self.active = False
        self.start_calls = 0

    @property
    def is_active(self) -> bool:
        return self.active

    def start(self) -> None:
        self.active = True
        self.start_calls += 1

    def stop(self) -> None:
        self.active = False

    def fire(self, count: int = 1) -> None:
        """Deliver up to ``count`` ticks, stopping once the countdown is stopped."""
        for _ in range(count):
            if not self.active:
                break
            self.on_tick()


class CountdownRecorder:
    """Countdown factory remembering every countdown it created."""

    def __init__(self):
        self.created: list[ManualCountdown] = []

    def __call__(self, on_tick) -> ManualCountdown:
        countdown = ManualCountdown(on_tick)
        self.created.append(countdown)
        return countdown

    @property
    def latest(self) -> ManualCountdown:
        return self.created[-1]


class FakeClock:
    """Monotonic clock the test moves forward by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_question_records(count: int) -> list[dict]:
    """Question records in the loose shape a database row would have."""
    return [
        {
            "id": f"q{index}",
            "question": f"Question {index}?",
            "options": ["Alpha", "Beta", "Gamma", "Delta"],
            "correct_answer": "A",
        }
        for index in range(1, count + 1)
    ]


def make_questions(count: int) -> list[Question]:
    return [
        Question(id=f"q{index}", prompt=f"Question {index}?", options=("Alpha", "Beta", "Gamma"))
        for index in range(1, count + 1)
    ]


@pytest.fixture
def countdowns():
    """Fixture providing a recording countdown factory."""
    return CountdownRecorder()


@pytest.fixture
def question_store():
    """Fixture providing an in-memory store with a five question quiz."""
    store = InMemoryQuestionStore()
    store.add_quiz("quiz-1", make_question_records(5))
    return store


@pytest.fixture
def result_sink(question_store):
    """Fixture providing an in-memory sink that scores against the store's answer keys."""
    return InMemoryResultSink(answer_keys=question_store.answer_key)


@pytest.fixture
def session(question_store, result_sink, countdowns):
    """Fixture providing a fresh, unloaded quiz session."""
    return QuizSession(question_store, result_sink, user_id="21CS001", countdown_factory=countdowns)


@pytest.fixture
def clock():
    """Fixture providing a hand-driven monotonic clock."""
    return FakeClock()
