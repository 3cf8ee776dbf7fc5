"""Domain models for the quiz portal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from quiz_portal.constants.quiz_constants import OPTION_LABELS


class SessionPhase(Enum):
    """Lifecycle state of a single quiz attempt."""

    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionPhase.COMPLETE, SessionPhase.ERROR)


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with two or more options."""

    id: str
    prompt: str
    options: tuple[str, ...]

    def option_labels(self) -> tuple[str, ...]:
        """Return the labels ("A", "B", ...) matching the option positions."""
        return tuple(label_for_index(index) for index in range(len(self.options)))


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """Outcome reported by a result sink.

    ``score`` is ``None`` when scoring is deferred (no answer key known).
    """

    accepted: bool
    score: int | None = None
    total: int | None = None

    @property
    def is_scored(self) -> bool:
        return self.score is not None


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a quiz session handed to presentation code."""

    phase: SessionPhase
    quiz_id: str | None
    cursor: int
    questions: tuple[Question, ...]
    answers: dict[str, str]
    remaining_seconds: int
    error_message: str | None = None
    receipt: SubmissionReceipt | None = None

    @property
    def current_question(self) -> Question | None:
        if not self.questions:
            return None
        return self.questions[self.cursor]

    @property
    def unanswered_count(self) -> int:
        return sum(1 for question in self.questions if question.id not in self.answers)


@dataclass(frozen=True, slots=True)
class QuizInfo:
    """Catalog entry describing when and for how long a quiz can be taken."""

    quiz_id: str
    title: str
    time_limit_minutes: int
    starts_at: datetime | None = None
    ends_at: datetime | None = None


@dataclass(slots=True)
class StoredSubmission:
    """A submission as recorded by a result sink."""

    quiz_id: str
    user_id: str
    answers: dict[str, str]
    submitted_at: datetime
    score: int | None = None
    total: int | None = None


def label_for_index(index: int) -> str:
    """Map an option position to its letter label."""
    if not 0 <= index < len(OPTION_LABELS):
        raise ValueError(f"Option index {index} has no label.")
    return OPTION_LABELS[index]
