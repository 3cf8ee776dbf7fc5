"""Catalog of quizzes a student can start, with their time limits and windows."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone
import json
import logging
from pathlib import Path

from quiz_portal.core.errors import NotFoundError, QuizImportError, QuizUnavailableError
from quiz_portal.core.models import QuizInfo

logger = logging.getLogger(__name__)

SubmissionLookup = Callable[[str, str], bool]


class QuizCatalog:
    """Looks up quiz metadata and decides whether a student may start a quiz."""

    def __init__(
        self,
        quizzes: Iterable[QuizInfo] = (),
        has_submitted: SubmissionLookup | None = None,
    ) -> None:
        self._quizzes: dict[str, QuizInfo] = {}
        self._has_submitted = has_submitted
        for quiz in quizzes:
            self.add_quiz(quiz)

    @classmethod
    def from_file(cls, catalog_path: Path, has_submitted: SubmissionLookup | None = None) -> "QuizCatalog":
        """Load a ``quizzes.json`` file (a list of quiz objects)."""
        try:
            payload = json.loads(catalog_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise QuizImportError(f"{catalog_path.name} is not valid JSON.") from exc
        if not isinstance(payload, list):
            raise QuizImportError(f"{catalog_path.name} must contain a list of quizzes.")
        quizzes = [_quiz_from_record(record) for record in payload]
        logger.info("Loaded %d quizzes from %s", len(quizzes), catalog_path)
        return cls(quizzes, has_submitted=has_submitted)

    def add_quiz(self, quiz: QuizInfo) -> None:
        if quiz.time_limit_minutes <= 0:
            raise ValueError(f"Quiz '{quiz.quiz_id}' needs a positive time limit.")
        self._quizzes[quiz.quiz_id] = replace(
            quiz,
            starts_at=_as_utc(quiz.starts_at),
            ends_at=_as_utc(quiz.ends_at),
        )

    def get_quiz(self, quiz_id: str) -> QuizInfo:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz '{quiz_id}' does not exist.")
        return quiz

    def list_quizzes(self) -> list[QuizInfo]:
        earliest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(self._quizzes.values(), key=lambda q: (q.starts_at or earliest, q.quiz_id))

    def check_availability(self, quiz_id: str, user_id: str, now: datetime | None = None) -> QuizInfo:
        """Return the quiz when ``user_id`` may start it right now.

        Raises:
            NotFoundError: unknown quiz.
            QuizUnavailableError: outside the quiz window or already taken.
        """
        quiz = self.get_quiz(quiz_id)
        current = now or datetime.now(timezone.utc)
        if quiz.starts_at is not None and current < quiz.starts_at:
            raise QuizUnavailableError(f"Quiz '{quiz.title}' has not started yet.")
        if quiz.ends_at is not None and current > quiz.ends_at:
            raise QuizUnavailableError(f"Quiz '{quiz.title}' is closed.")
        if self._has_submitted is not None and self._has_submitted(quiz_id, user_id):
            raise QuizUnavailableError(f"You have already taken quiz '{quiz.title}'.")
        return quiz


def _quiz_from_record(record: object) -> QuizInfo:
    if not isinstance(record, dict):
        raise QuizImportError("Each catalog entry must be an object.")
    try:
        quiz_id = str(record["id"])
        time_limit = int(record["time_limit_minutes"])
    except (KeyError, TypeError, ValueError) as exc:
        raise QuizImportError("Catalog entries need an 'id' and an integer 'time_limit_minutes'.") from exc
    return QuizInfo(
        quiz_id=quiz_id,
        title=str(record.get("title") or quiz_id),
        time_limit_minutes=time_limit,
        starts_at=_parse_timestamp(record.get("starts_at")),
        ends_at=_parse_timestamp(record.get("ends_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise QuizImportError(f"Invalid timestamp {value!r} in quiz catalog.") from exc
    return _as_utc(parsed)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
