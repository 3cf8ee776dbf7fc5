"""Result sinks: where a finished quiz attempt's answers are persisted."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Protocol

from quiz_portal.core.errors import SubmissionError
from quiz_portal.core.models import StoredSubmission, SubmissionReceipt

logger = logging.getLogger(__name__)

AnswerKeyProvider = Callable[[str], Mapping[str, str]]


class ResultSink(Protocol):
    """Persists the answer map of one attempt."""

    async def submit_answers(
        self,
        quiz_id: str,
        user_id: str,
        answers: Mapping[str, str],
        question_ids: Sequence[str] = (),
    ) -> SubmissionReceipt:
        """Persist ``answers`` or raise ``SubmissionError``.

        ``question_ids`` lists the questions the student was given; when
        present, scores are out of that many questions.
        """
        ...


def score_answers(
    answers: Mapping[str, str],
    answer_key: Mapping[str, str],
    question_ids: Sequence[str] = (),
) -> tuple[int, int] | None:
    """Return ``(score, total)`` against ``answer_key``, or ``None`` when unknown.

    With ``question_ids`` the total is the number of questions and key entries
    for other ids are ignored; unkeyed questions simply score nothing.
    """
    if question_ids:
        known = set(question_ids)
        answer_key = {question_id: correct for question_id, correct in answer_key.items() if question_id in known}
    if not answer_key:
        return None
    score = sum(1 for question_id, correct in answer_key.items() if answers.get(question_id) == correct)
    total = len(set(question_ids)) if question_ids else len(answer_key)
    return score, total


class InMemoryResultSink:
    """Keeps submissions in memory; scores them when an answer key is known."""

    def __init__(self, answer_keys: AnswerKeyProvider | None = None) -> None:
        self._answer_keys = answer_keys
        self._submissions: list[StoredSubmission] = []
        self._lock = Lock()

    async def submit_answers(
        self,
        quiz_id: str,
        user_id: str,
        answers: Mapping[str, str],
        question_ids: Sequence[str] = (),
    ) -> SubmissionReceipt:
        # Answer key providers may read question banks from disk.
        submission = await asyncio.to_thread(
            _build_submission, quiz_id, user_id, answers, question_ids, self._answer_keys
        )
        with self._lock:
            if any(s.quiz_id == quiz_id and s.user_id == user_id for s in self._submissions):
                raise SubmissionError(f"'{user_id}' has already submitted quiz '{quiz_id}'.")
            self._submissions.append(submission)
        logger.info("Stored submission for quiz %s by %s", quiz_id, user_id)
        return SubmissionReceipt(accepted=True, score=submission.score, total=submission.total)

    def has_submitted(self, quiz_id: str, user_id: str) -> bool:
        with self._lock:
            return any(s.quiz_id == quiz_id and s.user_id == user_id for s in self._submissions)

    def get_submissions(self) -> list[StoredSubmission]:
        with self._lock:
            return list(self._submissions)


class JsonlResultSink:
    """Appends one JSON line per submission to a results file.

    Scoring and writing both run in a worker thread; ``has_submitted`` reads
    the file and should be called off the event loop as well.
    """

    def __init__(self, results_path: Path, answer_keys: AnswerKeyProvider | None = None) -> None:
        self._results_path = results_path
        self._answer_keys = answer_keys
        self._lock = Lock()

    async def submit_answers(
        self,
        quiz_id: str,
        user_id: str,
        answers: Mapping[str, str],
        question_ids: Sequence[str] = (),
    ) -> SubmissionReceipt:
        try:
            submission = await asyncio.to_thread(self._record, quiz_id, user_id, answers, question_ids)
        except OSError as exc:
            raise SubmissionError(f"Could not write results file: {exc}") from exc
        logger.info("Appended submission for quiz %s by %s to %s", quiz_id, user_id, self._results_path)
        return SubmissionReceipt(accepted=True, score=submission.score, total=submission.total)

    def has_submitted(self, quiz_id: str, user_id: str) -> bool:
        return any(s.quiz_id == quiz_id and s.user_id == user_id for s in self.get_submissions())

    def get_submissions(self) -> list[StoredSubmission]:
        with self._lock:
            if not self._results_path.exists():
                return []
            lines = self._results_path.read_text(encoding="utf-8").splitlines()
        submissions = []
        for line in lines:
            if not line.strip():
                continue
            record = json.loads(line)
            record["submitted_at"] = datetime.fromisoformat(record["submitted_at"])
            submissions.append(StoredSubmission(**record))
        return submissions

    def _record(
        self,
        quiz_id: str,
        user_id: str,
        answers: Mapping[str, str],
        question_ids: Sequence[str],
    ) -> StoredSubmission:
        submission = _build_submission(quiz_id, user_id, answers, question_ids, self._answer_keys)
        self._append(submission)
        return submission

    def _append(self, submission: StoredSubmission) -> None:
        with self._lock:
            if self._is_recorded(submission.quiz_id, submission.user_id):
                raise SubmissionError(
                    f"'{submission.user_id}' has already submitted quiz '{submission.quiz_id}'."
                )
            self._results_path.parent.mkdir(parents=True, exist_ok=True)
            record = asdict(submission)
            record["submitted_at"] = submission.submitted_at.isoformat()
            with self._results_path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False) + "\n")

    def _is_recorded(self, quiz_id: str, user_id: str) -> bool:
        if not self._results_path.exists():
            return False
        for line in self._results_path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            record = json.loads(line)
            if record.get("quiz_id") == quiz_id and record.get("user_id") == user_id:
                return True
        return False


def _build_submission(
    quiz_id: str,
    user_id: str,
    answers: Mapping[str, str],
    question_ids: Sequence[str],
    answer_keys: AnswerKeyProvider | None,
) -> StoredSubmission:
    answer_key = answer_keys(quiz_id) if answer_keys is not None else {}
    scored = score_answers(answers, answer_key, question_ids)
    score, total = scored if scored is not None else (None, None)
    return StoredSubmission(
        quiz_id=quiz_id,
        user_id=user_id,
        answers=dict(answers),
        submitted_at=datetime.now(timezone.utc),
        score=score,
        total=total,
    )
