"""Question stores: where a quiz session gets its ordered questions from.

Every store normalizes raw option data into an ordered tuple of strings
before a ``Question`` is built, so the session never sees the various shapes
question banks use for options.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from quiz_portal.constants.quiz_constants import MIN_OPTION_COUNT, OPTION_LABELS
from quiz_portal.core.errors import NotFoundError, QuizImportError
from quiz_portal.core.models import Question
from quiz_portal.core.quiz_importer import ImportedQuiz, load_quiz_from_file

logger = logging.getLogger(__name__)


class QuestionStore(Protocol):
    """Supplies the ordered questions of a quiz."""

    async def fetch_questions(self, quiz_id: str) -> list[Question]:
        """Return the questions of ``quiz_id`` or raise ``NotFoundError``."""
        ...


def normalize_options(raw_options: Any) -> tuple[str, ...]:
    """Turn any supported option shape into an ordered tuple of strings.

    Accepted shapes:
        * a list/tuple of values, kept in order;
        * a mapping keyed by label (``{"A": ..., "B": ...}``) or by position
          (``{"0": ..., "1": ...}``), ordered by key;
        * a string holding a JSON list/mapping, or options separated by
          newlines or ``|``.

    Raises:
        QuizImportError: when fewer than two non-empty options remain.
    """
    if isinstance(raw_options, str):
        options = _options_from_string(raw_options)
    elif isinstance(raw_options, Mapping):
        options = _options_from_mapping(raw_options)
    elif isinstance(raw_options, Sequence):
        options = [str(option) for option in raw_options]
    else:
        raise QuizImportError(f"Unsupported options value: {raw_options!r}")

    cleaned = tuple(option.strip() for option in options)
    if len(cleaned) < MIN_OPTION_COUNT:
        raise QuizImportError(f"A question needs at least {MIN_OPTION_COUNT} options.")
    if any(not option for option in cleaned):
        raise QuizImportError("Option text cannot be empty.")
    return cleaned


def _options_from_string(raw: str) -> list[str]:
    stripped = raw.strip()
    if stripped.startswith(("[", "{")):
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise QuizImportError("Options look like JSON but could not be decoded.") from exc
        return list(normalize_options(decoded))
    separator = "\n" if "\n" in stripped else "|"
    return [part for part in stripped.split(separator) if part.strip()]


def _options_from_mapping(raw: Mapping[Any, Any]) -> list[str]:
    def sort_key(key: Any) -> int:
        text = str(key).strip().upper()
        if text in OPTION_LABELS:
            return OPTION_LABELS.index(text)
        if text.isdigit():
            return int(text)
        raise QuizImportError(f"Option key {key!r} is neither a letter nor a position.")

    return [str(raw[key]) for key in sorted(raw, key=sort_key)]


def question_from_record(record: Mapping[str, Any], position: int) -> Question:
    """Build a ``Question`` from a loosely shaped record (JSON, database row)."""
    question_id = str(record.get("id") or record.get("_id") or f"q{position}")
    prompt = str(record.get("prompt") or record.get("question") or "").strip()
    if not prompt:
        raise QuizImportError(f"Question '{question_id}' has no prompt.")
    return Question(id=question_id, prompt=prompt, options=normalize_options(record.get("options")))


def _answer_from_record(record: Mapping[str, Any]) -> str | None:
    correct = record.get("correct_answer") or record.get("correct")
    if correct is None:
        return None
    return str(correct).strip().upper()


class InMemoryQuestionStore:
    """Question banks held in memory, keyed by quiz id."""

    def __init__(self) -> None:
        self._banks: dict[str, list[Question]] = {}
        self._answer_keys: dict[str, dict[str, str]] = {}

    def add_quiz(self, quiz_id: str, records: Sequence[Mapping[str, Any] | Question]) -> None:
        """Register (or replace) a quiz; records are normalized immediately."""
        questions: list[Question] = []
        answer_key: dict[str, str] = {}
        for position, record in enumerate(records, start=1):
            if isinstance(record, Question):
                questions.append(record)
                continue
            question = question_from_record(record, position)
            questions.append(question)
            correct = _answer_from_record(record)
            if correct is not None:
                answer_key[question.id] = correct
        self._banks[quiz_id] = questions
        self._answer_keys[quiz_id] = answer_key

    def answer_key(self, quiz_id: str) -> dict[str, str]:
        return dict(self._answer_keys.get(quiz_id, {}))

    async def fetch_questions(self, quiz_id: str) -> list[Question]:
        questions = self._banks.get(quiz_id)
        if not questions:
            raise NotFoundError(f"No questions found for quiz '{quiz_id}'.")
        return list(questions)


class FileQuestionStore:
    """Question banks stored as ``<quiz_id>.txt`` or ``<quiz_id>.json`` files."""

    def __init__(self, bank_dir: Path) -> None:
        self._bank_dir = bank_dir

    async def fetch_questions(self, quiz_id: str) -> list[Question]:
        imported = await asyncio.to_thread(self._read_bank, quiz_id)
        if not imported.questions:
            raise NotFoundError(f"No questions found for quiz '{quiz_id}'.")
        return imported.questions

    def answer_key(self, quiz_id: str) -> dict[str, str]:
        """Read the answer key of a bank; empty when the bank is missing."""
        try:
            return self._read_bank(quiz_id).answer_key
        except NotFoundError:
            return {}

    def _bank_path(self, quiz_id: str) -> Path | None:
        # Quiz ids come from URLs; never let them escape the bank directory.
        if not quiz_id or Path(quiz_id).name != quiz_id:
            return None
        for suffix in (".txt", ".json"):
            candidate = self._bank_dir / f"{quiz_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def _read_bank(self, quiz_id: str) -> ImportedQuiz:
        path = self._bank_path(quiz_id)
        if path is None:
            raise NotFoundError(f"No question bank found for quiz '{quiz_id}'.")
        logger.debug("Reading question bank %s", path)
        if path.suffix == ".txt":
            return load_quiz_from_file(path)
        return _load_json_bank(path)


def _load_json_bank(path: Path) -> ImportedQuiz:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise QuizImportError(f"{path.name} is not valid JSON.") from exc
    records = payload.get("questions", []) if isinstance(payload, Mapping) else payload
    if not isinstance(records, list):
        raise QuizImportError(f"{path.name} must contain a list of questions.")

    questions: list[Question] = []
    answer_key: dict[str, str] = {}
    for position, record in enumerate(records, start=1):
        if not isinstance(record, Mapping):
            raise QuizImportError(f"Question #{position} in {path.name} is not an object.")
        question = question_from_record(record, position)
        questions.append(question)
        correct = _answer_from_record(record)
        if correct is not None:
            answer_key[question.id] = correct
    return ImportedQuiz(questions=questions, answer_key=answer_key, source_path=path)
