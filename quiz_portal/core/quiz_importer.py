"""Utilities for reading question banks from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...            (at least two options, consecutive letters from A to J)
    CORRECT: B     (optional; omit when the quiz is graded later)
    ID: q7         (optional; defaults to q1, q2, ... by block position)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    CORRECT: B

The parser only produces plain ``Question`` objects plus an answer key; the
question store decides where banks live and how they are looked up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from quiz_portal.constants.quiz_constants import MIN_OPTION_COUNT, OPTION_LABELS
from quiz_portal.core.errors import QuizImportError
from quiz_portal.core.models import Question

_OPTION_ORDER = OPTION_LABELS[:10]


@dataclass(slots=True)
class ImportedQuiz:
    """Questions and optional answer key read from one question bank."""

    questions: list[Question]
    answer_key: dict[str, str] = field(default_factory=dict)
    source_path: Path | None = None


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text)
    imported.source_path = file_path
    return imported


def parse_quiz_text(text: str) -> ImportedQuiz:
    """Parse a whole question bank; raises ``QuizImportError`` on bad input."""
    questions: list[Question] = []
    answer_key: dict[str, str] = {}
    for position, block in enumerate(_split_blocks(text), start=1):
        question, correct_label = _parse_block(block, default_id=f"q{position}")
        if any(existing.id == question.id for existing in questions):
            raise QuizImportError(f"Duplicate question id '{question.id}'.")
        questions.append(question)
        if correct_label is not None:
            answer_key[question.id] = correct_label
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return ImportedQuiz(questions=questions, answer_key=answer_key)


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _parse_block(block: str, default_id: str) -> tuple[Question, str | None]:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_label: str | None = None
    question_id = default_id
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_label = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("ID:"):
            question_id = line.split(":", 1)[1].strip()
            if not question_id:
                raise QuizImportError("ID must not be empty.")
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) < MIN_OPTION_COUNT:
        raise QuizImportError(f"Question '{question_id}' needs at least {MIN_OPTION_COUNT} options.")

    expected_letters = _OPTION_ORDER[: len(options)]
    if set(options) != set(expected_letters):
        raise QuizImportError(
            f"Question '{question_id}' options must use consecutive letters starting at A."
        )

    option_list = tuple(options[letter].strip() for letter in expected_letters)
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_label is not None and correct_label not in expected_letters:
        raise QuizImportError(
            f"CORRECT must be one of {', '.join(expected_letters)} for question '{question_id}'."
        )

    prompt = "\n".join(question_lines).strip()
    if not prompt:
        raise QuizImportError("Question text cannot be empty.")

    return Question(id=question_id, prompt=prompt, options=option_list), correct_label
