"""Exception hierarchy shared by the quiz portal core, server and UI."""

from __future__ import annotations


class QuizPortalError(Exception):
    """Base class for every error raised deliberately by the portal."""


class NotFoundError(QuizPortalError):
    """Raised when a quiz has no questions (or does not exist at all)."""


class SubmissionError(QuizPortalError):
    """Raised by a result sink when the answer map could not be persisted."""


class SessionStateError(QuizPortalError):
    """Raised when a quiz session is used outside its single-use lifecycle."""


class QuizUnavailableError(QuizPortalError):
    """Raised when a quiz exists but may not be started right now."""


class QuizImportError(QuizPortalError):
    """Raised when a question bank cannot be parsed."""
