"""Service tracking which browser client owns which quiz session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import time
from uuid import uuid4

from quiz_portal.constants.network_constants import (
    FINISHED_SESSION_TTL_SECONDS,
    MAX_ACTIVE_SESSIONS_PER_USER,
)
from quiz_portal.core.services.countdown import AsyncioCountdown, CountdownFactory
from quiz_portal.core.services.question_store import QuestionStore
from quiz_portal.core.services.quiz_session import QuizSession
from quiz_portal.core.services.result_sink import ResultSink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _RegisteredSession:
    session: QuizSession
    last_seen: float


class SessionRegistry:
    """Creates quiz sessions and hands each one to exactly one client token.

    Finished sessions are forgotten once their client has not asked for them
    for ``finished_ttl_seconds``; a student holds at most
    ``max_active_per_user`` unfinished sessions, older ones are closed.
    All access happens on the server's event loop, so no locking is needed.
    """

    def __init__(
        self,
        question_store: QuestionStore,
        result_sink: ResultSink,
        countdown_factory: CountdownFactory = AsyncioCountdown,
        finished_ttl_seconds: float = FINISHED_SESSION_TTL_SECONDS,
        max_active_per_user: int = MAX_ACTIVE_SESSIONS_PER_USER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_active_per_user < 1:
            raise ValueError("A student must be allowed at least one session.")
        self._question_store = question_store
        self._result_sink = result_sink
        self._countdown_factory = countdown_factory
        self._finished_ttl_seconds = finished_ttl_seconds
        self._max_active_per_user = max_active_per_user
        self._clock = clock
        self._sessions: dict[str, _RegisteredSession] = {}

    def create_session(self, user_id: str, token: str | None = None) -> tuple[str, QuizSession]:
        """Create a fresh session; a previous session of ``token`` is closed first."""
        if token is not None:
            self.discard(token)
        self.prune()
        self._limit_active_sessions(user_id)

        token = uuid4().hex
        session = QuizSession(
            self._question_store,
            self._result_sink,
            user_id=user_id,
            countdown_factory=self._countdown_factory,
        )
        self._sessions[token] = _RegisteredSession(session=session, last_seen=self._clock())
        logger.debug("Created session %s for %s", token, user_id)
        return token, session

    def get_session(self, token: str | None) -> QuizSession | None:
        self.prune()
        if token is None:
            return None
        entry = self._sessions.get(token)
        if entry is None:
            return None
        entry.last_seen = self._clock()
        return entry.session

    def discard(self, token: str) -> bool:
        """Close and forget the session owned by ``token``."""
        entry = self._sessions.pop(token, None)
        if entry is None:
            return False
        entry.session.close()
        logger.debug("Discarded session %s", token)
        return True

    def prune(self) -> int:
        """Forget finished sessions left alone for longer than the TTL."""
        now = self._clock()
        expired = [
            token
            for token, entry in self._sessions.items()
            if entry.session.phase.is_terminal and now - entry.last_seen >= self._finished_ttl_seconds
        ]
        for token in expired:
            self.discard(token)
        if expired:
            logger.info("Evicted %d finished sessions", len(expired))
        return len(expired)

    def close_all(self) -> None:
        for token in list(self._sessions):
            self.discard(token)

    def _limit_active_sessions(self, user_id: str) -> None:
        # Insertion order, so the oldest sessions come first.
        active = [
            token
            for token, entry in self._sessions.items()
            if entry.session.user_id == user_id and not entry.session.phase.is_terminal
        ]
        excess = len(active) - self._max_active_per_user + 1
        for token in active[: max(0, excess)]:
            logger.info("Closing older session %s of %s", token, user_id)
            self.discard(token)

    def __len__(self) -> int:
        return len(self._sessions)
