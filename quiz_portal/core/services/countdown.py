"""One-second countdown timers that drive ``QuizSession.tick``."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Protocol

from quiz_portal.constants.quiz_constants import COUNTDOWN_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class Countdown(Protocol):
    """Recurring timer owned by a single quiz session."""

    @property
    def is_active(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


CountdownFactory = Callable[[TickCallback], Countdown]


def due_tick_count(elapsed: float, interval: float, delivered: int) -> int:
    """Number of ticks owed after ``elapsed`` seconds when ``delivered`` already fired."""
    return max(0, int(elapsed // interval) - delivered)


class AsyncioCountdown:
    """Countdown running as an ``asyncio`` task on the current event loop.

    Ticks are delivered one after another; the next sleep only starts once
    the previous callback returned. If the loop stalls for several seconds,
    the owed ticks are delivered back to back so the remaining time keeps
    tracking the wall clock.
    """

    def __init__(self, on_tick: TickCallback, interval: float = COUNTDOWN_INTERVAL_SECONDS) -> None:
        if interval <= 0:
            raise ValueError("Countdown interval must be positive.")
        self._on_tick = on_tick
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="quiz-countdown")

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        started_at = loop.time()
        delivered = 0
        while True:
            next_deadline = started_at + (delivered + 1) * self._interval
            await asyncio.sleep(max(0.0, next_deadline - loop.time()))
            owed = due_tick_count(loop.time() - started_at, self._interval, delivered)
            if owed > 1:
                logger.debug("Countdown woke up late; delivering %d ticks", owed)
            for _ in range(owed):
                delivered += 1
                self._on_tick()
                if self._task is None:
                    # stop() was called from inside the tick (auto-submit).
                    return
