"""QTimer-backed countdown used by the desktop quiz window."""

from __future__ import annotations

import time

from PySide6.QtCore import QObject, QTimer, Signal

from quiz_portal.constants.quiz_constants import COUNTDOWN_INTERVAL_SECONDS
from quiz_portal.core.services.countdown import TickCallback, due_tick_count


class QtCountdown(QObject):
    """Calls ``on_tick`` once per second from the Qt event loop.

    Qt drops timeouts while the event loop is blocked, so each timeout
    compares the monotonic clock with the ticks already delivered and hands
    out the missed ones in order.
    """

    ticked = Signal()

    def __init__(
        self,
        on_tick: TickCallback,
        parent: QObject | None = None,
        interval: float = COUNTDOWN_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(parent)
        self._on_tick = on_tick
        self._interval = interval
        self._started_at: float | None = None
        self._delivered = 0
        self._timer = QTimer(self)
        self._timer.setInterval(int(interval * 1000))
        self._timer.timeout.connect(self._handle_timeout)

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        if self._timer.isActive():
            return
        self._started_at = time.monotonic()
        self._delivered = 0
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _handle_timeout(self) -> None:
        if self._started_at is None:
            return
        owed = due_tick_count(time.monotonic() - self._started_at, self._interval, self._delivered)
        for _ in range(owed):
            self._delivered += 1
            self._on_tick()
            if not self._timer.isActive():
                break
        self.ticked.emit()
