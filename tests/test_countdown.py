"""
Tests for the asyncio countdown and its catch-up arithmetic.
"""

import asyncio
import time

import pytest

from quiz_portal.core.services.countdown import AsyncioCountdown, due_tick_count


class TestDueTickCount:
    """Number of ticks owed after a given elapsed time."""

    def test_nothing_owed_before_first_interval(self):
        assert due_tick_count(0.5, 1.0, 0) == 0

    def test_owes_every_elapsed_interval(self):
        assert due_tick_count(3.2, 1.0, 0) == 3

    def test_subtracts_delivered_ticks(self):
        assert due_tick_count(3.2, 1.0, 2) == 1

    def test_never_negative(self):
        assert due_tick_count(3.2, 1.0, 5) == 0


class TestAsyncioCountdown:
    """Countdown running on the event loop."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            AsyncioCountdown(lambda: None, interval=0)

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self):
        ticks = []
        countdown = AsyncioCountdown(lambda: ticks.append(1), interval=0.01)

        countdown.start()
        assert countdown.is_active
        await asyncio.sleep(0.055)
        countdown.stop()
        delivered = len(ticks)
        await asyncio.sleep(0.03)

        assert delivered >= 3
        assert len(ticks) == delivered
        assert not countdown.is_active

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self):
        countdown = AsyncioCountdown(lambda: None, interval=0.01)

        countdown.start()
        task = countdown._task
        countdown.start()

        assert countdown._task is task
        countdown.stop()
        await asyncio.sleep(0)
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_stop_from_inside_tick_ends_delivery(self):
        ticks = []
        countdown = None

        def on_tick():
            ticks.append(1)
            if len(ticks) == 2:
                countdown.stop()

        countdown = AsyncioCountdown(on_tick, interval=0.01)
        countdown.start()
        await asyncio.sleep(0.06)

        assert len(ticks) == 2
        assert not countdown.is_active

    @pytest.mark.asyncio
    async def test_blocked_loop_delivers_missed_ticks(self):
        ticks = []
        countdown = AsyncioCountdown(lambda: ticks.append(1), interval=0.01)

        countdown.start()
        await asyncio.sleep(0)
        time.sleep(0.055)
        await asyncio.sleep(0.001)
        countdown.stop()

        assert len(ticks) >= 5
