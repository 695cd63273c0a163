"""Tests for the virtual and event-loop timer runtimes."""

import asyncio

import pytest

from listing_feed.timers import AsyncioTimers, VirtualTimers


class TestVirtualTimers:
    def test_call_later_fires_at_deadline(self, timers):
        fired = []
        timers.call_later(1.0, lambda: fired.append(timers.now()))

        timers.advance(0.999)
        assert fired == []
        timers.advance(0.001)
        assert fired == [pytest.approx(1.0)]

    def test_callbacks_fire_in_deadline_order(self, timers):
        order = []
        timers.call_later(0.3, lambda: order.append("c"))
        timers.call_later(0.1, lambda: order.append("a"))
        timers.call_later(0.2, lambda: order.append("b"))

        timers.advance(1)
        assert order == ["a", "b", "c"]

    def test_cancelled_timer_never_fires(self, timers):
        fired = []
        handle = timers.call_later(0.5, lambda: fired.append(True))
        handle.cancel()

        timers.advance(1)
        assert fired == []
        assert handle.done
        assert timers.pending == 0

    def test_call_every_repeats_until_cancelled(self, timers):
        count = []
        handle = timers.call_every(0.1, lambda: count.append(1))

        timers.advance(0.35)
        assert len(count) == 3
        assert not handle.done

        handle.cancel()
        timers.advance(1)
        assert len(count) == 3

    def test_callback_can_cancel_its_own_repeating_timer(self, timers):
        count = []

        def tick():
            count.append(1)
            if len(count) == 2:
                handle.cancel()

        handle = timers.call_every(0.1, tick)
        timers.advance(1)
        assert len(count) == 2

    def test_timers_scheduled_while_advancing_fire_in_same_pass(self, timers):
        fired = []
        timers.call_later(0.1, lambda: timers.call_later(0.1, lambda: fired.append(timers.now())))

        timers.advance(0.25)
        assert fired == [pytest.approx(0.2)]
        assert timers.now() == pytest.approx(0.25)

    def test_request_frame_uses_frame_interval(self):
        timers = VirtualTimers(frame_interval=0.02)
        fired = []
        timers.request_frame(lambda: fired.append(timers.now()))

        timers.advance(0.02)
        assert fired == [pytest.approx(0.02)]

    def test_invalid_arguments(self, timers):
        with pytest.raises(ValueError):
            timers.advance(-1)
        with pytest.raises(ValueError):
            timers.call_every(0, lambda: None)


class TestAsyncioTimers:
    async def test_call_later_runs_on_the_loop(self):
        timers = AsyncioTimers()
        fired = asyncio.Event()
        handle = timers.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1)
        assert handle.done

    async def test_call_every_stops_after_cancel(self):
        timers = AsyncioTimers()
        ticks = []
        handle = timers.call_every(0.01, lambda: ticks.append(1))

        await asyncio.sleep(0.1)
        handle.cancel()
        seen = len(ticks)
        await asyncio.sleep(0.03)

        assert seen >= 2
        assert len(ticks) == seen

    async def test_cancel_before_deadline(self):
        timers = AsyncioTimers()
        fired = []
        handle = timers.call_later(0.01, lambda: fired.append(True))
        handle.cancel()

        await asyncio.sleep(0.03)
        assert fired == []


def test_run_pending_fires_only_due_callbacks():
    timers = VirtualTimers(start=10.0)
    fired = []
    timers.call_later(0, lambda: fired.append("now"))
    timers.call_later(1, lambda: fired.append("later"))

    timers.run_pending()
    assert fired == ["now"]
    assert timers.now() == 10.0
    assert timers.pending == 1
