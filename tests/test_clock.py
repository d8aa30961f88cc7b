"""Tests for the tick thread."""

import threading
import time
from unittest.mock import MagicMock


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def test_tick_thread_calls_tick():
    from cryptostack.clock import TickThread

    tick = MagicMock()
    clock = TickThread(tick, interval=0.01)
    clock.start()
    try:
        assert _wait_for(lambda: tick.call_count >= 3)
    finally:
        clock.stop()
        clock.join(timeout=1)
    assert not clock.is_alive()


def test_paused_thread_does_not_tick():
    from cryptostack.clock import TickThread

    tick = MagicMock()
    clock = TickThread(tick, interval=0.01)
    clock.pause()
    assert clock.paused
    clock.start()
    time.sleep(0.05)
    assert tick.call_count == 0
    assert clock.toggle() is False
    assert _wait_for(lambda: tick.call_count >= 1)
    clock.stop()
    clock.join(timeout=1)


def test_tick_thread_drives_engine():
    from cryptostack.clock import TickThread
    from cryptostack.engine import PlacementEngine

    settled = threading.Event()

    def on_change(snapshot):
        if snapshot.blocks and all(b.settled for b in snapshot.blocks):
            settled.set()

    engine = PlacementEngine(6, 8, stagger_ticks=1, on_change=on_change)
    engine.add("dogecoin", 0.5)
    clock = TickThread(engine.tick, interval=0.001)
    clock.start()
    try:
        assert settled.wait(timeout=5)
    finally:
        clock.stop()
        clock.join(timeout=1)
    assert sorted(b.y for b in engine.blocks.values()) == [3, 4, 5, 6, 7]
