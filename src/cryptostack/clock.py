"""Tick source — drives engine descent from a background thread."""

from __future__ import annotations

import threading
from collections.abc import Callable


class TickThread(threading.Thread):
    """Background thread that calls tick() at a fixed interval.

    pause() / resume() freeze and restart the simulation without stopping
    the thread. Anything else (tests, restore) can drive tick() by hand.
    """

    def __init__(self, tick: Callable[[], object], interval: float):
        super().__init__(daemon=True)
        self.tick = tick
        self.interval = interval
        self.ticks = 0
        self._stop_event = threading.Event()
        self._running = threading.Event()
        self._running.set()

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    def pause(self):
        self._running.clear()

    def resume(self):
        self._running.set()

    def toggle(self) -> bool:
        """Flip pause state. Returns True if now paused."""
        if self.paused:
            self.resume()
        else:
            self.pause()
        return self.paused

    def stop(self):
        """Signal the tick thread to stop."""
        self._stop_event.set()
        self._running.set()

    def run(self):
        while not self._stop_event.is_set():
            self._running.wait()
            if self._stop_event.is_set():
                break
            self.tick()
            self.ticks += 1
            self._stop_event.wait(self.interval)
