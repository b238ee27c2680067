"""
Clocks returning nanoseconds since the Unix epoch.
"""

import threading
import time


class SystemClock:
    """Wall clock that never goes backwards within a process"""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._last, time.time_ns())
            return self._last


class ManualClock:
    """
    Deterministic clock for tests and simulations.

    Only moves when told to, and never backwards.
    """

    def __init__(self, start_ns: int = 1_700_000_000_000_000_000):
        if start_ns < 0:
            raise ValueError(f"Clock cannot start before the epoch: {start_ns}")
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, delta_ns: int) -> int:
        if delta_ns < 0:
            raise ValueError(f"Clock cannot go backwards: {delta_ns}")
        self.now_ns += delta_ns
        return self.now_ns

    def set(self, now_ns: int) -> int:
        if now_ns < self.now_ns:
            raise ValueError(f"Clock cannot go backwards: {now_ns} < {self.now_ns}")
        self.now_ns = now_ns
        return self.now_ns
