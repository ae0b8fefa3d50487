"""In-memory fixed-window rate limiting, per process."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

SWEEP_INTERVAL = 5 * 60


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Count requests per client key in fixed windows.

    The first request of a window opens it; request number ``limit + 1``
    and later within the same window are limited. Expired windows are
    swept every ``SWEEP_INTERVAL`` seconds as requests arrive.
    """

    def __init__(self, limit: int = 20, window: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._entries: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + SWEEP_INTERVAL

    def is_limited(self, key: Optional[str]) -> bool:
        if not key:
            return False
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                self._entries[key] = _Window(count=1, reset_at=now + self.window)
                return False
            entry.count += 1
            return entry.count > self.limit

    def _sweep(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if now > e.reset_at]:
            del self._entries[key]
        self._next_sweep = now + SWEEP_INTERVAL

    def __len__(self) -> int:
        return len(self._entries)
