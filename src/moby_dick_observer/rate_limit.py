from __future__ import annotations

import threading
import time
from collections.abc import Callable


class AlertRateLimiter:
    """Allows at most one alert per ``interval_seconds``.

    The first call always passes. Safe to share between threads and tasks.
    """

    def __init__(
        self,
        interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_sent: float | None = None

    def try_acquire(self) -> bool:
        with self._lock:
            now = self._clock()
            if self._last_sent is not None and now - self._last_sent < self.interval_seconds:
                return False
            self._last_sent = now
            return True
