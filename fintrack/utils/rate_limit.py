"""Per-provider minimum-interval limiter for the public price API."""

from __future__ import annotations

import time
from threading import Lock
from typing import Callable


class RateLimiterRegistry:
    """Spaces out calls per provider so the free CoinGecko tier does not throttle us."""

    def __init__(
        self,
        min_interval_seconds: float = 1.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval_seconds = max(0.0, min_interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._last_called: dict[str, float] = {}
        self._lock = Lock()

    def wait(self, provider: str) -> float:
        """Block until ``provider`` may be called again; return the seconds slept."""
        if self.min_interval_seconds <= 0:
            return 0.0
        slept = 0.0
        with self._lock:
            last = self._last_called.get(provider)
            if last is not None:
                delta = self._clock() - last
                if delta < self.min_interval_seconds:
                    slept = self.min_interval_seconds - delta
                    self._sleep(slept)
            self._last_called[provider] = self._clock()
        return slept
