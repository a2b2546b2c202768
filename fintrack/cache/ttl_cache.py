"""In-memory TTL cache for price API responses."""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class _CacheItem(Generic[T]):
    value: T
    expires_at: float


class TTLCache:
    """Thread-safe TTL cache keyed by string.

    Expired items are dropped on read, and swept from the whole map on write
    once it holds more than ``purge_threshold`` items.
    """

    def __init__(
        self,
        default_ttl_seconds: int = 60,
        clock: Callable[[], float] = time.time,
        purge_threshold: int = 512,
    ) -> None:
        self.default_ttl_seconds = max(1, default_ttl_seconds)
        self.purge_threshold = max(1, purge_threshold)
        self._clock = clock
        self._data: dict[str, _CacheItem[object]] = {}
        self._lock = Lock()

    def get(self, key: str) -> object | None:
        now = self._clock()
        with self._lock:
            item = self._data.get(key)
            if not item:
                return None
            if item.expires_at < now:
                self._data.pop(key, None)
                return None
            return item.value

    def set(self, key: str, value: object, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else max(1, ttl_seconds)
        now = self._clock()
        with self._lock:
            if len(self._data) >= self.purge_threshold:
                self._purge_expired(now)
            self._data[key] = _CacheItem(value=value, expires_at=now + ttl)

    def _purge_expired(self, now: float) -> None:
        stale = [key for key, item in self._data.items() if item.expires_at < now]
        for key in stale:
            del self._data[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
