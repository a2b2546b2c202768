"""Request generation counters for discarding stale responses."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestTicket:
    key: str
    sequence: int


class RequestSequencer:
    """Issues monotonically increasing tickets per key.

    A response may be applied only while its ticket is still the latest one
    issued for its key; anything older arrived after a newer request was made.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: dict[str, int] = {}

    def issue(self, key: str) -> RequestTicket:
        with self._lock:
            sequence = self._latest.get(key, 0) + 1
            self._latest[key] = sequence
            return RequestTicket(key=key, sequence=sequence)

    def is_current(self, ticket: RequestTicket) -> bool:
        with self._lock:
            return self._latest.get(ticket.key) == ticket.sequence

    def latest(self, key: str) -> int:
        with self._lock:
            return self._latest.get(key, 0)
