"""Tool-call metrics and structured event logging."""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

# stdout carries the stdio transport, so events go through logging.
EVENT_LOGGER = logging.getLogger("fintrack.events")


@dataclass
class HealthSnapshot:
    uptime_seconds: float
    total_requests: int
    error_rate: float
    avg_latency_ms: float
    cache_entries: int
    signed_in: bool
    provider_status: dict[str, Any]
    tool_calls: dict[str, int] = field(default_factory=dict)
    error_codes: dict[str, int] = field(default_factory=dict)


class ServerMetrics:
    """Counts tool calls, failures by error code and cumulative latency."""

    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = started_at or time.time()
        self._lock = threading.Lock()
        self._calls: Counter[str] = Counter()
        self._errors: Counter[str] = Counter()
        self._latency_ms = 0.0

    def record(self, tool: str, latency_ms: float, success: bool, error_code: str | None = None) -> None:
        with self._lock:
            self._calls[tool] += 1
            self._latency_ms += max(0.0, latency_ms)
            if not success:
                self._errors[error_code or "UNKNOWN"] += 1

    def snapshot(self, provider_status: dict[str, Any], cache_entries: int = 0, signed_in: bool = False) -> HealthSnapshot:
        with self._lock:
            total = sum(self._calls.values())
            failed = sum(self._errors.values())
            tool_calls = dict(self._calls)
            error_codes = dict(self._errors)
            latency = self._latency_ms
        return HealthSnapshot(
            uptime_seconds=max(0.0, time.time() - self.started_at),
            total_requests=total,
            error_rate=failed / total if total else 0.0,
            avg_latency_ms=latency / total if total else 0.0,
            cache_entries=cache_entries,
            signed_in=signed_in,
            provider_status=provider_status,
            tool_calls=tool_calls,
            error_codes=error_codes,
        )


def log_tool_event(
    tool: str,
    subject: str | None,
    latency_ms: float,
    success: bool,
    warning: str | None = None,
    error_code: str | None = None,
) -> None:
    event: dict[str, Any] = {
        "event": "tool_call",
        "tool": tool,
        "subject": subject,
        "success": success,
        "latency_ms": round(latency_ms, 3),
        "at": int(time.time()),
    }
    if error_code:
        event["error_code"] = error_code
    if warning:
        event["warning"] = warning
    level = logging.INFO if success else logging.WARNING
    EVENT_LOGGER.log(level, json.dumps(event, ensure_ascii=True))
