"""Shared tool-layer helpers."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable

from fintrack.runtime.monitoring import ServerMetrics, log_tool_event
from fintrack.runtime.response import error_response, render
from fintrack.services.base import ErrorEnvelope, ServiceResult

if TYPE_CHECKING:
    from fintrack.tools.registry import ToolServices


def ensure_data(data: object | None, error: ErrorEnvelope | None, default_message: str = "No data returned.") -> object:
    if data is not None:
        return data
    if error:
        raise ValueError(f"[{error.code}] {error.message}")
    raise ValueError(default_message)


def run_tool(
    services: "ToolServices",
    tool: str,
    call: Callable[[], ServiceResult[Any]],
    subject: str | None = None,
    shape: Callable[[Any], Any] | None = None,
) -> str:
    """Run a service call, render it as JSON and record the outcome.

    Input validation failures (``ValueError``) become ``INVALID_INPUT`` error
    payloads instead of protocol errors.
    """
    started = time.perf_counter()
    try:
        result = call()
    except ValueError as error:
        output = error_response("INVALID_INPUT", str(error))
        success = False
        warning = None
        error_code: str | None = "INVALID_INPUT"
    else:
        if shape is not None and result.data is not None:
            result = ServiceResult(
                data=shape(result.data),
                source=result.source,
                warning=result.warning,
                fetched_at=result.fetched_at,
            )
        output = render(result)
        success = result.data is not None
        warning = result.warning
        error_code = None if success else (result.error.code if result.error else "NO_DATA")
    latency_ms = (time.perf_counter() - started) * 1000.0
    log_tool_event(
        tool=tool,
        subject=subject,
        latency_ms=latency_ms,
        success=success,
        warning=warning,
        error_code=error_code,
    )
    if isinstance(services.metrics, ServerMetrics):
        services.metrics.record(tool, latency_ms=latency_ms, success=success, error_code=error_code)
    return output


def parse_id_list(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]
