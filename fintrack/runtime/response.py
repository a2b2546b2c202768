"""Response shaping helpers for MCP tools."""

from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from typing import Any

from fintrack.services.base import ErrorEnvelope, ServiceResult

DISCLAIMER = "Data is for informational purposes only and does not constitute financial advice."
DATA_LICENSE = "CoinGecko API terms apply"


def _convert_data(data: Any) -> Any:
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, list):
        return [_convert_data(item) for item in data]
    if isinstance(data, dict):
        return {key: _convert_data(value) for key, value in data.items()}
    return data


def _freshness(fetched_at: float | None) -> dict[str, Any]:
    ts = fetched_at or time.time()
    age_seconds = max(0.0, time.time() - ts)
    return {"timestamp": int(ts), "age_seconds": round(age_seconds, 3)}


def success_response(result: ServiceResult[Any], data: Any = None, include_disclaimer: bool = True) -> str:
    payload: dict[str, Any] = {
        "data": _convert_data(result.data if data is None else data),
        "data_freshness": _freshness(result.fetched_at),
    }
    if result.source:
        payload["source"] = result.source
        if result.source == "coingecko":
            payload["data_license"] = DATA_LICENSE
    if result.warning:
        payload["warning"] = result.warning
    if include_disclaimer:
        payload["disclaimer"] = DISCLAIMER
    return json.dumps(payload, ensure_ascii=True)


def error_response(code: str, message: str, retriable: bool = False, details: list[dict[str, Any]] | None = None) -> str:
    payload: dict[str, Any] = {
        "error": True,
        "code": code,
        "message": message,
        "retriable": retriable,
        "timestamp": int(time.time()),
    }
    if details:
        payload["details"] = details
    return json.dumps(payload, ensure_ascii=True)


def envelope_response(envelope: ErrorEnvelope) -> str:
    return error_response(envelope.code, envelope.message, retriable=envelope.retriable, details=envelope.details)


def render(result: ServiceResult[Any], default_message: str = "No data returned.") -> str:
    if result.data is not None:
        return success_response(result)
    if result.error is not None:
        return envelope_response(result.error)
    return error_response("NO_DATA", result.warning or default_message)
