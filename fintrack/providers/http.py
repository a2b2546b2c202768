"""Shared requests session, retry loop and provider error mapping."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal

import requests
from requests.adapters import HTTPAdapter

from fintrack.providers.models import ProviderName

ProviderErrorCode = Literal["RATE_LIMIT", "AUTH", "NOT_FOUND", "UPSTREAM", "NETWORK", "BAD_RESPONSE"]
# 429 is not retried; CoinGecko rate limits reset per minute.
TRANSIENT_CODES = {408, 425, 500, 502, 503, 504}
BACKOFF_BASE_SECONDS = 0.5
LOGGER = logging.getLogger(__name__)

_SESSION = requests.Session()
_SESSION.mount("https://", HTTPAdapter(pool_connections=10, pool_maxsize=20))
_SESSION.mount("http://", HTTPAdapter(pool_connections=10, pool_maxsize=20))


@dataclass
class ProviderError(Exception):
    provider: ProviderName
    code: ProviderErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def transient(self) -> bool:
        if self.code == "NETWORK":
            return True
        return self.status is not None and self.status in TRANSIENT_CODES


def map_status_to_code(status: int) -> ProviderErrorCode:
    if status in {401, 403}:
        return "AUTH"
    if status == 404:
        return "NOT_FOUND"
    if status == 429:
        return "RATE_LIMIT"
    return "UPSTREAM"


def _upstream_message(body: Any) -> str | None:
    """CoinGecko reports failures as ``{"status": {"error_message": ...}}`` or ``{"error": ...}``."""
    if not isinstance(body, dict):
        return None
    status = body.get("status")
    if isinstance(status, dict) and status.get("error_message"):
        return str(status["error_message"])
    if isinstance(body.get("error"), str):
        return body["error"]
    return None


def _decode(response: requests.Response, provider: ProviderName) -> Any:
    raw = response.text or ""
    body: Any = {}
    if raw:
        try:
            body = json.loads(raw)
        except json.JSONDecodeError as error:
            raise ProviderError(
                provider,
                "BAD_RESPONSE",
                "Price service returned non-JSON content.",
                response.status_code,
            ) from error
    if response.ok:
        return body

    code = map_status_to_code(response.status_code)
    if code == "RATE_LIMIT":
        message = "Rate limit reached on the price service. Please wait a minute and try again."
    else:
        detail = _upstream_message(body)
        message = f"Price service request failed with status {response.status_code}."
        if detail:
            message = f"{message} {detail}"
    raise ProviderError(provider, code, message, response.status_code)


def fetch_json(
    url: str,
    provider: ProviderName,
    timeout_seconds: float = 15.0,
    headers: dict[str, str] | None = None,
    params: dict[str, str | int] | None = None,
    max_retries: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """GET ``url`` and return its JSON body.

    Network failures and transient statuses (5xx, 408, 425) are retried with
    exponential backoff up to ``max_retries`` attempts; the last error is
    raised as a :class:`ProviderError`.
    """
    attempts = max(1, max_retries)
    for attempt in range(1, attempts + 1):
        try:
            try:
                response = _SESSION.get(url, params=params, timeout=timeout_seconds, headers=headers)
            except requests.RequestException as error:
                raise ProviderError(provider, "NETWORK", "Price service is unreachable.") from error
            return _decode(response, provider)
        except ProviderError as error:
            if not error.transient or attempt >= attempts:
                raise
            LOGGER.warning(
                "retrying provider request: provider=%s code=%s status=%s attempt=%s",
                provider,
                error.code,
                error.status,
                attempt,
            )
            sleep(BACKOFF_BASE_SECONDS * (2 ** (attempt - 1)))
    raise ProviderError(provider, "UPSTREAM", "Price service request failed.")
