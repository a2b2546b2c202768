"""Shared service orchestration helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from fintrack.auth.identity import AuthError, AuthMode, auth_error_message
from fintrack.cache.ttl_cache import TTLCache
from fintrack.config.settings import SUPPORTED_CURRENCIES
from fintrack.providers.document_store import DocumentStoreError
from fintrack.providers.http import ProviderError
from fintrack.providers.models import COIN_ID_PATTERN
from fintrack.utils.rate_limit import RateLimiterRegistry

MAX_CHART_DAYS = 3650
T = TypeVar("T")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    retriable: bool = True
    provider: str | None = None
    details: list[dict[str, Any]] | None = None


@dataclass
class ServiceResult(Generic[T]):
    data: T | None
    source: str | None = None
    warning: str | None = None
    error: ErrorEnvelope | None = None
    fetched_at: float | None = None


@dataclass
class ServiceContext:
    providers: dict[str, object]
    cache: TTLCache
    rate_limiter: RateLimiterRegistry
    cache_ttl_seconds: int = 60
    cache_ttl_spot_seconds: int = 30
    cache_ttl_chart_seconds: int = 300
    cache_ttl_markets_seconds: int = 120
    server_metrics: object | None = None

    def get_provider(self, name: str) -> object | None:
        return self.providers.get(name)


def validate_coin_id(coin_id: str) -> str:
    clean = (coin_id or "").strip().lower()
    if not COIN_ID_PATTERN.match(clean):
        raise ValueError("Coin id must be a CoinGecko id such as 'bitcoin' or 'usd-coin'.")
    return clean


def validate_coin_ids(coin_ids: list[str]) -> list[str]:
    return [validate_coin_id(coin_id) for coin_id in coin_ids]


def validate_currency(currency: str) -> str:
    clean = (currency or "").strip().lower()
    if clean not in SUPPORTED_CURRENCIES:
        raise ValueError(f"Currency must be one of: {', '.join(SUPPORTED_CURRENCIES)}.")
    return clean


def validate_days(days: int) -> int:
    if days <= 0 or days > MAX_CHART_DAYS:
        raise ValueError(f"days must be between 1 and {MAX_CHART_DAYS}.")
    return days


def envelope_from_provider_error(error: ProviderError) -> ErrorEnvelope:
    retriable = error.code in {"RATE_LIMIT", "NETWORK", "UPSTREAM", "BAD_RESPONSE"}
    return ErrorEnvelope(code=error.code, message=error.message, retriable=retriable, provider=error.provider)


def envelope_from_store_error(error: DocumentStoreError) -> ErrorEnvelope:
    return ErrorEnvelope(
        code="STORE_UNAVAILABLE",
        message=error.message,
        retriable=error.code != "INVALID_KEY",
        provider="document_store",
    )


def envelope_from_auth_error(error: AuthError, mode: AuthMode = "login") -> ErrorEnvelope:
    return ErrorEnvelope(code="AUTH", message=auth_error_message(error.code, mode), retriable=False, details=[{"auth_code": error.code}])


def validation_envelope(message: str) -> ErrorEnvelope:
    return ErrorEnvelope(code="INVALID_INPUT", message=message, retriable=False)


def run_with_cache(
    ctx: ServiceContext,
    cache_key: str,
    call: Callable[[], T],
    ttl_seconds: int | None = None,
) -> T:
    cached = ctx.cache.get(cache_key)
    if cached is not None:
        return cached  # type: ignore[return-value]
    value = call()
    if isinstance(value, ServiceResult):
        if value.error is not None:
            return value
        value.fetched_at = value.fetched_at or time.time()
    ctx.cache.set(cache_key, value, ttl_seconds=ttl_seconds or ctx.cache_ttl_seconds)
    return value


def call_provider(ctx: ServiceContext, provider_name: str, call: Callable[[], T]) -> ServiceResult[T]:
    """Run one rate-limited provider call and wrap the outcome."""
    try:
        ctx.rate_limiter.wait(provider_name)
        value = call()
    except ProviderError as error:
        return ServiceResult(data=None, error=envelope_from_provider_error(error))
    return ServiceResult(data=value, source=provider_name, fetched_at=time.time())
