"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

SUPPORTED_CURRENCIES = ("usd", "eur", "inr", "jpy", "gbp", "aud", "cad", "sgd", "zar")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for local/stdio and HTTP-hosted modes."""

    app_name: str = "fintrack-wallet"
    app_version: str = "1.0.0"
    transport_mode: str = "auto"
    http_transport: str = "sse"
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"
    health_path: str = "/health"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str | None = None
    default_currency: str = "usd"
    data_dir: str = "data"
    request_timeout_seconds: float = 15.0
    http_max_retries: int = 3
    cache_ttl_seconds: int = 60
    cache_ttl_spot_seconds: int = 30
    cache_ttl_chart_seconds: int = 300
    cache_ttl_markets_seconds: int = 120
    provider_min_interval_seconds: float = 1.2


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _as_currency(value: str | None, default: str) -> str:
    if value is None:
        return default
    clean = value.strip().lower()
    return clean if clean in SUPPORTED_CURRENCIES else default


def get_settings() -> Settings:
    """Load runtime settings from environment variables."""
    load_dotenv()

    return Settings(
        transport_mode=os.getenv("TRANSPORT_MODE", "auto").strip().lower(),
        http_transport=os.getenv("HTTP_TRANSPORT", "sse").strip().lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_as_int(os.getenv("PORT"), 8000),
        mcp_path=os.getenv("MCP_PATH", "/mcp"),
        health_path=os.getenv("HEALTH_PATH", "/health"),
        coingecko_base_url=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3").rstrip("/"),
        coingecko_api_key=os.getenv("COINGECKO_API_KEY") or None,
        default_currency=_as_currency(os.getenv("DEFAULT_CURRENCY"), "usd"),
        data_dir=os.getenv("DATA_DIR", "data"),
        request_timeout_seconds=_as_float(os.getenv("REQUEST_TIMEOUT_SECONDS"), 15.0),
        http_max_retries=_as_int(os.getenv("HTTP_MAX_RETRIES"), 3),
        cache_ttl_seconds=_as_int(os.getenv("CACHE_TTL_SECONDS"), 60),
        cache_ttl_spot_seconds=_as_int(os.getenv("CACHE_TTL_SPOT_SECONDS"), 30),
        cache_ttl_chart_seconds=_as_int(os.getenv("CACHE_TTL_CHART_SECONDS"), 300),
        cache_ttl_markets_seconds=_as_int(os.getenv("CACHE_TTL_MARKETS_SECONDS"), 120),
        provider_min_interval_seconds=_as_float(os.getenv("PROVIDER_MIN_INTERVAL_SECONDS"), 1.2),
    )
