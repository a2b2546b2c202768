"""Normalized market data models shared across providers and tools."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

ProviderName = Literal["coingecko", "document_store"]
COIN_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9\-.]{0,99}$")


@dataclass
class MarketAsset:
    id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    high_24h: float | None = None
    low_24h: float | None = None
    price_change_percentage_24h: float | None = None
    price_change_percentage_7d: float | None = None
    image: str | None = None
    last_updated: str | None = None


@dataclass
class PricePoint:
    timestamp: int  # unix milliseconds, as the price API reports them
    price: float


@dataclass
class CoinSearchHit:
    id: str
    name: str
    symbol: str
    market_cap_rank: int | None = None
