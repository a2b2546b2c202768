from __future__ import annotations

from datetime import date

import pytest

from fintrack.auth.identity import LocalIdentityProvider
from fintrack.auth.session import Session
from fintrack.cache.ttl_cache import TTLCache
from fintrack.providers.document_store import InMemoryDocumentStore
from fintrack.providers.http import ProviderError
from fintrack.providers.models import CoinSearchHit, MarketAsset, PricePoint
from fintrack.services.base import ServiceContext
from fintrack.utils.rate_limit import RateLimiterRegistry

DAY_MS = 24 * 60 * 60 * 1000
BASE_TS = 1_700_000_000_000


class FakePriceApi:
    """Scriptable stand-in for the CoinGecko client."""

    def __init__(self) -> None:
        self.spot: dict[str, float] = {}
        self.history: dict[tuple[str, str], float] = {}
        self.charts: dict[int, list[PricePoint]] = {}
        self.markets: list[MarketAsset] = []
        self.hits: list[CoinSearchHit] = []
        self.error: ProviderError | None = None
        self.calls: list[tuple[str, object]] = []

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    def list_markets(self, currency: str, page: int = 1, per_page: int = 100) -> list[MarketAsset]:
        self.calls.append(("list_markets", (currency, page, per_page)))
        self._maybe_fail()
        return list(self.markets)

    def get_market_chart(self, coin_id: str, currency: str, days: int) -> list[PricePoint]:
        self.calls.append(("get_market_chart", (coin_id, currency, days)))
        self._maybe_fail()
        return list(self.charts.get(days, []))

    def get_spot_prices(self, coin_ids: list[str], currency: str) -> dict[str, float]:
        self.calls.append(("get_spot_prices", (tuple(coin_ids), currency)))
        self._maybe_fail()
        return {coin_id: self.spot[coin_id] for coin_id in coin_ids if coin_id in self.spot}

    def get_historical_price(self, coin_id: str, on: date, currency: str) -> float | None:
        self.calls.append(("get_historical_price", (coin_id, on.isoformat(), currency)))
        self._maybe_fail()
        return self.history.get((coin_id, on.isoformat()))

    def search_coins(self, query: str) -> list[CoinSearchHit]:
        self.calls.append(("search_coins", query))
        self._maybe_fail()
        return list(self.hits)


def linear_series(count: int, start: float = 100.0, step: float = 2.0) -> list[PricePoint]:
    return [PricePoint(timestamp=BASE_TS + idx * DAY_MS, price=start + step * idx) for idx in range(count)]


@pytest.fixture
def price_api() -> FakePriceApi:
    return FakePriceApi()


@pytest.fixture
def service_ctx(price_api: FakePriceApi) -> ServiceContext:
    return ServiceContext(
        providers={"coingecko": price_api},
        cache=TTLCache(),
        rate_limiter=RateLimiterRegistry(0.0),
    )


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def session() -> Session:
    return Session(LocalIdentityProvider())
