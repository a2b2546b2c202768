from datetime import date

import pytest

from fintrack.cache.ttl_cache import TTLCache
from fintrack.providers.http import ProviderError
from fintrack.providers.models import MarketAsset
from fintrack.services.base import ServiceContext
from fintrack.services.market_service import MarketService
from fintrack.utils.rate_limit import RateLimiterRegistry


def _asset(coin_id: str, change_7d: float | None) -> MarketAsset:
    return MarketAsset(id=coin_id, symbol=coin_id[:3].upper(), name=coin_id.title(), current_price=1.0, price_change_percentage_7d=change_7d)


def test_spot_prices_are_cached(service_ctx, price_api) -> None:
    price_api.spot = {"bitcoin": 100.0, "ethereum": 10.0}
    market = MarketService(service_ctx)
    first = market.get_spot_prices(["ethereum", "bitcoin"], "usd")
    second = market.get_spot_prices(["bitcoin", "ethereum"], "USD")
    assert first.data == {"bitcoin": 100.0, "ethereum": 10.0}
    assert second.data == first.data
    assert first.source == "coingecko"
    assert len([c for c in price_api.calls if c[0] == "get_spot_prices"]) == 1


def test_missing_spot_prices_are_flagged(service_ctx, price_api) -> None:
    price_api.spot = {"bitcoin": 100.0}
    result = MarketService(service_ctx).get_spot_prices(["bitcoin", "dogecoin"])
    assert result.data == {"bitcoin": 100.0}
    assert result.warning == "No spot price for: dogecoin"


def test_provider_errors_become_envelopes_and_are_not_cached(service_ctx, price_api) -> None:
    price_api.error = ProviderError("coingecko", "RATE_LIMIT", "slow down", 429)
    market = MarketService(service_ctx)
    result = market.get_market_chart("bitcoin", "usd", 7)
    assert result.data is None
    assert result.error is not None
    assert result.error.code == "RATE_LIMIT"
    assert result.error.retriable is True

    price_api.error = None
    assert market.get_market_chart("bitcoin", "usd", 7).error is None


def test_input_validation() -> None:
    market = MarketService(ServiceContext(providers={}, cache=TTLCache(), rate_limiter=RateLimiterRegistry(0.0)))
    with pytest.raises(ValueError):
        market.get_spot_prices(["Bit Coin"])
    with pytest.raises(ValueError):
        market.list_markets("btc")
    with pytest.raises(ValueError):
        market.get_market_chart("bitcoin", "usd", 0)
    with pytest.raises(ValueError):
        market.search_coins("  ")
    assert market.list_markets("usd").error.code == "NOT_CONFIGURED"


def test_trending_sorts_by_seven_day_change(service_ctx, price_api) -> None:
    price_api.markets = [_asset("bitcoin", 2.0), _asset("solana", 12.5), _asset("tether", None), _asset("dogecoin", -4.0)]
    result = MarketService(service_ctx).get_trending("usd", limit=2)
    assert [a.id for a in result.data] == ["solana", "bitcoin"]


def test_historical_price_lookup(service_ctx, price_api) -> None:
    price_api.history[("bitcoin", "2024-03-05")] = 61000.0
    market = MarketService(service_ctx)
    assert market.get_historical_price("bitcoin", date(2024, 3, 5)).data == 61000.0
    missing = market.get_historical_price("bitcoin", date(2010, 1, 1))
    assert missing.data is None
    assert missing.error is None
