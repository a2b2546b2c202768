"""Market-domain service."""

from __future__ import annotations

from datetime import date

from fintrack.providers.coingecko import PriceApi
from fintrack.providers.models import CoinSearchHit, MarketAsset, PricePoint
from fintrack.services.base import (
    ErrorEnvelope,
    ServiceContext,
    ServiceResult,
    call_provider,
    run_with_cache,
    validate_coin_id,
    validate_coin_ids,
    validate_currency,
    validate_days,
)

PRICE_PROVIDER = "coingecko"
TRENDING_UNIVERSE = 100


def _no_provider() -> ErrorEnvelope:
    return ErrorEnvelope(code="NOT_CONFIGURED", message="No price provider configured.", retriable=False)


class MarketService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx

    def _api(self) -> PriceApi | None:
        return self.ctx.get_provider(PRICE_PROVIDER)  # type: ignore[return-value]

    def list_markets(self, currency: str = "usd", page: int = 1, per_page: int = 100) -> ServiceResult[list[MarketAsset]]:
        vs = validate_currency(currency)
        page = max(1, page)
        per_page = max(1, min(per_page, 250))
        api = self._api()
        if api is None:
            return ServiceResult(data=None, error=_no_provider())
        return run_with_cache(
            self.ctx,
            f"market:markets:{vs}:{page}:{per_page}",
            lambda: call_provider(self.ctx, PRICE_PROVIDER, lambda: api.list_markets(vs, page=page, per_page=per_page)),
            ttl_seconds=self.ctx.cache_ttl_markets_seconds,
        )

    def search_coins(self, query: str) -> ServiceResult[list[CoinSearchHit]]:
        clean = (query or "").strip()
        if not clean:
            raise ValueError("Search query must not be empty.")
        api = self._api()
        if api is None:
            return ServiceResult(data=None, error=_no_provider())
        return run_with_cache(
            self.ctx,
            f"market:search:{clean.lower()}",
            lambda: call_provider(self.ctx, PRICE_PROVIDER, lambda: api.search_coins(clean)),
        )

    def get_spot_prices(self, coin_ids: list[str], currency: str = "usd") -> ServiceResult[dict[str, float]]:
        ids = sorted(set(validate_coin_ids(coin_ids)))
        vs = validate_currency(currency)
        if not ids:
            return ServiceResult(data={}, source=PRICE_PROVIDER)
        api = self._api()
        if api is None:
            return ServiceResult(data=None, error=_no_provider())
        result = run_with_cache(
            self.ctx,
            f"market:spot:{vs}:{','.join(ids)}",
            lambda: call_provider(self.ctx, PRICE_PROVIDER, lambda: api.get_spot_prices(ids, vs)),
            ttl_seconds=self.ctx.cache_ttl_spot_seconds,
        )
        if result.data is not None:
            missing = [coin_id for coin_id in ids if coin_id not in result.data]
            if missing:
                return ServiceResult(
                    data=result.data,
                    source=result.source,
                    fetched_at=result.fetched_at,
                    warning=f"No spot price for: {', '.join(missing)}",
                )
        return result

    def get_historical_price(self, coin_id: str, on: date, currency: str = "usd") -> ServiceResult[float]:
        clean = validate_coin_id(coin_id)
        vs = validate_currency(currency)
        api = self._api()
        if api is None:
            return ServiceResult(data=None, error=_no_provider())
        return run_with_cache(
            self.ctx,
            f"market:history:{vs}:{clean}:{on.isoformat()}",
            lambda: call_provider(self.ctx, PRICE_PROVIDER, lambda: api.get_historical_price(clean, on, vs)),
            ttl_seconds=self.ctx.cache_ttl_chart_seconds,
        )

    def get_market_chart(self, coin_id: str, currency: str = "usd", days: int = 7) -> ServiceResult[list[PricePoint]]:
        clean = validate_coin_id(coin_id)
        vs = validate_currency(currency)
        span = validate_days(days)
        api = self._api()
        if api is None:
            return ServiceResult(data=None, error=_no_provider())
        return run_with_cache(
            self.ctx,
            f"market:chart:{vs}:{clean}:{span}",
            lambda: call_provider(self.ctx, PRICE_PROVIDER, lambda: api.get_market_chart(clean, vs, span)),
            ttl_seconds=self.ctx.cache_ttl_chart_seconds,
        )

    def get_trending(self, currency: str = "usd", limit: int = 10) -> ServiceResult[list[MarketAsset]]:
        """Top markets ordered by 7-day change, strongest first."""
        bounded = max(1, min(limit, 50))
        markets = self.list_markets(currency, page=1, per_page=TRENDING_UNIVERSE)
        if markets.data is None:
            return ServiceResult(data=None, error=markets.error, warning=markets.warning)
        ranked = sorted(
            (asset for asset in markets.data if asset.price_change_percentage_7d is not None),
            key=lambda asset: asset.price_change_percentage_7d or 0.0,
            reverse=True,
        )
        return ServiceResult(
            data=ranked[:bounded],
            source=markets.source,
            fetched_at=markets.fetched_at,
        )
