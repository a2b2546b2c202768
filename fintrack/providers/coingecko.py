"""CoinGecko adapter with normalized outputs."""

from __future__ import annotations

from datetime import date
from typing import Protocol
from urllib.parse import quote

from fintrack.providers.http import ProviderError, fetch_json
from fintrack.providers.models import CoinSearchHit, MarketAsset, PricePoint

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"


class PriceApi(Protocol):
    def list_markets(self, currency: str, page: int = 1, per_page: int = 100) -> list[MarketAsset]: ...

    def get_market_chart(self, coin_id: str, currency: str, days: int) -> list[PricePoint]: ...

    def get_spot_prices(self, coin_ids: list[str], currency: str) -> dict[str, float]: ...

    def get_historical_price(self, coin_id: str, on: date, currency: str) -> float | None: ...

    def search_coins(self, query: str) -> list[CoinSearchHit]: ...


def _to_float(value: object) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: object) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


class CoinGeckoClient:
    def __init__(
        self,
        api_key: str | None = None,
        timeout_seconds: float = 15.0,
        base_url: str = COINGECKO_BASE_URL,
        max_retries: int = 3,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries

    def _request(self, endpoint: str, params: dict[str, str | int] | None = None) -> object:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        data = fetch_json(
            f"{self.base_url}{endpoint}",
            provider="coingecko",
            timeout_seconds=self.timeout_seconds,
            headers=headers,
            params=params,
            max_retries=self.max_retries,
        )
        if isinstance(data, dict) and isinstance(data.get("status"), dict):
            status = data["status"]
            message = str(status.get("error_message") or "CoinGecko upstream error.")
            code = _to_int(status.get("error_code"))
            if code == 429 or "rate limit" in message.lower():
                raise ProviderError("coingecko", "RATE_LIMIT", message, code)
            raise ProviderError("coingecko", "UPSTREAM", message, code)
        return data

    def list_markets(self, currency: str, page: int = 1, per_page: int = 100) -> list[MarketAsset]:
        data = self._request(
            "/coins/markets",
            {
                "vs_currency": currency,
                "order": "market_cap_desc",
                "per_page": max(1, min(per_page, 250)),
                "page": max(1, page),
                "sparkline": "false",
                "price_change_percentage": "24h,7d",
            },
        )
        if not isinstance(data, list):
            raise ProviderError("coingecko", "BAD_RESPONSE", "Unexpected market listing payload.")
        assets: list[MarketAsset] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            price = _to_float(item.get("current_price"))
            if price is None:
                continue
            assets.append(
                MarketAsset(
                    id=str(item["id"]),
                    symbol=str(item.get("symbol") or "").upper(),
                    name=str(item.get("name") or item["id"]),
                    current_price=price,
                    market_cap=_to_float(item.get("market_cap")),
                    market_cap_rank=_to_int(item.get("market_cap_rank")),
                    total_volume=_to_float(item.get("total_volume")),
                    high_24h=_to_float(item.get("high_24h")),
                    low_24h=_to_float(item.get("low_24h")),
                    price_change_percentage_24h=_to_float(item.get("price_change_percentage_24h")),
                    price_change_percentage_7d=_to_float(item.get("price_change_percentage_7d_in_currency")),
                    image=_optional_str(item.get("image")),
                    last_updated=_optional_str(item.get("last_updated")),
                )
            )
        return assets

    def get_market_chart(self, coin_id: str, currency: str, days: int) -> list[PricePoint]:
        params: dict[str, str | int] = {"vs_currency": currency, "days": days}
        if days > 1:
            params["interval"] = "daily"
        data = self._request(f"/coins/{quote(coin_id)}/market_chart", params)
        rows = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise ProviderError("coingecko", "BAD_RESPONSE", "No price data in market chart payload.")
        points: list[PricePoint] = []
        for row in rows:
            if not isinstance(row, (list, tuple)) or len(row) < 2:
                continue
            ts = _to_int(row[0])
            price = _to_float(row[1])
            if ts is None or price is None:
                continue
            points.append(PricePoint(timestamp=ts, price=price))
        return points

    def get_spot_prices(self, coin_ids: list[str], currency: str) -> dict[str, float]:
        ids = sorted({coin_id for coin_id in coin_ids if coin_id})
        if not ids:
            return {}
        data = self._request("/simple/price", {"ids": ",".join(ids), "vs_currencies": currency})
        if not isinstance(data, dict):
            raise ProviderError("coingecko", "BAD_RESPONSE", "Unexpected spot price payload.")
        prices: dict[str, float] = {}
        for coin_id in ids:
            row = data.get(coin_id)
            price = _to_float(row.get(currency)) if isinstance(row, dict) else None
            if price is not None:
                prices[coin_id] = price
        return prices

    def get_historical_price(self, coin_id: str, on: date, currency: str) -> float | None:
        data = self._request(
            f"/coins/{quote(coin_id)}/history",
            {"date": on.strftime("%d-%m-%Y"), "localization": "false"},
        )
        if not isinstance(data, dict):
            return None
        market_data = data.get("market_data")
        if not isinstance(market_data, dict):
            return None
        current = market_data.get("current_price")
        if not isinstance(current, dict):
            return None
        return _to_float(current.get(currency.lower()))

    def search_coins(self, query: str) -> list[CoinSearchHit]:
        data = self._request("/search", {"query": query})
        rows = data.get("coins") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []
        hits: list[CoinSearchHit] = []
        for item in rows:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            hits.append(
                CoinSearchHit(
                    id=str(item["id"]),
                    name=str(item.get("name") or item["id"]),
                    symbol=str(item.get("symbol") or "").upper(),
                    market_cap_rank=_to_int(item.get("market_cap_rank")),
                )
            )
        return hits
