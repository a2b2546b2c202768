"""Wallet-domain service: entry lifecycle, portfolio and P&L views."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from typing import Any, Callable, Sequence

from fintrack.auth.identity import AuthError
from fintrack.providers.document_store import DocumentStoreError
from fintrack.services.base import (
    ErrorEnvelope,
    ServiceResult,
    envelope_from_auth_error,
    envelope_from_store_error,
    validate_coin_id,
    validate_currency,
)
from fintrack.services.market_service import MarketService
from fintrack.wallet.aggregator import aggregate
from fintrack.wallet.analytics import calculate_asset_allocation, sort_entries, summarize_wallet
from fintrack.wallet.ledger import compute_series
from fintrack.wallet.models import EntryDraft, PnLPoint, ValidationIssue, WalletEntry, WalletSummary
from fintrack.wallet.store import WalletEntryNotFound, WalletStore
from fintrack.wallet.validation import WalletValidationError, coerce_number, parse_iso_date, validate_import_rows

LOGGER = logging.getLogger(__name__)

NUMERIC_FIELDS = {"quantity", "buy_price", "sell_price"}
DATE_FIELDS = {"buy_date", "sell_date"}


def _invalid(issues: Sequence[ValidationIssue]) -> ErrorEnvelope:
    return ErrorEnvelope(
        code="INVALID_ENTRY",
        message="; ".join(issue.message for issue in issues) or "Invalid wallet entry.",
        retriable=False,
        details=[asdict(issue) for issue in issues],
    )


def _data_unavailable(what: str, error: ErrorEnvelope | None) -> ErrorEnvelope:
    reason = f" ({error.message})" if error else ""
    return ErrorEnvelope(
        code="DATA_UNAVAILABLE",
        message=f"Failed to fetch {what} price for that date{reason}.",
        retriable=True,
        provider=error.provider if error else None,
    )


def _coerce_optional(value: object) -> float | None | object:
    """Numeric strings become floats; blanks become None; anything else is left for validation."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = coerce_number(value)
    return number if number is not None else value


def _optional_date(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _join_warnings(*warnings: str | None) -> str | None:
    return "; ".join(w for w in warnings if w) or None


def draft_from_document(row: dict[str, Any]) -> EntryDraft:
    return EntryDraft(
        asset_id=str(row.get("coinId") or "").strip().lower(),
        asset_name=str(row.get("coinName") or ""),
        symbol=str(row.get("symbol") or ""),
        quantity=coerce_number(row.get("quantity")),  # type: ignore[arg-type]
        buy_date=str(row.get("buyDate") or ""),
        buy_price=coerce_number(row.get("buyPrice")),  # type: ignore[arg-type]
        sell_date=_optional_date(row.get("sellDate")),
        sell_price=_coerce_optional(row.get("sellPrice")),  # type: ignore[arg-type]
    )


class WalletService:
    def __init__(self, store: WalletStore, market: MarketService, default_currency: str = "usd") -> None:
        self.store = store
        self.market = market
        self.default_currency = default_currency

    def _guard(self, call: Callable[[], Any]) -> ServiceResult[Any]:
        try:
            value = call()
        except WalletValidationError as error:
            return ServiceResult(data=None, error=_invalid(error.issues))
        except WalletEntryNotFound as error:
            return ServiceResult(data=None, error=ErrorEnvelope(code="NOT_FOUND", message=str(error), retriable=False))
        except AuthError as error:
            return ServiceResult(data=None, error=envelope_from_auth_error(error))
        except DocumentStoreError as error:
            return ServiceResult(data=None, error=envelope_from_store_error(error))
        return ServiceResult(data=value, source="wallet", fetched_at=time.time())

    def _lookup_price(self, coin_id: str, day: str, currency: str, what: str) -> tuple[float | None, ErrorEnvelope | None]:
        try:
            on = parse_iso_date(day)
        except ValueError as error:
            return None, _invalid([ValidationIssue(field=f"{what}_date", code="invalid_date", message=str(error))])
        result = self.market.get_historical_price(coin_id, on, currency)
        if result.data is None:
            LOGGER.warning("historical price unavailable: coin=%s date=%s kind=%s", coin_id, day, what)
            return None, _data_unavailable(what, result.error)
        return result.data, None

    def add_entry(
        self,
        asset_id: str,
        quantity: object,
        buy_date: str,
        buy_price: object = None,
        sell_date: str | None = None,
        sell_price: object = None,
        asset_name: str | None = None,
        symbol: str | None = None,
        currency: str | None = None,
    ) -> ServiceResult[WalletEntry]:
        """Add one entry, filling missing buy/sell prices from the price history.

        If a needed historical price cannot be fetched nothing is added and the
        result carries a DATA_UNAVAILABLE error.
        """
        if not self.store.session.is_authenticated:
            return ServiceResult(data=None, error=envelope_from_auth_error(AuthError("not-signed-in")))
        coin_id = validate_coin_id(asset_id)
        vs = validate_currency(currency or self.default_currency)
        buy = _coerce_optional(buy_price)
        sell = _coerce_optional(sell_price)
        clean_sell_date = _optional_date(sell_date)

        if buy is None:
            buy, error = self._lookup_price(coin_id, buy_date, vs, "buy")
            if error:
                return ServiceResult(data=None, error=error)
        if sell is None and clean_sell_date:
            sell, error = self._lookup_price(coin_id, clean_sell_date, vs, "sell")
            if error:
                return ServiceResult(data=None, error=error)

        draft = EntryDraft(
            asset_id=coin_id,
            asset_name=(asset_name or "").strip() or coin_id.replace("-", " ").title(),
            symbol=(symbol or "").strip() or coin_id[:4],
            quantity=_coerce_optional(quantity),  # type: ignore[arg-type]
            buy_date=(buy_date or "").strip(),
            buy_price=buy,  # type: ignore[arg-type]
            sell_date=clean_sell_date,
            sell_price=sell,  # type: ignore[arg-type]
        )
        return self._guard(lambda: self.store.add_entry(draft))

    def edit_entry(self, entry_id: str, changes: dict[str, Any]) -> ServiceResult[WalletEntry]:
        clean: dict[str, Any] = {}
        for name, value in changes.items():
            if name in NUMERIC_FIELDS:
                clean[name] = _coerce_optional(value)
            elif name in DATE_FIELDS:
                clean[name] = _optional_date(value) if name == "sell_date" else str(value or "").strip()
            elif name == "asset_id" and isinstance(value, str):
                clean[name] = value.strip().lower()
            else:
                clean[name] = value
        return self._guard(lambda: self.store.edit_entry(entry_id, clean))

    def remove_entry(self, entry_id: str) -> ServiceResult[bool]:
        return self._guard(lambda: self.store.remove_entry(entry_id))

    def _spot_prices(self, entries: Sequence[WalletEntry], currency: str) -> ServiceResult[dict[str, float]]:
        ids = sorted({entry.asset_id for entry in entries})
        return self.market.get_spot_prices(ids, currency)

    def _loaded_entries(self) -> tuple[list[WalletEntry], str | None]:
        """Current entries, retrying the load once if the last one failed."""
        if self.store.load_error and self.store.session.is_authenticated:
            self.store.reload()
        if self.store.load_error:
            return self.store.entries, f"Wallet could not be loaded: {self.store.load_error}"
        return self.store.entries, None

    def list_entries(self, sort_by: str = "date-desc", currency: str | None = None) -> ServiceResult[list[WalletEntry]]:
        entries, warning = self._loaded_entries()
        spot: dict[str, float] = {}
        if sort_by == "profit" and entries:
            prices = self._spot_prices(entries, validate_currency(currency or self.default_currency))
            if prices.data is None:
                return ServiceResult(data=None, error=prices.error)
            spot = prices.data
            warning = _join_warnings(warning, prices.warning)
        return ServiceResult(data=sort_entries(entries, sort_by, spot), source="wallet", warning=warning, fetched_at=time.time())

    def get_portfolio(self, currency: str | None = None) -> ServiceResult[dict[str, Any]]:
        vs = validate_currency(currency or self.default_currency)
        entries, load_warning = self._loaded_entries()
        positions = aggregate(entries)
        if not positions:
            return ServiceResult(
                data={"currency": vs, "positions": [], "total_value": 0.0},
                source="wallet",
                warning=load_warning,
                fetched_at=time.time(),
            )
        prices = self.market.get_spot_prices([p.asset_id for p in positions], vs)
        if prices.data is None:
            return ServiceResult(data=None, error=prices.error)
        allocation = calculate_asset_allocation(positions, prices.data)
        rows = []
        for position in positions:
            spot = prices.data.get(position.asset_id)
            value = position.quantity * spot if spot is not None else None
            rows.append(
                {
                    **asdict(position),
                    "spot_price": spot,
                    "market_value": value,
                    "unrealized_pnl": (spot - position.average_cost) * position.quantity if spot is not None else None,
                    "allocation": allocation.get(position.asset_id, 0.0),
                }
            )
        total = sum(row["market_value"] or 0.0 for row in rows)
        return ServiceResult(
            data={"currency": vs, "positions": rows, "total_value": total},
            source=prices.source,
            warning=_join_warnings(load_warning, prices.warning),
            fetched_at=prices.fetched_at,
        )

    def get_pnl_series(self, currency: str | None = None) -> ServiceResult[list[PnLPoint]]:
        vs = validate_currency(currency or self.default_currency)
        entries, load_warning = self._loaded_entries()
        if not entries:
            return ServiceResult(data=[], source="wallet", warning=load_warning, fetched_at=time.time())
        prices = self._spot_prices(entries, vs)
        if prices.data is None:
            return ServiceResult(data=None, error=prices.error)
        return ServiceResult(
            data=compute_series(entries, prices.data),
            source=prices.source,
            warning=_join_warnings(load_warning, prices.warning),
            fetched_at=prices.fetched_at,
        )

    def get_summary(self, currency: str | None = None) -> ServiceResult[WalletSummary]:
        vs = validate_currency(currency or self.default_currency)
        entries, load_warning = self._loaded_entries()
        if not entries:
            return ServiceResult(data=summarize_wallet([], {}), source="wallet", warning=load_warning, fetched_at=time.time())
        prices = self._spot_prices(entries, vs)
        if prices.data is None:
            return ServiceResult(data=None, error=prices.error)
        return ServiceResult(
            data=summarize_wallet(entries, prices.data),
            source=prices.source,
            warning=_join_warnings(load_warning, prices.warning),
            fetched_at=prices.fetched_at,
        )

    def import_entries(self, payload: str) -> ServiceResult[list[WalletEntry]]:
        """Import a JSON list of stored-format entries; all rows or none."""
        try:
            rows = json.loads(payload)
        except json.JSONDecodeError:
            return ServiceResult(
                data=None,
                error=_invalid([ValidationIssue(field="wallet", code="invalid_format", message="Invalid wallet file.")]),
            )
        if isinstance(rows, dict) and "wallet" in rows:
            rows = rows["wallet"]
        issues = validate_import_rows(rows)
        if issues:
            return ServiceResult(data=None, error=_invalid(issues))
        drafts = [draft_from_document(row) for row in rows]
        return self._guard(lambda: self.store.add_entries(drafts))

    def export_entries(self) -> ServiceResult[str]:
        documents = [entry.to_document() for entry in self.store.entries]
        return ServiceResult(data=json.dumps(documents, indent=2), source="wallet", fetched_at=time.time())


def entry_payload(entry: WalletEntry) -> dict[str, Any]:
    payload = asdict(entry)
    payload["closed"] = entry.is_closed
    return payload
