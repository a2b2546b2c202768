"""Typed wallet models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Persisted documents keep the field names the wallet has always been stored with.
DOCUMENT_FIELDS = {
    "id": "id",
    "asset_id": "coinId",
    "asset_name": "coinName",
    "symbol": "symbol",
    "quantity": "quantity",
    "buy_date": "buyDate",
    "buy_price": "buyPrice",
    "sell_date": "sellDate",
    "sell_price": "sellPrice",
}
EDITABLE_FIELDS = frozenset(DOCUMENT_FIELDS) - {"id"}


@dataclass(frozen=True)
class WalletEntry:
    id: str
    asset_id: str
    asset_name: str
    symbol: str
    quantity: float
    buy_date: str
    buy_price: float
    sell_date: str | None = None
    sell_price: float | None = None

    @property
    def is_closed(self) -> bool:
        """Closed only when both sell fields are present; anything else counts as open."""
        return self.sell_date is not None and self.sell_price is not None

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        for attr, key in DOCUMENT_FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            doc[key] = value
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> WalletEntry:
        sell_price = doc.get("sellPrice")
        return cls(
            id=str(doc["id"]),
            asset_id=str(doc["coinId"]),
            asset_name=str(doc.get("coinName") or doc["coinId"]),
            symbol=str(doc.get("symbol") or "").upper(),
            quantity=float(doc["quantity"]),
            buy_date=str(doc["buyDate"]),
            buy_price=float(doc["buyPrice"]),
            sell_date=str(doc["sellDate"]) if doc.get("sellDate") else None,
            sell_price=float(sell_price) if sell_price is not None else None,
        )


@dataclass(frozen=True)
class EntryDraft:
    """A wallet entry before the store assigns its id."""

    asset_id: str
    asset_name: str
    symbol: str
    quantity: float
    buy_date: str
    buy_price: float
    sell_date: str | None = None
    sell_price: float | None = None

    def with_id(self, entry_id: str) -> WalletEntry:
        return WalletEntry(
            id=entry_id,
            asset_id=self.asset_id,
            asset_name=self.asset_name,
            symbol=self.symbol.upper(),
            quantity=self.quantity,
            buy_date=self.buy_date,
            buy_price=self.buy_price,
            sell_date=self.sell_date,
            sell_price=self.sell_price,
        )


@dataclass
class PortfolioPosition:
    asset_id: str
    asset_name: str
    symbol: str
    quantity: float
    average_cost: float
    last_purchase_date: str | None = None


@dataclass(frozen=True)
class PnLPoint:
    date: str
    realized_cumulative: float
    unrealized_cumulative: float


@dataclass
class WalletSummary:
    total_investment: float
    total_realized: float
    total_unrealized: float
    open_entries: int
    closed_entries: int


@dataclass
class ValidationIssue:
    field: str
    message: str
    row: int | None = None
    code: str = "invalid_value"
