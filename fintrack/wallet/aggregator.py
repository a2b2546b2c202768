"""Fold wallet entries into per-asset open positions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fintrack.wallet.models import PortfolioPosition, WalletEntry


@dataclass
class _Accumulator:
    asset_name: str
    symbol: str
    quantity: float = 0.0
    total_cost: float = 0.0
    last_purchase_date: str | None = None


def aggregate(entries: Iterable[WalletEntry]) -> list[PortfolioPosition]:
    """Net open quantity and weighted-average cost per asset.

    Open entries add quantity and cost. Closed entries only subtract their
    quantity, so the average is taken over open lots alone; this is not lot
    matching. ``last_purchase_date`` is the buy date of the last open entry
    processed. Assets with net quantity <= 0 are dropped, which hides fully
    closed trades (see :func:`fintrack.wallet.ledger.compute_series` for those).
    """
    book: dict[str, _Accumulator] = {}
    for entry in entries:
        acc = book.get(entry.asset_id)
        if acc is None:
            acc = _Accumulator(asset_name=entry.asset_name, symbol=entry.symbol)
            book[entry.asset_id] = acc
        if entry.is_closed:
            acc.quantity -= entry.quantity
            continue
        acc.quantity += entry.quantity
        acc.total_cost += entry.buy_price * entry.quantity
        acc.last_purchase_date = entry.buy_date

    positions: list[PortfolioPosition] = []
    for asset_id, acc in book.items():
        if acc.quantity <= 0:
            continue
        positions.append(
            PortfolioPosition(
                asset_id=asset_id,
                asset_name=acc.asset_name,
                symbol=acc.symbol,
                quantity=acc.quantity,
                average_cost=acc.total_cost / acc.quantity if acc.quantity != 0 else 0.0,
                last_purchase_date=acc.last_purchase_date,
            )
        )
    return positions
