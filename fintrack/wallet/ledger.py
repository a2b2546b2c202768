"""Replay wallet entries into a cumulative realized/unrealized P&L series."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from fintrack.wallet.models import PnLPoint, WalletEntry

LOGGER = logging.getLogger(__name__)


@dataclass
class _Holding:
    qty: float = 0.0
    avg: float = 0.0


def round2(value: float) -> float:
    """Round half away from zero on the decimal representation of ``value``."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def transaction_dates(entries: Sequence[WalletEntry]) -> list[str]:
    dates: set[str] = set()
    for entry in entries:
        if entry.buy_date:
            dates.add(entry.buy_date)
        if entry.sell_date:
            dates.add(entry.sell_date)
    return sorted(dates)


def _apply_buy(holding: _Holding, entry: WalletEntry) -> None:
    cost = holding.avg * holding.qty + entry.buy_price * entry.quantity
    holding.qty += entry.quantity
    holding.avg = cost / holding.qty if holding.qty else 0.0


def _apply_sell(holding: _Holding, entry: WalletEntry, sell_price: float) -> float:
    realized = (sell_price - holding.avg) * entry.quantity
    remaining = holding.qty - entry.quantity
    if remaining < 0:
        LOGGER.warning(
            "sell exceeds holding, clamping to zero: asset=%s entry=%s held=%s sold=%s",
            entry.asset_id,
            entry.id,
            holding.qty,
            entry.quantity,
        )
        remaining = 0.0
    holding.qty = remaining
    return realized


def compute_series(entries: Sequence[WalletEntry], spot_prices: Mapping[str, float]) -> list[PnLPoint]:
    """Cumulative realized and unrealized P&L at every transaction date.

    Every buy dated on a given day is applied before any sell of that day,
    across all assets, so a same-day buy funds a same-day sell. Unrealized
    P&L is valued with the single ``spot_prices`` snapshot at every date;
    assets missing from the snapshot are valued at 0.
    """
    holdings: dict[str, _Holding] = {}
    realized = 0.0
    points: list[PnLPoint] = []
    for day in transaction_dates(entries):
        for entry in entries:
            if entry.buy_date == day:
                _apply_buy(holdings.setdefault(entry.asset_id, _Holding()), entry)
        for entry in entries:
            if entry.sell_date == day and entry.sell_price is not None:
                realized += _apply_sell(holdings.setdefault(entry.asset_id, _Holding()), entry, entry.sell_price)

        unrealized = sum(
            (float(spot_prices.get(asset_id, 0.0)) - holding.avg) * holding.qty
            for asset_id, holding in holdings.items()
        )
        points.append(
            PnLPoint(
                date=day,
                realized_cumulative=round2(realized),
                unrealized_cumulative=round2(unrealized),
            )
        )
    return points
