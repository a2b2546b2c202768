"""Per-entry wallet analytics backed by pandas."""

from __future__ import annotations

from typing import Mapping, Sequence

import pandas as pd

from fintrack.wallet.models import PortfolioPosition, WalletEntry, WalletSummary

SORT_OPTIONS = ("date-desc", "date-asc", "profit", "quantity")
FRAME_COLUMNS = [
    "Entry_Id",
    "Asset_Id",
    "Quantity",
    "Buy_Date",
    "Buy_Price",
    "Sell_Date",
    "Sell_Price",
    "Closed",
    "Spot_Price",
    "Invested",
    "Realized",
    "Unrealized",
    "Profit",
    "Activity_Date",
]


def entries_to_frame(entries: Sequence[WalletEntry], spot_prices: Mapping[str, float]) -> pd.DataFrame:
    if not entries:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    data = pd.DataFrame(
        [
            {
                "Entry_Id": entry.id,
                "Asset_Id": entry.asset_id,
                "Quantity": float(entry.quantity),
                "Buy_Date": entry.buy_date,
                "Buy_Price": float(entry.buy_price),
                "Sell_Date": entry.sell_date,
                "Sell_Price": entry.sell_price,
                "Closed": entry.is_closed,
            }
            for entry in entries
        ]
    )
    data["Spot_Price"] = data["Asset_Id"].map(lambda asset_id: float(spot_prices.get(asset_id, 0.0)))
    data["Invested"] = data["Buy_Price"] * data["Quantity"]
    sell_price = data["Sell_Price"].astype(float).fillna(0.0)
    data["Realized"] = ((sell_price - data["Buy_Price"]) * data["Quantity"]).where(data["Closed"], 0.0)
    data["Unrealized"] = ((data["Spot_Price"] - data["Buy_Price"]) * data["Quantity"]).where(~data["Closed"], 0.0)
    data["Profit"] = data["Realized"] + data["Unrealized"]
    data["Activity_Date"] = data["Sell_Date"].where(data["Closed"], data["Buy_Date"])
    return data


def summarize_wallet(entries: Sequence[WalletEntry], spot_prices: Mapping[str, float]) -> WalletSummary:
    """Totals per entry at its own buy price, unlike the weighted-average ledger."""
    frame = entries_to_frame(entries, spot_prices)
    if frame.empty:
        return WalletSummary(0.0, 0.0, 0.0, 0, 0)
    closed = int(frame["Closed"].sum())
    return WalletSummary(
        total_investment=float(frame["Invested"].sum()),
        total_realized=float(frame["Realized"].sum()),
        total_unrealized=float(frame["Unrealized"].sum()),
        open_entries=int(len(frame)) - closed,
        closed_entries=closed,
    )


def calculate_asset_allocation(
    positions: Sequence[PortfolioPosition],
    spot_prices: Mapping[str, float],
) -> dict[str, float]:
    if not positions:
        return {}
    frame = pd.DataFrame(
        [
            {"Asset_Id": position.asset_id, "Market_Value": position.quantity * float(spot_prices.get(position.asset_id, 0.0))}
            for position in positions
        ]
    )
    total = float(frame["Market_Value"].sum())
    if total <= 0:
        return {asset_id: 0.0 for asset_id in frame["Asset_Id"]}
    totals = frame.groupby("Asset_Id")["Market_Value"].sum() / total
    return {asset_id: float(value) for asset_id, value in totals.to_dict().items()}


def sort_entries(
    entries: Sequence[WalletEntry],
    sort_by: str = "date-desc",
    spot_prices: Mapping[str, float] | None = None,
) -> list[WalletEntry]:
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"sort_by must be one of {list(SORT_OPTIONS)}.")
    if not entries:
        return []
    frame = entries_to_frame(entries, spot_prices or {})
    frame["Position"] = range(len(frame))
    if sort_by == "date-desc":
        ordered = frame.sort_values("Activity_Date", ascending=False, kind="mergesort")
    elif sort_by == "date-asc":
        ordered = frame.sort_values("Activity_Date", ascending=True, kind="mergesort")
    elif sort_by == "profit":
        ordered = frame.sort_values("Profit", ascending=False, kind="mergesort")
    else:
        ordered = frame.sort_values("Quantity", ascending=False, kind="mergesort")
    return [entries[int(idx)] for idx in ordered["Position"]]
