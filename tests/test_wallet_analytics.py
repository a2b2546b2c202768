import pytest

from fintrack.wallet.analytics import calculate_asset_allocation, entries_to_frame, sort_entries, summarize_wallet
from fintrack.wallet.models import PortfolioPosition, WalletEntry, WalletSummary


def _entries() -> list[WalletEntry]:
    return [
        WalletEntry("1", "bitcoin", "Bitcoin", "BTC", 2.0, "2024-01-10", 100.0),
        WalletEntry("2", "ethereum", "Ethereum", "ETH", 1.0, "2024-01-01", 10.0, "2024-02-01", 15.0),
        WalletEntry("3", "solana", "Solana", "SOL", 5.0, "2024-01-20", 4.0),
    ]


def test_summary_uses_entry_prices() -> None:
    summary = summarize_wallet(_entries(), {"bitcoin": 150.0, "solana": 3.0})
    assert summary.total_investment == pytest.approx(230.0)
    assert summary.total_realized == pytest.approx(5.0)
    assert summary.total_unrealized == pytest.approx(95.0)
    assert (summary.open_entries, summary.closed_entries) == (2, 1)


def test_empty_summary() -> None:
    assert summarize_wallet([], {}) == WalletSummary(0.0, 0.0, 0.0, 0, 0)


def test_frame_has_profit_columns() -> None:
    frame = entries_to_frame(_entries(), {"bitcoin": 150.0})
    assert list(frame["Profit"]) == pytest.approx([100.0, 5.0, -20.0])
    assert list(frame["Activity_Date"]) == ["2024-01-10", "2024-02-01", "2024-01-20"]


def test_sort_options() -> None:
    entries = _entries()
    spot = {"bitcoin": 150.0, "solana": 3.0}
    assert [e.id for e in sort_entries(entries)] == ["2", "3", "1"]
    assert [e.id for e in sort_entries(entries, "date-asc")] == ["1", "3", "2"]
    assert [e.id for e in sort_entries(entries, "profit", spot)] == ["1", "2", "3"]
    assert [e.id for e in sort_entries(entries, "quantity")] == ["3", "1", "2"]
    assert sort_entries([], "quantity") == []
    with pytest.raises(ValueError):
        sort_entries(entries, "name")


def test_allocation_by_market_value() -> None:
    positions = [
        PortfolioPosition("bitcoin", "Bitcoin", "BTC", 1.0, 100.0),
        PortfolioPosition("ethereum", "Ethereum", "ETH", 1.0, 10.0),
    ]
    allocation = calculate_asset_allocation(positions, {"bitcoin": 300.0, "ethereum": 100.0})
    assert allocation == pytest.approx({"bitcoin": 0.75, "ethereum": 0.25})
    assert calculate_asset_allocation(positions, {}) == {"bitcoin": 0.0, "ethereum": 0.0}
