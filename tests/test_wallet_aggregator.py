from fintrack.wallet.aggregator import aggregate
from fintrack.wallet.models import WalletEntry


def _entry(entry_id: str, asset: str, qty: float, buy_date: str, buy_price: float, sell_date=None, sell_price=None) -> WalletEntry:
    return WalletEntry(
        id=entry_id,
        asset_id=asset,
        asset_name=asset.title(),
        symbol=asset[:3].upper(),
        quantity=qty,
        buy_date=buy_date,
        buy_price=buy_price,
        sell_date=sell_date,
        sell_price=sell_price,
    )


def test_open_entries_give_weighted_average_cost() -> None:
    positions = aggregate(
        [
            _entry("1", "bitcoin", 1.0, "2024-01-01", 100.0),
            _entry("2", "bitcoin", 3.0, "2024-01-05", 200.0),
        ]
    )
    assert len(positions) == 1
    btc = positions[0]
    assert btc.quantity == 4.0
    assert btc.average_cost == 175.0
    assert btc.last_purchase_date == "2024-01-05"
    assert btc.asset_name == "Bitcoin"


def test_closed_entry_reduces_quantity_without_cost() -> None:
    positions = aggregate(
        [
            _entry("1", "bitcoin", 2.0, "2024-01-01", 100.0),
            _entry("2", "bitcoin", 1.0, "2024-01-02", 120.0),
            _entry("3", "bitcoin", 1.0, "2024-01-03", 90.0, "2024-02-01", 150.0),
        ]
    )
    btc = positions[0]
    assert btc.quantity == 2.0
    assert btc.average_cost == 160.0
    assert btc.last_purchase_date == "2024-01-02"


def test_fully_closed_assets_are_dropped() -> None:
    positions = aggregate(
        [
            _entry("1", "ethereum", 1.0, "2024-01-01", 10.0, "2024-01-02", 12.0),
            _entry("2", "solana", 5.0, "2024-01-01", 20.0),
        ]
    )
    assert [p.asset_id for p in positions] == ["solana"]


def test_quantity_and_cost_do_not_depend_on_order() -> None:
    entries = [
        _entry("1", "bitcoin", 1.0, "2024-01-01", 100.0),
        _entry("2", "bitcoin", 2.0, "2024-01-03", 130.0),
        _entry("3", "ethereum", 4.0, "2024-01-02", 10.0),
        _entry("4", "bitcoin", 0.5, "2024-01-04", 110.0, "2024-02-01", 200.0),
    ]
    forward = {p.asset_id: (p.quantity, p.average_cost) for p in aggregate(entries)}
    backward = {p.asset_id: (p.quantity, p.average_cost) for p in aggregate(list(reversed(entries)))}
    assert forward == backward


def test_aggregate_is_idempotent_and_does_not_mutate_input() -> None:
    entries = [_entry("1", "bitcoin", 1.0, "2024-01-01", 100.0), _entry("2", "cardano", 10.0, "2024-01-01", 0.5)]
    snapshot = list(entries)
    assert aggregate(entries) == aggregate(entries)
    assert entries == snapshot


def test_empty_wallet_has_no_positions() -> None:
    assert aggregate([]) == []
