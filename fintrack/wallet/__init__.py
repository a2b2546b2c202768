"""Wallet domain package."""

from fintrack.wallet.aggregator import aggregate
from fintrack.wallet.ledger import compute_series
from fintrack.wallet.models import EntryDraft, PnLPoint, PortfolioPosition, WalletEntry
from fintrack.wallet.store import WalletStore

__all__ = [
    "EntryDraft",
    "PnLPoint",
    "PortfolioPosition",
    "WalletEntry",
    "WalletStore",
    "aggregate",
    "compute_series",
]
