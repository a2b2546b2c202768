"""Wallet resource definitions."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from fintrack.services.wallet_service import entry_payload
from fintrack.tools.common import ensure_data

if TYPE_CHECKING:
    from fintrack.tools.registry import ToolServices

CURRENT_WALLET_URI = "wallet://current"
WALLET_PORTFOLIO_URI = "wallet://portfolio"


def register_wallet_resources(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.resource(
        CURRENT_WALLET_URI,
        name="current-wallet",
        title="Current Wallet Entries",
        description="The signed-in user's wallet entries, newest first.",
        mime_type="application/json",
    )
    def current_wallet_resource() -> str:
        if not services.wallet.store.session.is_authenticated:
            raise ValueError("Wallet resource not found. Sign in first.")
        entries = services.wallet.store.entries
        return json.dumps({"entries": [entry_payload(entry) for entry in entries]}, ensure_ascii=True)

    @mcp.resource(
        WALLET_PORTFOLIO_URI,
        name="wallet-portfolio",
        title="Wallet Portfolio Snapshot",
        description="Open positions with average cost, market value and allocation.",
        mime_type="application/json",
    )
    def wallet_portfolio_resource() -> str:
        if not services.wallet.store.session.is_authenticated:
            raise ValueError("Portfolio resource not found. Sign in first.")
        result = services.wallet.get_portfolio(services.resolve_currency())
        payload = ensure_data(result.data, result.error, "Portfolio is unavailable.")
        summary = services.wallet.get_summary(services.resolve_currency())
        return json.dumps(
            {"portfolio": payload, "summary": asdict(summary.data) if summary.data else None},
            ensure_ascii=True,
        )
