"""Wallet-domain MCP tools."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP

from fintrack.lib.formatters import format_money, format_percent, format_signed_money
from fintrack.runtime.response import error_response
from fintrack.services.wallet_service import entry_payload
from fintrack.tools.common import run_tool

if TYPE_CHECKING:
    from fintrack.tools.registry import ToolServices
    from fintrack.wallet.models import WalletSummary


def _portfolio_display(portfolio: dict[str, Any]) -> dict[str, Any]:
    currency = portfolio["currency"]
    return {
        **portfolio,
        "display": {
            "total_value": format_money(portfolio["total_value"], currency),
            "positions": {
                row["asset_id"]: {
                    "market_value": format_money(row["market_value"], currency),
                    "unrealized_pnl": format_signed_money(row["unrealized_pnl"] or 0.0, currency),
                    "allocation": format_percent(row["allocation"] * 100),
                }
                for row in portfolio["positions"]
            },
        },
    }


def _summary_display(summary: WalletSummary, currency: str) -> dict[str, Any]:
    return {
        **asdict(summary),
        "currency": currency,
        "display": {
            "total_investment": format_money(summary.total_investment, currency),
            "total_realized": format_signed_money(summary.total_realized, currency),
            "total_unrealized": format_signed_money(summary.total_unrealized, currency),
        },
    }


def register_wallet_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(
        description=(
            "Record a buy (optionally already sold) in the signed-in user's wallet. Dates are YYYY-MM-DD. "
            "Leave buy_price/sell_price empty to use the historical price for that date."
        )
    )
    def add_wallet_entry(
        coin_id: str,
        quantity: str,
        buy_date: str,
        buy_price: str = "",
        sell_date: str = "",
        sell_price: str = "",
        coin_name: str = "",
        symbol: str = "",
        currency: str = "",
    ) -> str:
        return run_tool(
            services,
            "add_wallet_entry",
            lambda: services.wallet.add_entry(
                coin_id,
                quantity,
                buy_date,
                buy_price=buy_price,
                sell_date=sell_date,
                sell_price=sell_price,
                asset_name=coin_name,
                symbol=symbol,
                currency=services.resolve_currency(currency),
            ),
            subject=coin_id,
            shape=entry_payload,
        )

    @mcp.tool(
        description=(
            "Edit a wallet entry. changes_json is an object with any of: asset_id, asset_name, symbol, "
            "quantity, buy_date, buy_price, sell_date, sell_price. Use null to clear the sell fields."
        )
    )
    def edit_wallet_entry(entry_id: str, changes_json: str) -> str:
        try:
            changes = json.loads(changes_json)
        except json.JSONDecodeError:
            return error_response("INVALID_INPUT", "changes_json must be a JSON object.")
        if not isinstance(changes, dict):
            return error_response("INVALID_INPUT", "changes_json must be a JSON object.")
        return run_tool(
            services,
            "edit_wallet_entry",
            lambda: services.wallet.edit_entry(entry_id, changes),
            subject=entry_id,
            shape=entry_payload,
        )

    @mcp.tool(description="Remove a wallet entry by id.")
    def remove_wallet_entry(entry_id: str) -> str:
        return run_tool(
            services,
            "remove_wallet_entry",
            lambda: services.wallet.remove_entry(entry_id),
            subject=entry_id,
            shape=lambda removed: {"entry_id": entry_id, "removed": removed},
        )

    @mcp.tool(description="List wallet entries sorted by 'date-desc', 'date-asc', 'profit' or 'quantity'.")
    def list_wallet_entries(sort_by: str = "date-desc", currency: str = "") -> str:
        return run_tool(
            services,
            "list_wallet_entries",
            lambda: services.wallet.list_entries(sort_by, services.resolve_currency(currency)),
            shape=lambda entries: [entry_payload(entry) for entry in entries],
        )

    @mcp.tool(description="Current holdings per coin with average cost, market value and allocation.")
    def get_portfolio(currency: str = "") -> str:
        return run_tool(
            services,
            "get_portfolio",
            lambda: services.wallet.get_portfolio(services.resolve_currency(currency)),
            shape=_portfolio_display,
        )

    @mcp.tool(description="Cumulative realized and unrealized profit/loss at every transaction date.")
    def get_wallet_pnl_series(currency: str = "") -> str:
        return run_tool(
            services,
            "get_wallet_pnl_series",
            lambda: services.wallet.get_pnl_series(services.resolve_currency(currency)),
        )

    @mcp.tool(description="Wallet totals: investment, realized and unrealized profit/loss, open/closed entries.")
    def get_wallet_summary(currency: str = "") -> str:
        vs = services.resolve_currency(currency)
        return run_tool(
            services,
            "get_wallet_summary",
            lambda: services.wallet.get_summary(vs),
            shape=lambda summary: _summary_display(summary, vs),
        )

    @mcp.tool(description="Import wallet entries from a JSON list in the exported wallet format.")
    def import_wallet_entries(payload_json: str) -> str:
        return run_tool(
            services,
            "import_wallet_entries",
            lambda: services.wallet.import_entries(payload_json),
            shape=lambda entries: {"imported": len(entries), "entries": [entry_payload(entry) for entry in entries]},
        )

    @mcp.tool(description="Export the wallet as a JSON list that import_wallet_entries accepts.")
    def export_wallet_entries() -> str:
        return run_tool(services, "export_wallet_entries", services.wallet.export_entries)
