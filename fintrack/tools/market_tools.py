"""Market-domain tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from fintrack.tools.common import parse_id_list, run_tool

if TYPE_CHECKING:
    from fintrack.tools.registry import ToolServices


def register_market_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="List coins by market cap with price, volume and 24h/7d change.")
    def list_markets(currency: str = "", page: int = 1, per_page: int = 50) -> str:
        return run_tool(
            services,
            "list_markets",
            lambda: services.market.list_markets(services.resolve_currency(currency), page=page, per_page=per_page),
        )

    @mcp.tool(description="Search coins by name or ticker.")
    def search_coins(query: str) -> str:
        return run_tool(services, "search_coins", lambda: services.market.search_coins(query), subject=query)

    @mcp.tool(description="Get current prices for comma-separated coin ids, e.g. 'bitcoin,ethereum'.")
    def get_spot_prices(coin_ids: str, currency: str = "") -> str:
        return run_tool(
            services,
            "get_spot_prices",
            lambda: services.market.get_spot_prices(parse_id_list(coin_ids), services.resolve_currency(currency)),
            subject=coin_ids,
        )

    @mcp.tool(description="Top coins ranked by 7-day price change.")
    def get_trending_coins(currency: str = "", limit: int = 10) -> str:
        return run_tool(
            services,
            "get_trending_coins",
            lambda: services.market.get_trending(services.resolve_currency(currency), limit=limit),
        )
