"""Account, preference and alert tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from fintrack.services.base import ServiceResult
from fintrack.tools.common import run_tool

if TYPE_CHECKING:
    from fintrack.tools.registry import ToolServices


def register_account_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="Create an account and sign in.")
    def sign_up(email: str, password: str) -> str:
        return run_tool(services, "sign_up", lambda: services.account.sign_up(email, password))

    @mcp.tool(description="Sign in; loads the user's wallet.")
    def sign_in(email: str, password: str) -> str:
        return run_tool(services, "sign_in", lambda: services.account.sign_in(email, password))

    @mcp.tool(description="Sign out; clears the in-memory wallet.")
    def sign_out() -> str:
        return run_tool(services, "sign_out", services.account.sign_out)

    @mcp.tool(description="Send a password reset email.")
    def reset_password(email: str) -> str:
        return run_tool(services, "reset_password", lambda: services.account.reset_password(email))

    @mcp.tool(description="Change the signed-in user's password.")
    def change_password(current_password: str, new_password: str, confirm_password: str) -> str:
        return run_tool(
            services,
            "change_password",
            lambda: services.account.change_password(current_password, new_password, confirm_password),
        )

    @mcp.tool(description="Get display currency, default chart range and favorite coins.")
    def get_preferences() -> str:
        return run_tool(services, "get_preferences", services.preferences.get_preferences)

    @mcp.tool(description="Set the display currency (usd, eur, inr, jpy, gbp, aud, cad, sgd, zar).")
    def set_currency(currency: str) -> str:
        return run_tool(services, "set_currency", lambda: services.preferences.set_currency(currency), subject=currency)

    @mcp.tool(description="Set the default chart range ('1', '7', '30' or '365').")
    def set_default_range(chart_range: str) -> str:
        return run_tool(services, "set_default_range", lambda: services.preferences.set_default_range(chart_range))

    @mcp.tool(description="Add or remove a coin from favorites.")
    def toggle_favorite(coin_id: str) -> str:
        return run_tool(services, "toggle_favorite", lambda: services.preferences.toggle_favorite(coin_id), subject=coin_id)

    @mcp.tool(description="Add a price alert that fires when the price leaves [min_price, max_price].")
    def add_price_alert(coin_id: str, min_price: str, max_price: str, coin_name: str = "") -> str:
        return run_tool(
            services,
            "add_price_alert",
            lambda: services.alerts.add_alert(coin_id, min_price, max_price, coin_name=coin_name or None),
            subject=coin_id,
        )

    @mcp.tool(description="Remove a price alert by id.")
    def remove_price_alert(alert_id: str) -> str:
        return run_tool(
            services,
            "remove_price_alert",
            lambda: services.alerts.remove_alert(alert_id),
            subject=alert_id,
            shape=lambda removed: {"alert_id": alert_id, "removed": removed},
        )

    @mcp.tool(description="List price alerts.")
    def list_price_alerts() -> str:
        return run_tool(services, "list_price_alerts", services.alerts.list_alerts)

    @mcp.tool(description="Check every price alert against current prices and return the triggered ones.")
    def check_price_alerts(currency: str = "") -> str:
        def _check() -> ServiceResult[object]:
            alerts = services.alerts.list_alerts()
            if alerts.data is None:
                return alerts
            coin_ids = sorted({alert.coin_id for alert in alerts.data})
            prices = services.market.get_spot_prices(coin_ids, services.resolve_currency(currency))
            if prices.data is None:
                return prices
            result = services.alerts.evaluate(prices.data)
            result.warning = prices.warning
            return result

        return run_tool(services, "check_price_alerts", _check)
