"""Wallet prompt definitions."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

FOCUS_AREAS = ("performance", "risk", "rebalancing")


def _build_wallet_review_prompt(focus: str, currency: str) -> str:
    clean_focus = focus.strip().lower() or "performance"
    if clean_focus not in FOCUS_AREAS:
        raise ValueError(f"focus must be one of: {', '.join(FOCUS_AREAS)}.")
    clean_currency = currency.strip().lower() or "usd"
    return (
        "You are reviewing a personal cryptocurrency wallet.\n"
        f"Use get_portfolio, get_wallet_summary and get_wallet_pnl_series with currency '{clean_currency}', then:\n"
        "1) Summarize open positions with average cost versus current price\n"
        "2) Separate realized from unrealized profit/loss and explain the trend over time\n"
        f"3) Focus the discussion on {clean_focus}\n"
        "4) If you use get_price_chart forecasts, say they are simple trend lines, not predictions of fact."
    )


def register_wallet_prompts(mcp: FastMCP) -> None:
    @mcp.prompt(
        name="wallet_review",
        title="Wallet Review Prompt",
        description="Generate a structured review prompt for the signed-in user's wallet.",
    )
    def wallet_review(focus: str = "performance", currency: str = "usd") -> str:
        return _build_wallet_review_prompt(focus, currency)
