"""Domain tool registry entrypoint."""

from __future__ import annotations

from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from fintrack.auth.session import Session
from fintrack.providers.document_store import DocumentStore
from fintrack.runtime.monitoring import ServerMetrics
from fintrack.services.account_service import AccountService, AlertService, PreferencesService
from fintrack.services.base import ServiceContext
from fintrack.services.chart_service import ChartService
from fintrack.services.market_service import MarketService
from fintrack.services.runtime_service import RuntimeService
from fintrack.services.wallet_service import WalletService
from fintrack.tools.account_tools import register_account_tools
from fintrack.tools.chart_tools import register_chart_tools
from fintrack.tools.market_tools import register_market_tools
from fintrack.tools.runtime_tools import register_runtime_tools
from fintrack.tools.wallet_tools import register_wallet_tools
from fintrack.wallet.store import WalletStore


@dataclass
class ToolServices:
    market: MarketService
    charts: ChartService
    wallet: WalletService
    account: AccountService
    preferences: PreferencesService
    alerts: AlertService
    runtime: RuntimeService
    default_currency: str = "usd"
    metrics: ServerMetrics | None = None

    def resolve_currency(self, currency: str = "") -> str:
        """Explicit currency, else the user's preferred one."""
        if currency and currency.strip():
            return currency.strip().lower()
        prefs = self.preferences.get_preferences()
        return prefs.data.currency if prefs.data else self.default_currency


def build_tool_services(
    ctx: ServiceContext,
    documents: DocumentStore,
    session: Session,
    default_currency: str = "usd",
) -> ToolServices:
    market = MarketService(ctx)
    return ToolServices(
        market=market,
        charts=ChartService(market),
        wallet=WalletService(WalletStore(documents, session), market, default_currency=default_currency),
        account=AccountService(session),
        preferences=PreferencesService(documents, session, default_currency=default_currency),
        alerts=AlertService(documents, session),
        runtime=RuntimeService(ctx, session),
        default_currency=default_currency,
        metrics=ctx.server_metrics if isinstance(ctx.server_metrics, ServerMetrics) else None,
    )


def register_all_tools(mcp: FastMCP, services: ToolServices) -> None:
    register_market_tools(mcp, services)
    register_chart_tools(mcp, services)
    register_wallet_tools(mcp, services)
    register_account_tools(mcp, services)
    register_runtime_tools(mcp, services)
