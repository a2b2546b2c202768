"""Application entrypoint for the FinTrack wallet MCP server."""

from __future__ import annotations

import asyncio
import logging
import os

from mcp.server.fastmcp import FastMCP
from starlette.responses import JSONResponse, Response

from fintrack.auth.identity import LocalIdentityProvider
from fintrack.auth.session import Session
from fintrack.cache.ttl_cache import TTLCache
from fintrack.config.settings import Settings, get_settings
from fintrack.prompts.wallet_prompts import register_wallet_prompts
from fintrack.providers.coingecko import CoinGeckoClient
from fintrack.providers.document_store import JsonFileDocumentStore
from fintrack.resources.wallet_resources import register_wallet_resources
from fintrack.runtime.monitoring import ServerMetrics
from fintrack.services.base import ServiceContext
from fintrack.tools.registry import ToolServices, build_tool_services, register_all_tools
from fintrack.utils.rate_limit import RateLimiterRegistry

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def build_server(settings: Settings) -> tuple[FastMCP, ToolServices]:
    server_metrics = ServerMetrics()
    coingecko_client = CoinGeckoClient(
        api_key=settings.coingecko_api_key,
        timeout_seconds=settings.request_timeout_seconds,
        base_url=settings.coingecko_base_url,
        max_retries=settings.http_max_retries,
    )
    documents = JsonFileDocumentStore(settings.data_dir)
    session = Session(LocalIdentityProvider())
    service_ctx = ServiceContext(
        providers={"coingecko": coingecko_client},
        cache=TTLCache(default_ttl_seconds=settings.cache_ttl_seconds),
        rate_limiter=RateLimiterRegistry(min_interval_seconds=settings.provider_min_interval_seconds),
        cache_ttl_seconds=settings.cache_ttl_seconds,
        cache_ttl_spot_seconds=settings.cache_ttl_spot_seconds,
        cache_ttl_chart_seconds=settings.cache_ttl_chart_seconds,
        cache_ttl_markets_seconds=settings.cache_ttl_markets_seconds,
        server_metrics=server_metrics,
    )
    mcp = FastMCP(
        name=settings.app_name,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    services = build_tool_services(service_ctx, documents, session, default_currency=settings.default_currency)
    register_all_tools(mcp, services)
    register_wallet_prompts(mcp)
    register_wallet_resources(mcp, services)
    return mcp, services


async def run() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    mcp, _ = build_server(settings)
    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health_check(_: object) -> Response:
        prompts = await mcp.list_prompts()
        resources = await mcp.list_resources()
        tools = await mcp.list_tools()
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.app_name,
                "version": settings.app_version,
                "mode": resolved_mode,
                "tool_count": len(tools),
                "prompt_count": len(prompts),
                "resource_count": len(resources),
            }
        )

    if not settings.coingecko_api_key:
        LOGGER.warning("COINGECKO_API_KEY not set; using the public CoinGecko tier, which is heavily rate limited.")
    if resolved_mode == "stdio":
        await mcp.run_stdio_async()
    elif resolved_http_transport == "streamable":
        await mcp.run_streamable_http_async()
    else:
        await mcp.run_sse_async()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
