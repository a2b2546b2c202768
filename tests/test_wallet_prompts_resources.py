import asyncio
import json

import pytest
from mcp.server.fastmcp import FastMCP

from fintrack.prompts.wallet_prompts import register_wallet_prompts
from fintrack.resources.wallet_resources import register_wallet_resources
from fintrack.tools.registry import build_tool_services


def _resources_server(service_ctx, documents, session) -> FastMCP:
    mcp = FastMCP(name="test-wallet-resources")
    register_wallet_resources(mcp, build_tool_services(service_ctx, documents, session))
    return mcp


def test_wallet_review_prompt() -> None:
    mcp = FastMCP(name="test-wallet-prompts")
    register_wallet_prompts(mcp)

    prompts = asyncio.run(mcp.list_prompts())
    assert any(prompt.name == "wallet_review" for prompt in prompts)

    result = asyncio.run(mcp.get_prompt("wallet_review", {"focus": "risk", "currency": "eur"}))
    rendered = str(result.messages[0].content.text)
    assert "Focus the discussion on risk" in rendered
    assert "currency 'eur'" in rendered


def test_wallet_review_prompt_rejects_unknown_focus() -> None:
    mcp = FastMCP(name="test-wallet-prompts-invalid")
    register_wallet_prompts(mcp)

    with pytest.raises(ValueError, match="focus must be one of"):
        asyncio.run(mcp.get_prompt("wallet_review", {"focus": "astrology"}))


def test_wallet_resources_require_sign_in(service_ctx, documents, session) -> None:
    mcp = _resources_server(service_ctx, documents, session)

    uris = {str(resource.uri) for resource in asyncio.run(mcp.list_resources())}
    assert uris == {"wallet://current", "wallet://portfolio"}

    with pytest.raises(Exception) as exc:
        asyncio.run(mcp.read_resource("wallet://current"))
    assert "Wallet resource not found" in str(exc.value)
    assert "password" not in str(exc.value).lower()


def test_wallet_resources_after_sign_in(service_ctx, price_api, documents, session) -> None:
    services = build_tool_services(service_ctx, documents, session)
    mcp = FastMCP(name="test-wallet-resources-signed-in")
    register_wallet_resources(mcp, services)
    price_api.spot = {"ethereum": 3000.0}

    session.sign_up("ana@example.com", "secret1")
    services.wallet.add_entry("ethereum", 2, "2024-01-01", buy_price=2000)

    contents = asyncio.run(mcp.read_resource("wallet://current"))
    assert contents[0].mime_type == "application/json"
    entries = json.loads(contents[0].content)["entries"]
    assert [entry["asset_id"] for entry in entries] == ["ethereum"]

    snapshot = json.loads(asyncio.run(mcp.read_resource("wallet://portfolio"))[0].content)
    assert snapshot["portfolio"]["total_value"] == 6000.0
    assert snapshot["summary"]["total_unrealized"] == 2000.0
