"""Chart and forecast tools."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP

from fintrack.lib.formatters import FORECAST_DISCLAIMER, chart_date_label
from fintrack.runtime.response import error_response
from fintrack.services.chart_service import forecast_values, validate_model
from fintrack.tools.common import run_tool

if TYPE_CHECKING:
    from fintrack.services.chart_service import PriceChart
    from fintrack.tools.registry import ToolServices


def _chart_payload(chart: PriceChart) -> dict[str, Any]:
    payload = {**asdict(chart), "forecast_disclaimer": FORECAST_DISCLAIMER}
    if chart.points:
        payload["period"] = f"{chart_date_label(chart.points[0].timestamp)} to {chart_date_label(chart.points[-1].timestamp)}"
    return payload


def register_chart_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(
        description=(
            "Price chart for a coin over chart_range '1', '7', '30' or '365' days with an optional "
            "'linear' or 'ma' (moving average) forecast overlay and a +/- standard error band."
        )
    )
    def get_price_chart(coin_id: str, chart_range: str = "7", model: str = "linear", currency: str = "") -> str:
        return run_tool(
            services,
            "get_price_chart",
            lambda: services.charts.build_chart(coin_id, services.resolve_currency(currency), chart_range, model),
            subject=coin_id,
            shape=_chart_payload,
        )

    @mcp.tool(description="Forecast a JSON list of prices with 'linear' regression or a 'ma' moving average.")
    def forecast_price_series(prices_json: str, model: str = "linear", count: int = 7, window: int = 7) -> str:
        try:
            prices = json.loads(prices_json)
            clean_model = validate_model(model)
        except (json.JSONDecodeError, ValueError) as error:
            return error_response("INVALID_INPUT", str(error))
        if not isinstance(prices, list) or not all(
            isinstance(p, (int, float)) and not isinstance(p, bool) for p in prices
        ):
            return error_response("INVALID_INPUT", "prices_json must be a JSON list of numbers.")
        if count < 0 or count > 3650:
            return error_response("INVALID_INPUT", "count must be between 0 and 3650.")
        forecast = forecast_values(prices, clean_model, count, window=window)
        return json.dumps(
            {
                "model": clean_model,
                "std_error": forecast.std_error,
                "points": [asdict(point) for point in forecast.points],
                "disclaimer": FORECAST_DISCLAIMER,
            },
            ensure_ascii=True,
        )
