"""Price chart series with a trend forecast overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Literal, Sequence

import pandas as pd

from fintrack.lib.prediction import Forecast, SeriesPoint, linear_regression_forecast, moving_average_forecast
from fintrack.providers.models import PricePoint
from fintrack.runtime.request_sequence import RequestSequencer
from fintrack.services.base import ErrorEnvelope, ServiceResult, validate_coin_id, validate_currency
from fintrack.services.market_service import MarketService

LOGGER = logging.getLogger(__name__)

ForecastModel = Literal["linear", "ma", "none"]
MODELS: tuple[str, ...] = ("linear", "ma", "none")
MODEL_LABELS = {"linear": "linear regression", "ma": "moving average"}
DAY_MS = 24 * 60 * 60 * 1000
PREDICTION_HISTORY_DAYS = 365
MIN_PREDICTION_POINTS = 10
REGRESSION_WINDOW = 30


@dataclass(frozen=True)
class ChartRange:
    label: str
    days: int
    predict: int
    ma_window: int


RANGES: dict[str, ChartRange] = {
    "1": ChartRange(label="24h", days=1, predict=2, ma_window=7),
    "7": ChartRange(label="7d", days=7, predict=7, ma_window=7),
    "30": ChartRange(label="30d", days=30, predict=7, ma_window=7),
    "365": ChartRange(label="1y", days=365, predict=365, ma_window=30),
}


@dataclass
class ChartPoint:
    timestamp: int
    date: str
    price: float


@dataclass
class ForecastChartPoint:
    timestamp: int
    date: str
    predicted: float
    upper: float
    lower: float


@dataclass
class PriceChart:
    coin_id: str
    currency: str
    range: str
    model: str
    points: list[ChartPoint] = field(default_factory=list)
    forecast: list[ForecastChartPoint] = field(default_factory=list)
    std_error: float = 0.0
    forecast_label: str = ""


def _iso_day(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date().isoformat()


def validate_range(range_value: str) -> ChartRange:
    chart_range = RANGES.get(str(range_value).strip())
    if chart_range is None:
        raise ValueError(f"range must be one of: {', '.join(RANGES)}.")
    return chart_range


def validate_model(model: str) -> str:
    clean = (model or "").strip().lower()
    if clean not in MODELS:
        raise ValueError(f"model must be one of: {', '.join(MODELS)}.")
    return clean


def daily_closes(points: Sequence[PricePoint]) -> list[PricePoint]:
    """Collapse a price series to the last observation of each UTC day."""
    if not points:
        return []
    frame = pd.DataFrame([{"Timestamp": p.timestamp, "Price": p.price} for p in points])
    frame = frame.dropna().sort_values("Timestamp", kind="mergesort")
    frame["Day"] = pd.to_datetime(frame["Timestamp"], unit="ms", utc=True).dt.date
    last = frame.groupby("Day", sort=True).tail(1)
    return [PricePoint(timestamp=int(row.Timestamp), price=float(row.Price)) for row in last.itertuples(index=False)]


def forecast_values(prices: Sequence[float], model: str, count: int, window: int = 7) -> Forecast:
    """Forecast ``count`` steps after ``prices`` indexed 0..n-1."""
    series = [SeriesPoint(x=float(idx), y=float(price)) for idx, price in enumerate(prices)]
    if model == "linear":
        return linear_regression_forecast(series, count)
    if model == "ma":
        return moving_average_forecast(series, window, count)
    return Forecast()


class ChartService:
    """Builds charts and keeps the latest one per chart id.

    Each build takes a ticket from the sequencer before fetching. A build that
    finishes after a newer build for the same chart id was started is dropped,
    so a slow response never overwrites a fresher chart.
    """

    def __init__(self, market: MarketService, sequencer: RequestSequencer | None = None) -> None:
        self.market = market
        self.sequencer = sequencer or RequestSequencer()
        self._current: dict[str, PriceChart] = {}
        self._lock = Lock()

    def current_chart(self, chart_id: str) -> PriceChart | None:
        with self._lock:
            return self._current.get(chart_id)

    def build_chart(
        self,
        coin_id: str,
        currency: str = "usd",
        range_value: str = "7",
        model: str = "linear",
        chart_id: str | None = None,
    ) -> ServiceResult[PriceChart]:
        clean_id = validate_coin_id(coin_id)
        vs = validate_currency(currency)
        chart_range = validate_range(range_value)
        clean_model = validate_model(model)
        key = chart_id or clean_id
        ticket = self.sequencer.issue(key)

        display = self.market.get_market_chart(clean_id, vs, chart_range.days)
        if display.data is None:
            return ServiceResult(data=None, error=display.error, warning=display.warning)
        chart = PriceChart(
            coin_id=clean_id,
            currency=vs,
            range=str(range_value).strip(),
            model=clean_model,
            points=[ChartPoint(timestamp=p.timestamp, date=_iso_day(p.timestamp), price=p.price) for p in display.data],
        )

        warning = None
        if clean_model != "none":
            history = self.market.get_market_chart(clean_id, vs, PREDICTION_HISTORY_DAYS)
            if history.data is None:
                warning = f"Forecast unavailable: {history.error.message if history.error else 'no history returned'}"
            else:
                self._attach_forecast(chart, daily_closes(history.data), chart_range)

        if not self.sequencer.is_current(ticket):
            LOGGER.info(
                "discarding stale chart response: chart=%s sequence=%s latest=%s",
                key,
                ticket.sequence,
                self.sequencer.latest(key),
            )
            return ServiceResult(
                data=None,
                error=ErrorEnvelope(
                    code="SUPERSEDED",
                    message="A newer request for this chart replaced this one.",
                    retriable=False,
                ),
            )
        with self._lock:
            self._current[key] = chart
        return ServiceResult(data=chart, source=display.source, warning=warning, fetched_at=display.fetched_at)

    def _attach_forecast(self, chart: PriceChart, history: list[PricePoint], chart_range: ChartRange) -> None:
        if len(history) < MIN_PREDICTION_POINTS or not chart.points:
            return
        recent = [p.price for p in history[-REGRESSION_WINDOW:]]
        forecast = forecast_values(recent, chart.model, chart_range.predict, window=chart_range.ma_window)
        if not forecast.points:
            return
        last_ts = chart.points[-1].timestamp
        chart.std_error = forecast.std_error
        chart.forecast_label = f"Predicted ({chart_range.predict} days, {MODEL_LABELS[chart.model]})"
        for step, point in enumerate(forecast.points, start=1):
            ts = last_ts + step * DAY_MS
            chart.forecast.append(
                ForecastChartPoint(
                    timestamp=ts,
                    date=_iso_day(ts),
                    predicted=point.y,
                    upper=point.y + forecast.std_error,
                    lower=point.y - forecast.std_error,
                )
            )
