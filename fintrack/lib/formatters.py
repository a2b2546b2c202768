"""Response formatting helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone

FORECAST_DISCLAIMER = "Predictions are based on simple trend analysis and are not financial advice."
CURRENCY_SYMBOLS = {
    "usd": "$",
    "eur": "€",
    "inr": "₹",
    "jpy": "¥",
    "gbp": "£",
    "aud": "A$",
    "cad": "C$",
    "sgd": "S$",
    "zar": "R",
}


def format_money(value: float | None, currency: str = "usd") -> str:
    if value is None:
        return "n/a"
    symbol = CURRENCY_SYMBOLS.get(currency.lower(), currency.upper() + " ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_signed_money(value: float, currency: str = "usd") -> str:
    return f"+{format_money(value, currency)}" if value > 0 else format_money(value, currency)


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}%"


def chart_date_label(value: str | int) -> str:
    """'2024-03-05' or a unix-millisecond timestamp -> 'Mar 5, 2024'."""
    if isinstance(value, int):
        day = datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
    else:
        day = date.fromisoformat(value)
    return f"{day.strftime('%b')} {day.day}, {day.year}"
