"""Wallet entry validation logic."""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from fintrack.providers.models import COIN_ID_PATTERN
from fintrack.wallet.models import ValidationIssue, WalletEntry


class WalletValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues) or "Invalid wallet entry.")


def parse_iso_date(value: object) -> date:
    if not isinstance(value, str):
        raise ValueError("Date must be a YYYY-MM-DD string.")
    try:
        parsed = date.fromisoformat(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD.") from error
    if parsed.isoformat() != value.strip():
        raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD.")
    return parsed


def coerce_number(value: object) -> float | None:
    """Turn user input into a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _date_issue(field: str, value: object, row: int | None) -> ValidationIssue | None:
    try:
        parse_iso_date(value)
    except ValueError as error:
        return ValidationIssue(field=field, row=row, code="invalid_date", message=str(error))
    return None


def validate_entry(entry: WalletEntry, row: int | None = None) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    asset_id = entry.asset_id
    if not isinstance(asset_id, str) or not asset_id.strip():
        issues.append(ValidationIssue(field="asset_id", row=row, code="missing_asset", message="Asset id is required."))
    elif not COIN_ID_PATTERN.match(asset_id):
        issues.append(
            ValidationIssue(
                field="asset_id",
                row=row,
                code="invalid_asset",
                message="Asset id must be a CoinGecko id such as 'bitcoin' or 'usd-coin'.",
            )
        )
    if not isinstance(entry.quantity, (int, float)) or not math.isfinite(entry.quantity) or entry.quantity <= 0:
        issues.append(
            ValidationIssue(
                field="quantity",
                row=row,
                code="invalid_quantity",
                message="Quantity must be a positive number.",
            )
        )
    if not isinstance(entry.buy_price, (int, float)) or not math.isfinite(entry.buy_price) or entry.buy_price < 0:
        issues.append(
            ValidationIssue(
                field="buy_price",
                row=row,
                code="invalid_buy_price",
                message="Buy price must be a non-negative number.",
            )
        )

    buy_issue = _date_issue("buy_date", entry.buy_date, row)
    if buy_issue:
        issues.append(buy_issue)

    has_sell_date = entry.sell_date is not None
    has_sell_price = entry.sell_price is not None
    if has_sell_date != has_sell_price:
        issues.append(
            ValidationIssue(
                field="sell_date" if has_sell_price else "sell_price",
                row=row,
                code="partial_sell",
                message="Sell date and sell price must be provided together.",
            )
        )
    if has_sell_price:
        price = entry.sell_price
        if not isinstance(price, (int, float)) or not math.isfinite(price) or price < 0:
            issues.append(
                ValidationIssue(
                    field="sell_price",
                    row=row,
                    code="invalid_sell_price",
                    message="Sell price must be a non-negative number.",
                )
            )
    if has_sell_date:
        sell_issue = _date_issue("sell_date", entry.sell_date, row)
        if sell_issue:
            issues.append(sell_issue)
        elif buy_issue is None and str(entry.sell_date) < entry.buy_date:
            issues.append(
                ValidationIssue(
                    field="sell_date",
                    row=row,
                    code="sell_before_buy",
                    message="Sell date cannot be earlier than buy date.",
                )
            )
    return issues


def validate_import_rows(rows: Any) -> list[ValidationIssue]:
    """Shape check for bulk imports, before rows are turned into entries."""
    if not isinstance(rows, list):
        return [ValidationIssue(field="wallet", code="invalid_format", message="Import payload must be a list of entries.")]
    issues: list[ValidationIssue] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            issues.append(ValidationIssue(field="wallet", row=idx, code="invalid_format", message="Entry must be an object."))
            continue
        for key in ("coinId", "coinName", "symbol", "buyDate"):
            if not row.get(key):
                issues.append(
                    ValidationIssue(field=key, row=idx, code="missing_field", message=f"Required field is missing: {key}")
                )
        if coerce_number(row.get("quantity")) is None:
            issues.append(
                ValidationIssue(field="quantity", row=idx, code="invalid_quantity", message="Quantity must be numeric.")
            )
        if coerce_number(row.get("buyPrice")) is None:
            issues.append(
                ValidationIssue(field="buyPrice", row=idx, code="invalid_buy_price", message="Buy price must be numeric.")
            )
    return issues
