"""Account, preference and price-alert services."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Mapping

from fintrack.auth.identity import AuthError, AuthMode
from fintrack.auth.session import Session
from fintrack.config.settings import SUPPORTED_CURRENCIES
from fintrack.providers.document_store import DocumentStore, DocumentStoreError
from fintrack.services.base import (
    ServiceResult,
    envelope_from_auth_error,
    envelope_from_store_error,
    validate_coin_id,
    validation_envelope,
)
from fintrack.services.chart_service import RANGES
from fintrack.wallet.validation import coerce_number

LOGGER = logging.getLogger(__name__)

PREFERENCES_COLLECTION = "preferences"
ALERTS_COLLECTION = "alerts"
# Preferences and alerts work before sign-in, like browser-local settings.
LOCAL_OWNER = "local"


@dataclass
class UserPreferences:
    currency: str = "usd"
    default_range: str = "7"
    favorites: list[str] = field(default_factory=list)


@dataclass
class PriceAlert:
    id: str
    coin_id: str
    coin_name: str
    min_price: float
    max_price: float


@dataclass
class TriggeredAlert:
    alert: PriceAlert
    price: float
    direction: str


class AccountService:
    """Sign-up/in/out and password operations with user-facing error messages."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _run(self, call: Callable[[], Any], mode: AuthMode = "login") -> ServiceResult[dict[str, Any]]:
        try:
            value = call()
        except AuthError as error:
            LOGGER.info("auth operation rejected: code=%s", error.code)
            return ServiceResult(data=None, error=envelope_from_auth_error(error, mode))
        payload: dict[str, Any] = {"user_id": self.session.user_id, "authenticated": self.session.is_authenticated}
        if isinstance(value, dict):
            payload.update(value)
        return ServiceResult(data=payload, source="identity", fetched_at=time.time())

    def sign_up(self, email: str, password: str) -> ServiceResult[dict[str, Any]]:
        return self._run(lambda: self.session.sign_up(email, password), mode="signup")

    def sign_in(self, email: str, password: str) -> ServiceResult[dict[str, Any]]:
        return self._run(lambda: self.session.sign_in(email, password))

    def sign_out(self) -> ServiceResult[dict[str, Any]]:
        return self._run(self.session.sign_out)

    def reset_password(self, email: str) -> ServiceResult[dict[str, Any]]:
        def _send() -> dict[str, Any]:
            self.session.send_password_reset(email)
            return {"message": "Password reset email sent! Check your inbox."}

        return self._run(_send)

    def change_password(self, current_password: str, new_password: str, confirm_password: str) -> ServiceResult[dict[str, Any]]:
        def _change() -> dict[str, Any]:
            self.session.change_password(current_password, new_password, confirm_password)
            return {"message": "Password changed successfully!"}

        return self._run(_change)


class _OwnedDocuments:
    def __init__(self, documents: DocumentStore, session: Session, collection: str) -> None:
        self.documents = documents
        self.session = session
        self.collection = collection

    def owner(self) -> str:
        return self.session.user_id or LOCAL_OWNER

    def load(self) -> dict[str, Any]:
        return self.documents.get(self.collection, self.owner()) or {}

    def save(self, document: dict[str, Any]) -> None:
        self.documents.set(self.collection, self.owner(), document, merge=True)


class PreferencesService:
    def __init__(self, documents: DocumentStore, session: Session, default_currency: str = "usd") -> None:
        self._docs = _OwnedDocuments(documents, session, PREFERENCES_COLLECTION)
        self.default_currency = default_currency
        self._lock = Lock()

    def _read(self) -> UserPreferences:
        doc = self._docs.load()
        currency = str(doc.get("currency") or self.default_currency).lower()
        default_range = str(doc.get("defaultRange") or "7")
        favorites = doc.get("favorites")
        return UserPreferences(
            currency=currency if currency in SUPPORTED_CURRENCIES else self.default_currency,
            default_range=default_range if default_range in RANGES else "7",
            favorites=[str(item) for item in favorites] if isinstance(favorites, list) else [],
        )

    def _write(self, prefs: UserPreferences) -> None:
        self._docs.save({"currency": prefs.currency, "defaultRange": prefs.default_range, "favorites": prefs.favorites})

    def get_preferences(self) -> ServiceResult[UserPreferences]:
        try:
            return ServiceResult(data=self._read(), source="document_store", fetched_at=time.time())
        except DocumentStoreError as error:
            return ServiceResult(data=None, error=envelope_from_store_error(error))

    def _update(self, change: Callable[[UserPreferences], None]) -> ServiceResult[UserPreferences]:
        with self._lock:
            try:
                prefs = self._read()
                change(prefs)
                self._write(prefs)
            except DocumentStoreError as error:
                LOGGER.error("failed to save preferences: owner=%s code=%s", self._docs.owner(), error.code)
                return ServiceResult(data=None, error=envelope_from_store_error(error))
        return ServiceResult(data=prefs, source="document_store", fetched_at=time.time())

    def set_currency(self, currency: str) -> ServiceResult[UserPreferences]:
        clean = (currency or "").strip().lower()
        if clean not in SUPPORTED_CURRENCIES:
            return ServiceResult(data=None, error=validation_envelope(f"Currency must be one of: {', '.join(SUPPORTED_CURRENCIES)}."))

        def _apply(prefs: UserPreferences) -> None:
            prefs.currency = clean

        return self._update(_apply)

    def set_default_range(self, range_value: str) -> ServiceResult[UserPreferences]:
        clean = str(range_value).strip()
        if clean not in RANGES:
            return ServiceResult(data=None, error=validation_envelope(f"range must be one of: {', '.join(RANGES)}."))

        def _apply(prefs: UserPreferences) -> None:
            prefs.default_range = clean

        return self._update(_apply)

    def toggle_favorite(self, coin_id: str) -> ServiceResult[UserPreferences]:
        clean = validate_coin_id(coin_id)

        def _apply(prefs: UserPreferences) -> None:
            if clean in prefs.favorites:
                prefs.favorites.remove(clean)
            else:
                prefs.favorites.append(clean)

        return self._update(_apply)


def alert_to_document(alert: PriceAlert) -> dict[str, Any]:
    return {
        "id": alert.id,
        "coin": alert.coin_id,
        "coinName": alert.coin_name,
        "minPrice": alert.min_price,
        "maxPrice": alert.max_price,
    }


def alert_from_document(doc: Mapping[str, Any]) -> PriceAlert:
    return PriceAlert(
        id=str(doc["id"]),
        coin_id=str(doc["coin"]),
        coin_name=str(doc.get("coinName") or doc["coin"]),
        min_price=float(doc["minPrice"]),
        max_price=float(doc["maxPrice"]),
    )


class AlertService:
    """Min/max price alerts, newest first."""

    def __init__(self, documents: DocumentStore, session: Session, clock: Callable[[], float] = time.time) -> None:
        self._docs = _OwnedDocuments(documents, session, ALERTS_COLLECTION)
        self._clock = clock
        self._lock = Lock()

    def _read(self) -> list[PriceAlert]:
        rows = self._docs.load().get("alerts") or []
        alerts: list[PriceAlert] = []
        for row in rows if isinstance(rows, list) else []:
            try:
                alerts.append(alert_from_document(row))
            except (KeyError, TypeError, ValueError):
                LOGGER.warning("skipping malformed alert row: owner=%s", self._docs.owner())
        return alerts

    def _write(self, alerts: list[PriceAlert]) -> None:
        self._docs.save({"alerts": [alert_to_document(alert) for alert in alerts]})

    def list_alerts(self) -> ServiceResult[list[PriceAlert]]:
        try:
            return ServiceResult(data=self._read(), source="document_store", fetched_at=time.time())
        except DocumentStoreError as error:
            return ServiceResult(data=None, error=envelope_from_store_error(error))

    def add_alert(
        self,
        coin_id: str,
        min_price: object,
        max_price: object,
        coin_name: str | None = None,
    ) -> ServiceResult[PriceAlert]:
        clean_id = validate_coin_id(coin_id)
        low = coerce_number(min_price)
        high = coerce_number(max_price)
        if low is None or high is None:
            return ServiceResult(data=None, error=validation_envelope("Please enter valid numbers for both min and max price."))
        if low > high:
            return ServiceResult(data=None, error=validation_envelope("Min price should be less than or equal to max price."))
        with self._lock:
            try:
                alerts = self._read()
                taken = {alert.id for alert in alerts}
                stamp = int(self._clock() * 1000)
                while str(stamp) in taken:
                    stamp += 1
                alert = PriceAlert(
                    id=str(stamp),
                    coin_id=clean_id,
                    coin_name=coin_name or clean_id.replace("-", " ").title(),
                    min_price=low,
                    max_price=high,
                )
                self._write([alert] + alerts)
            except DocumentStoreError as error:
                LOGGER.error("failed to save alert: owner=%s code=%s", self._docs.owner(), error.code)
                return ServiceResult(data=None, error=envelope_from_store_error(error))
        return ServiceResult(data=alert, source="document_store", fetched_at=time.time())

    def remove_alert(self, alert_id: str) -> ServiceResult[bool]:
        with self._lock:
            try:
                alerts = self._read()
                kept = [alert for alert in alerts if alert.id != alert_id]
                if len(kept) == len(alerts):
                    return ServiceResult(data=False, source="document_store")
                self._write(kept)
            except DocumentStoreError as error:
                return ServiceResult(data=None, error=envelope_from_store_error(error))
        return ServiceResult(data=True, source="document_store", fetched_at=time.time())

    def evaluate(self, spot_prices: Mapping[str, float]) -> ServiceResult[list[TriggeredAlert]]:
        alerts = self.list_alerts()
        if alerts.data is None:
            return ServiceResult(data=None, error=alerts.error)
        return ServiceResult(data=evaluate_alerts(alerts.data, spot_prices), source="document_store", fetched_at=time.time())


def evaluate_alerts(alerts: list[PriceAlert], spot_prices: Mapping[str, float]) -> list[TriggeredAlert]:
    """Alerts whose coin trades below its min or above its max; unpriced coins are skipped."""
    triggered: list[TriggeredAlert] = []
    for alert in alerts:
        price = spot_prices.get(alert.coin_id)
        if price is None:
            continue
        if price < alert.min_price:
            triggered.append(TriggeredAlert(alert=alert, price=price, direction="below_min"))
        elif price > alert.max_price:
            triggered.append(TriggeredAlert(alert=alert, price=price, direction="above_max"))
    return triggered
