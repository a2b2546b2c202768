"""Identity provider interface, a local implementation, and auth error messages."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Literal, Protocol

LOGGER = logging.getLogger(__name__)

AuthMode = Literal["login", "signup"]
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MAX_FAILED_ATTEMPTS = 5
LOCKOUT_SECONDS = 300


@dataclass
class AuthError(Exception):
    code: str

    def __str__(self) -> str:
        return self.code


def auth_error_message(code: str, mode: AuthMode = "login") -> str:
    """User-facing message for an identity-provider error code."""
    messages = {
        "invalid-email": "Please enter a valid email address.",
        "user-not-found": "No account found with this email.",
        "wrong-password": "Incorrect password. Please try again.",
        "too-many-requests": "Too many failed attempts. Please try again later.",
        "email-already-in-use": "This email is already registered. Please log in or use another email.",
        "weak-password": "Password should be at least 6 characters.",
        "missing-password": "Please enter a password.",
        "missing-email": "Please enter your email address.",
        "requires-recent-login": "Please log out and log back in before changing your password.",
        "password-mismatch": "New passwords do not match",
        "not-signed-in": "You must be logged in to change your password",
    }
    if code == "invalid-login-credentials":
        return "Invalid email or password." if mode == "login" else "Invalid credentials."
    return messages.get(code, "Authentication error. Please try again.")


class IdentityProvider(Protocol):
    def sign_up(self, email: str, password: str) -> str: ...

    def sign_in(self, email: str, password: str) -> str: ...

    def sign_out(self) -> None: ...

    def send_password_reset(self, email: str) -> None: ...

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None: ...


@dataclass
class _Account:
    user_id: str
    email: str
    salt: bytes
    password_hash: bytes
    failed_attempts: int = 0
    locked_until: float = 0.0
    reset_tokens: list[str] = field(default_factory=list)


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)


def _normalize_email(email: str) -> str:
    clean = (email or "").strip().lower()
    if not clean:
        raise AuthError("missing-email")
    if not EMAIL_PATTERN.match(clean):
        raise AuthError("invalid-email")
    return clean


def _check_password(password: str) -> None:
    if not password:
        raise AuthError("missing-password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError("weak-password")


class LocalIdentityProvider:
    """In-process accounts with salted PBKDF2 hashes; for local runs and tests."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._accounts: dict[str, _Account] = {}
        self._lock = Lock()
        self._clock = clock

    def sign_up(self, email: str, password: str) -> str:
        clean = _normalize_email(email)
        _check_password(password)
        with self._lock:
            if clean in self._accounts:
                raise AuthError("email-already-in-use")
            salt = secrets.token_bytes(16)
            account = _Account(
                user_id=secrets.token_hex(14),
                email=clean,
                salt=salt,
                password_hash=_hash_password(password, salt),
            )
            self._accounts[clean] = account
        LOGGER.info("account created: user_id=%s", account.user_id)
        return account.user_id

    def sign_in(self, email: str, password: str) -> str:
        clean = _normalize_email(email)
        if not password:
            raise AuthError("missing-password")
        with self._lock:
            account = self._accounts.get(clean)
            if account is None:
                raise AuthError("user-not-found")
            now = self._clock()
            if account.locked_until > now:
                raise AuthError("too-many-requests")
            if not hmac.compare_digest(account.password_hash, _hash_password(password, account.salt)):
                account.failed_attempts += 1
                if account.failed_attempts >= MAX_FAILED_ATTEMPTS:
                    account.locked_until = now + LOCKOUT_SECONDS
                    account.failed_attempts = 0
                raise AuthError("wrong-password")
            account.failed_attempts = 0
            return account.user_id

    def sign_out(self) -> None:
        return None

    def send_password_reset(self, email: str) -> None:
        clean = _normalize_email(email)
        with self._lock:
            account = self._accounts.get(clean)
            if account is None:
                raise AuthError("user-not-found")
            account.reset_tokens.append(secrets.token_urlsafe(24))
        LOGGER.info("password reset requested: user_id=%s", account.user_id)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        _check_password(new_password)
        with self._lock:
            account = next((acc for acc in self._accounts.values() if acc.user_id == user_id), None)
            if account is None:
                raise AuthError("requires-recent-login")
            if not hmac.compare_digest(account.password_hash, _hash_password(current_password, account.salt)):
                raise AuthError("wrong-password")
            account.salt = secrets.token_bytes(16)
            account.password_hash = _hash_password(new_password, account.salt)
            account.reset_tokens.clear()
