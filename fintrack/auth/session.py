"""Current-user session shared by the wallet, preferences and alerts."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Optional

from fintrack.auth.identity import AuthError, IdentityProvider

LOGGER = logging.getLogger(__name__)

UserListener = Callable[[Optional[str]], None]


class Session:
    """Holds the signed-in user id and notifies subscribers when it changes."""

    def __init__(self, identity: IdentityProvider) -> None:
        self.identity = identity
        self._user_id: str | None = None
        self._listeners: list[UserListener] = []
        self._lock = Lock()

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def require_user(self) -> str:
        if self._user_id is None:
            raise AuthError("not-signed-in")
        return self._user_id

    def subscribe(self, listener: UserListener) -> Callable[[], None]:
        """Register ``listener``; it is called immediately with the current user."""
        with self._lock:
            self._listeners.append(listener)
        listener(self._user_id)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set_user(self, user_id: str | None) -> None:
        if user_id == self._user_id:
            return
        self._user_id = user_id
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user_id)

    def sign_up(self, email: str, password: str) -> str:
        user_id = self.identity.sign_up(email, password)
        self._set_user(user_id)
        return user_id

    def sign_in(self, email: str, password: str) -> str:
        user_id = self.identity.sign_in(email, password)
        self._set_user(user_id)
        return user_id

    def sign_out(self) -> None:
        self.identity.sign_out()
        self._set_user(None)

    def send_password_reset(self, email: str) -> None:
        self.identity.send_password_reset(email)

    def change_password(self, current_password: str, new_password: str, confirm_password: str) -> None:
        user_id = self.require_user()
        if new_password != confirm_password:
            raise AuthError("password-mismatch")
        self.identity.change_password(user_id, current_password, new_password)
        LOGGER.info("password changed: user_id=%s", user_id)
