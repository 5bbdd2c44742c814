"""Explicitly scoped authentication context shared by the API client and surfaces."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .models import User

LOGGER = logging.getLogger(__name__)

SUPER_ADMIN_ROLE = "Super Admin"


class AuthorizationError(PermissionError):
    """Raised when the current user may not perform bulk uploads."""


class SessionContext:
    """Holds the bearer token and current user for one component tree."""

    def __init__(self, token: Optional[str] = None, user: Optional[User] = None) -> None:
        self._token = token
        self._user = user
        self._logout_listeners: List[Callable[[], None]] = []

    def set_auth(self, token: str, user: Optional[User] = None) -> None:
        self._token = token
        self._user = user

    def set_user(self, user: Optional[User]) -> None:
        self._user = user

    def get_token(self) -> Optional[str]:
        return self._token

    def get_current_user(self) -> Optional[User]:
        return self._user

    def is_authenticated(self) -> bool:
        return bool(self._token)

    def is_super_admin(self) -> bool:
        return self._user is not None and self._user.role_name == SUPER_ADMIN_ROLE

    def require_super_admin(self) -> User:
        if self._user is None:
            raise AuthorizationError("Sign in as a Super Admin to upload leads.")
        if self._user.role_name != SUPER_ADMIN_ROLE:
            raise AuthorizationError(f"User '{self._user.email or self._user.name}' is not a Super Admin.")
        return self._user

    def on_logout(self, callback: Callable[[], None]) -> None:
        self._logout_listeners.append(callback)

    def logout(self) -> None:
        """Forget the credentials and notify listeners."""

        had_credentials = self._token is not None or self._user is not None
        self._token = None
        self._user = None
        if had_credentials:
            LOGGER.info("Session cleared")
        for callback in list(self._logout_listeners):
            callback()


__all__ = ["AuthorizationError", "SessionContext", "SUPER_ADMIN_ROLE"]
