from __future__ import annotations

import pytest

from lead_uploader.models import User
from lead_uploader.session import AuthorizationError, SessionContext


def _user(role: str) -> User:
    return User(id="u1", name="Priya", email="priya@example.com", role_name=role)


def test_super_admin_check() -> None:
    context = SessionContext(token="t", user=_user("Super Admin"))

    assert context.is_super_admin()
    assert context.require_super_admin().name == "Priya"


def test_regular_user_is_refused() -> None:
    context = SessionContext(token="t", user=_user("User"))

    assert not context.is_super_admin()
    with pytest.raises(AuthorizationError):
        context.require_super_admin()


def test_missing_user_is_refused() -> None:
    with pytest.raises(AuthorizationError):
        SessionContext(token="t").require_super_admin()


def test_logout_clears_credentials_and_notifies() -> None:
    context = SessionContext()
    context.set_auth("t", _user("Super Admin"))
    calls: list[str] = []
    context.on_logout(lambda: calls.append("bye"))

    context.logout()

    assert context.get_token() is None
    assert context.get_current_user() is None
    assert not context.is_authenticated()
    assert calls == ["bye"]
