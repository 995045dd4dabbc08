"""
Tests for the client-side Session Manager, run against the application
in-process.
"""

import json
from datetime import timedelta

import httpx
import pytest

from app.api.clients.attendance_api import AttendanceApiClient
from app.core.exceptions import (
    AuthError,
    InvalidCredentials,
    InvalidToken,
    StoreUnavailable,
    UserExists,
)
from app.core.security import create_access_token
from app.core.session_manager import SessionManager, SessionStore, StoredSession
from app.models.user import UserPublic


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(tmp_path / "session.json")


@pytest.fixture
def session_manager(asgi_client, session_store):
    api = AttendanceApiClient("http://test", client=asgi_client)
    return SessionManager(api=api, store=session_store)


@pytest.mark.asyncio
async def test_login_persists_session(session_manager, session_store, employee, password):
    # Act
    session = await session_manager.login("alice@example.com", password)

    # Assert
    assert session_manager.is_authenticated
    assert session_manager.current_user.id == employee.id
    assert session_manager.requires_password_reset is True
    stored = session_store.load()
    assert stored.token == session.token
    assert stored.user.email == "alice@example.com"


@pytest.mark.asyncio
async def test_login_failure_keeps_logged_out(session_manager, session_store, employee):
    with pytest.raises(InvalidCredentials):
        await session_manager.login("alice@example.com", "wrong-password")

    assert not session_manager.is_authenticated
    assert session_store.load() is None


@pytest.mark.asyncio
async def test_register_does_not_log_in(session_manager):
    user = await session_manager.register("carol@example.com", "long-enough-pw")

    assert user.email == "carol@example.com"
    assert user.is_first_login is True
    assert not session_manager.is_authenticated


@pytest.mark.asyncio
async def test_register_duplicate(session_manager, employee):
    with pytest.raises(UserExists):
        await session_manager.register("alice@example.com", "long-enough-pw")


@pytest.mark.asyncio
async def test_restore_with_valid_token(asgi_client, session_store, employee, headers_for):
    # Arrange
    token = headers_for(employee)["Authorization"].split(" ", 1)[1]
    session_store.save(
        StoredSession(token=token, user=UserPublic.model_validate(employee))
    )
    manager = SessionManager(
        api=AttendanceApiClient("http://test", client=asgi_client), store=session_store
    )

    # Act
    user = await manager.restore()

    # Assert
    assert user.id == employee.id
    assert manager.token == token


@pytest.mark.asyncio
async def test_restore_with_expired_token_clears_session(
    session_manager, session_store, employee
):
    expired = create_access_token(
        employee.id, employee.email, employee.role, expires_delta=timedelta(seconds=-1)
    )
    session_store.save(
        StoredSession(token=expired, user=UserPublic.model_validate(employee))
    )

    user = await session_manager.restore()

    assert user is None
    assert not session_manager.is_authenticated
    assert not session_store.path.exists()


@pytest.mark.asyncio
async def test_restore_without_saved_session(session_manager):
    assert await session_manager.restore() is None


@pytest.mark.asyncio
async def test_restore_with_corrupt_file(session_manager, session_store):
    session_store.path.write_text("{not json", "utf-8")

    assert await session_manager.restore() is None
    assert not session_store.path.exists()


@pytest.mark.asyncio
async def test_refresh_token_replaces_token(session_manager, session_store, employee, password):
    await session_manager.login("alice@example.com", password)

    new_token = await session_manager.refresh_token()

    assert session_manager.token == new_token
    assert session_store.load().token == new_token
    assert session_manager.current_user.id == employee.id


@pytest.mark.asyncio
async def test_refresh_token_fails_closed(session_manager, session_store, employee):
    session_store.save(
        StoredSession(token="garbage", user=UserPublic.model_validate(employee))
    )
    session_manager._session = session_store.load()

    with pytest.raises(InvalidToken):
        await session_manager.refresh_token()

    assert not session_manager.is_authenticated
    assert not session_store.path.exists()


@pytest.mark.asyncio
async def test_update_password_clears_reset_flag(session_manager, employee, password):
    await session_manager.login("alice@example.com", password)

    await session_manager.update_password(password, "brand-new-password")

    assert session_manager.requires_password_reset is False
    await session_manager.login("alice@example.com", "brand-new-password")
    assert session_manager.requires_password_reset is False


@pytest.mark.asyncio
async def test_logout_is_idempotent(session_manager, session_store, employee, password):
    await session_manager.login("alice@example.com", password)

    session_manager.logout()
    session_manager.logout()

    assert not session_manager.is_authenticated
    assert session_manager.current_user is None
    assert not session_store.path.exists()
    with pytest.raises(AuthError):
        session_manager.require_token()


@pytest.mark.asyncio
async def test_network_failure_maps_to_store_unavailable(session_store):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    api = AttendanceApiClient(
        "http://test", client=httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    )
    manager = SessionManager(api=api, store=session_store)

    with pytest.raises(StoreUnavailable):
        await manager.login("alice@example.com", "whatever-password")


def test_session_file_holds_camel_case_snapshot(session_store, employee):
    session_store.save(
        StoredSession(token="abc", user=UserPublic.model_validate(employee))
    )

    data = json.loads(session_store.path.read_text("utf-8"))

    assert data["token"] == "abc"
    assert data["user"]["isFirstLogin"] is True
    assert session_store.load().user.id == employee.id


def test_session_file_is_owner_only(session_store, employee):
    # Arrange
    stale = session_store.path.with_suffix(".tmp")
    stale.write_text("left over", "utf-8")
    stale.chmod(0o644)

    # Act
    session_store.save(
        StoredSession(token="abc", user=UserPublic.model_validate(employee))
    )

    # Assert
    assert session_store.path.stat().st_mode & 0o777 == 0o600
    assert not stale.exists()
