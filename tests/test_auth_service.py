"""Tests for the session auth state machine."""

import asyncio

import pytest

from catalog_admin.domain.errors import (
    AuthenticationRequired,
    TransportFailure,
    ValidationFailed,
)
from catalog_admin.domain.models import AuthState, User
from catalog_admin.services.auth import SessionAuthService
from catalog_admin.services.cache import ResponseCache
from catalog_admin.services.feedback import NavigationHistory, NotificationLog
from tests.conftest import ADMIN, FakeResourceClient


def test_initialize_treats_401_as_logged_out(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("GET", "/api/me", AuthenticationRequired())

    state = asyncio.run(auth_service.initialize())

    assert state is AuthState.UNAUTHENTICATED
    assert auth_service.current_user is None
    assert notifications.notifications == []


def test_initialize_restores_existing_session(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    fake_client.queue("GET", "/api/me", {"user": ADMIN})
    seen: list[tuple[AuthState, User | None]] = []
    auth_service.subscribe(lambda state, user: seen.append((state, user)))

    asyncio.run(auth_service.initialize())

    assert auth_service.is_authenticated
    assert auth_service.current_user == User(1, "admin", "admin@example.com")
    assert [state for state, _ in seen] == [AuthState.LOADING, AuthState.AUTHENTICATED]
    assert seen[0][1] is None


def test_initialize_surfaces_unexpected_failures(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("GET", "/api/me", TransportFailure("500: Server error", status=500))

    with pytest.raises(TransportFailure):
        asyncio.run(auth_service.initialize())

    assert auth_service.state is AuthState.UNAUTHENTICATED
    assert notifications.last is not None
    assert notifications.last.title == "Session check failed"


def test_concurrent_initialize_issues_one_request(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    fake_client.queue("GET", "/api/me", {"user": ADMIN})

    async def scenario() -> list[AuthState]:
        fake_client.gate = asyncio.Event()
        first = asyncio.ensure_future(auth_service.initialize())
        second = asyncio.ensure_future(auth_service.initialize())
        for _ in range(5):
            await asyncio.sleep(0)
        assert auth_service.state is AuthState.LOADING
        fake_client.gate.set()
        return await asyncio.gather(first, second)

    states = asyncio.run(scenario())

    assert states == [AuthState.AUTHENTICATED, AuthState.AUTHENTICATED]
    assert fake_client.count("GET", "/api/me") == 1


def test_login_with_wrong_password_changes_nothing(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    cache: ResponseCache,
    notifications: NotificationLog,
    navigation: NavigationHistory,
) -> None:
    cache.set("/api/products", {"products": []})
    fake_client.queue("POST", "/api/login", AuthenticationRequired("Invalid credentials"))

    with pytest.raises(AuthenticationRequired):
        asyncio.run(auth_service.login("admin", "wrongpass"))

    assert auth_service.state is AuthState.UNAUTHENTICATED
    assert auth_service.current_user is None
    assert cache.peek("/api/products").stale is False
    assert navigation.history == []
    assert notifications.last.title == "Login failed"
    assert notifications.last.destructive


def test_login_success_stores_user_and_redirects(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    navigation: NavigationHistory,
) -> None:
    fake_client.queue("POST", "/api/login", {"message": "Login successful", "user": ADMIN})

    user = asyncio.run(auth_service.login("admin", "correctpass"))

    assert user.username == "admin"
    assert auth_service.state is AuthState.AUTHENTICATED
    assert auth_service.current_user == user
    assert navigation.current == "/admin"
    assert fake_client.calls[-1] == (
        "POST",
        "/api/login",
        {"username": "admin", "password": "correctpass"},
    )


def test_login_transport_failure_keeps_state(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("POST", "/api/login", TransportFailure("connection refused"))

    with pytest.raises(TransportFailure):
        asyncio.run(auth_service.login("admin", "correctpass"))

    assert auth_service.state is AuthState.UNAUTHENTICATED
    assert notifications.last.description == "connection refused"


def test_logout_clears_state_even_when_request_fails(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    navigation: NavigationHistory,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("POST", "/api/login", {"user": ADMIN})
    fake_client.queue("POST", "/api/logout", TransportFailure("connection reset"))

    asyncio.run(auth_service.login("admin", "correctpass"))
    asyncio.run(auth_service.logout())

    assert auth_service.state is AuthState.UNAUTHENTICATED
    assert auth_service.current_user is None
    assert navigation.current == "/"
    assert notifications.last.title == "Logout failed"


def test_logout_invalidates_session_check(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    cache: ResponseCache,
) -> None:
    fake_client.queue("GET", "/api/me", {"user": ADMIN}, AuthenticationRequired())
    fake_client.queue("POST", "/api/logout", {"message": "Logout successful"})

    asyncio.run(auth_service.initialize())
    asyncio.run(auth_service.logout())
    state = asyncio.run(auth_service.initialize())

    assert cache.peek("/api/me").stale is True
    assert state is AuthState.UNAUTHENTICATED
    assert fake_client.count("GET", "/api/me") == 2


def test_teardown_resets_state(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    fake_client.queue("GET", "/api/me", {"user": ADMIN})
    asyncio.run(auth_service.initialize())

    asyncio.run(auth_service.teardown())

    assert auth_service.state is AuthState.UNAUTHENTICATED
    assert auth_service.current_user is None


def test_session_check_finishing_after_login_is_discarded(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    fake_client.queue("GET", "/api/me", AuthenticationRequired())
    fake_client.queue("POST", "/api/login", {"user": ADMIN})

    async def scenario() -> AuthState:
        gate = asyncio.Event()
        fake_client.route_gates[("GET", "/api/me")] = gate
        pending = asyncio.ensure_future(auth_service.initialize())
        for _ in range(5):
            await asyncio.sleep(0)
        await auth_service.login("admin", "correctpass")
        gate.set()
        return await pending

    state = asyncio.run(scenario())

    assert state is AuthState.AUTHENTICATED
    assert auth_service.state is AuthState.AUTHENTICATED
    assert auth_service.current_user == User(1, "admin", "admin@example.com")


def test_update_profile_refreshes_current_user(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("POST", "/api/login", {"user": ADMIN})
    fake_client.queue(
        "PUT",
        "/api/me",
        {"message": "Profile updated successfully", "user": {**ADMIN, "username": "chief"}},
    )

    asyncio.run(auth_service.login("admin", "correctpass"))
    user = asyncio.run(auth_service.update_profile(username="chief"))

    assert user.username == "chief"
    assert auth_service.current_user == user
    assert auth_service.is_authenticated
    assert fake_client.calls[-1] == ("PUT", "/api/me", {"username": "chief"})
    assert notifications.last.title == "Profile Updated"


def test_update_profile_validates_before_sending(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        asyncio.run(auth_service.update_profile(email="not-an-email"))

    assert "email" in excinfo.value.field_errors
    assert fake_client.calls == []


def test_change_password_sends_camel_case_payload(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue("PUT", "/api/me/password", {"message": "Password changed successfully"})

    asyncio.run(auth_service.change_password("correctpass", "evenbetter"))

    assert fake_client.calls[-1] == (
        "PUT",
        "/api/me/password",
        {"currentPassword": "correctpass", "newPassword": "evenbetter"},
    )
    assert notifications.last.title == "Password Changed"


def test_change_password_rejects_short_password_locally(
    auth_service: SessionAuthService, fake_client: FakeResourceClient
) -> None:
    with pytest.raises(ValidationFailed):
        asyncio.run(auth_service.change_password("correctpass", "abc"))

    assert fake_client.calls == []


def test_change_password_wrong_current_password(
    auth_service: SessionAuthService,
    fake_client: FakeResourceClient,
    notifications: NotificationLog,
) -> None:
    fake_client.queue(
        "PUT", "/api/me/password", ValidationFailed("Current password is incorrect")
    )

    with pytest.raises(ValidationFailed):
        asyncio.run(auth_service.change_password("wrongpass", "evenbetter"))

    assert notifications.last.description == (
        "Failed to change password: Current password is incorrect"
    )
