"""Session authentication state machine."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from catalog_admin.domain.entities import PasswordChange, ProfileUpdate, field_errors
from catalog_admin.domain.errors import (
    ApiError,
    AuthenticationRequired,
    TransportFailure,
    ValidationFailed,
)
from catalog_admin.domain.models import AuthState, User
from catalog_admin.services.feedback import Navigator, Notifier
from catalog_admin.services.resources import ResourceService

ME_PATH = "/api/me"
PASSWORD_PATH = "/api/me/password"
LOGIN_PATH = "/api/login"
LOGOUT_PATH = "/api/logout"

StateListener = Callable[[AuthState, User | None], None]

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_logger = logging.getLogger(__name__)


@dataclass
class SessionAuthService:
    """Tracks whether an operator is signed in.

    Transitions:

        UNAUTHENTICATED -> LOADING -> AUTHENTICATED   (initialize, session found)
        LOADING -> UNAUTHENTICATED                    (initialize, 401 or failure)
        UNAUTHENTICATED -> AUTHENTICATED              (login)
        AUTHENTICATED -> AUTHENTICATED                (update_profile)
        AUTHENTICATED -> UNAUTHENTICATED              (logout, always)

    State and user are replaced together once the awaited request has
    completed, so readers never observe a user without AUTHENTICATED or the
    reverse. A session check that completes after a login, logout or profile
    update has settled is discarded.
    """

    resources: ResourceService
    notifier: Notifier
    navigator: Navigator
    admin_entry_path: str = "/admin"
    public_entry_path: str = "/"
    _state: AuthState = field(default=AuthState.UNAUTHENTICATED, init=False)
    _user: User | None = field(default=None, init=False)
    _session_check: asyncio.Task | None = field(default=None, init=False)
    _epoch: int = field(default=0, init=False)
    _listeners: list[StateListener] = field(default_factory=list, init=False)

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def current_user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener and return a function removing it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def initialize(self) -> AuthState:
        """Check the current session; concurrent callers share one request."""
        if self._session_check is None:
            self._session_check = asyncio.ensure_future(self._run_session_check())
        return await asyncio.shield(self._session_check)

    async def login(self, username: str, password: str) -> User:
        """Authenticate and move to the admin entry point on success."""
        try:
            payload = await self.resources.mutate(
                "POST",
                LOGIN_PATH,
                {"username": username, "password": password},
                invalidates=[ME_PATH],
            )
            user = _user_from(payload)
        except ApiError as exc:
            description = (
                "Invalid username or password"
                if isinstance(exc, AuthenticationRequired)
                else exc.message
            )
            self.notifier.notify("Login failed", description, destructive=True)
            raise
        self._settle(AuthState.AUTHENTICATED, user)
        self.notifier.notify("Login successful", "Welcome to the admin dashboard!")
        self.navigator.navigate(self.admin_entry_path)
        return user

    async def logout(self) -> None:
        """End the session; local state is cleared even if the request fails."""
        try:
            await self.resources.mutate("POST", LOGOUT_PATH, invalidates=[ME_PATH])
        except ApiError as exc:
            _logger.warning("Logout request failed: %s", exc.message)
            self.resources.invalidate(ME_PATH)
            self.notifier.notify("Logout failed", exc.message, destructive=True)
        else:
            self.notifier.notify("Logout successful", "You have been logged out")
        self._settle(AuthState.UNAUTHENTICATED, None)
        self.navigator.navigate(self.public_entry_path)

    async def update_profile(
        self, *, username: str | None = None, email: str | None = None
    ) -> User:
        """Change the operator's username or email and keep the held user in step."""
        update = _validated(ProfileUpdate, {"username": username, "email": email})
        try:
            payload = await self.resources.mutate(
                "PUT",
                ME_PATH,
                update.model_dump(exclude_none=True),
                invalidates=[ME_PATH],
            )
            user = _user_from(payload)
        except ApiError as exc:
            self.notifier.notify(
                "Error", f"Failed to update profile: {exc.message}", destructive=True
            )
            raise
        self._settle(AuthState.AUTHENTICATED, user)
        self.notifier.notify("Profile Updated", "Your profile has been updated successfully")
        return user

    async def change_password(self, current_password: str, new_password: str) -> None:
        """Replace the operator's password; the session stays valid."""
        change = _validated(
            PasswordChange,
            {"current_password": current_password, "new_password": new_password},
        )
        try:
            await self.resources.mutate("PUT", PASSWORD_PATH, change.to_payload())
        except ApiError as exc:
            self.notifier.notify(
                "Error", f"Failed to change password: {exc.message}", destructive=True
            )
            raise
        self.notifier.notify("Password Changed", "Your password has been changed successfully")

    async def teardown(self) -> None:
        """Cancel a pending session check and drop all session state."""
        pending = self._session_check
        if pending is not None and not pending.done():
            pending.cancel()
            try:
                await pending
            except asyncio.CancelledError:
                pass
        self._session_check = None
        self._epoch += 1
        self._state = AuthState.UNAUTHENTICATED
        self._user = None
        self._listeners.clear()

    async def _run_session_check(self) -> AuthState:
        epoch = self._epoch
        try:
            self._transition(AuthState.LOADING, None)
            try:
                payload = await self.resources.read(ME_PATH)
                user = _user_from(payload)
            except AuthenticationRequired:
                if self._epoch == epoch:
                    self._transition(AuthState.UNAUTHENTICATED, None)
                return self._state
            except ApiError as exc:
                if self._epoch != epoch:
                    _logger.info("Discarding session check result: %s", exc.message)
                    return self._state
                self._transition(AuthState.UNAUTHENTICATED, None)
                self.notifier.notify(
                    "Session check failed", exc.message, destructive=True
                )
                raise
            if self._epoch == epoch:
                self._transition(AuthState.AUTHENTICATED, user)
            return self._state
        finally:
            self._session_check = None

    def _settle(self, state: AuthState, user: User | None) -> None:
        """Apply the outcome of login, logout or a profile change."""
        self._epoch += 1
        self._transition(state, user)

    def _transition(self, state: AuthState, user: User | None) -> None:
        previous = self._state
        self._state = state
        self._user = user
        if previous is not state:
            _logger.info("Auth state %s -> %s", previous.value, state.value)
        for listener in list(self._listeners):
            listener(state, user)


def _validated(model: type[_ModelT], values: dict[str, object]) -> _ModelT:
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        raise ValidationFailed("Invalid data", field_errors(exc)) from exc


def _user_from(payload: dict[str, object]) -> User:
    raw = payload.get("user")
    if not isinstance(raw, dict):
        raise TransportFailure("Response did not include a user")
    try:
        return User.from_payload(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise TransportFailure("Malformed user in response") from exc
