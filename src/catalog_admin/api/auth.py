"""Session login endpoints and the operator guard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from catalog_admin.api.sessions import SESSION_COOKIE_NAME
from catalog_admin.domain.entities import PasswordChange, ProfileUpdate  # noqa: TC001
from catalog_admin.domain.models import User  # noqa: TC001

if TYPE_CHECKING:
    from catalog_admin.api.app import ServerState

router = APIRouter(prefix="/api", tags=["auth"])

_logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


def _state(request: Request) -> ServerState:
    return request.app.state.server


def _session_user(request: Request) -> User | None:
    state = _state(request)
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    user_id = state.sessions.resolve(token)
    if user_id is None:
        return None
    user = state.store.get_user(user_id)
    if user is None:
        state.sessions.destroy(token)
    return user


async def require_operator(request: Request) -> User:
    """Ensure the request carries a live operator session."""
    user = _session_user(request)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return user


@router.post("/login")
async def login(body: LoginRequest, request: Request, response: Response) -> dict[str, object]:
    """Check credentials and issue a session cookie."""
    state = _state(request)
    user = state.store.authenticate(body.username, body.password)
    if user is None:
        _logger.warning("Failed login attempt for %s", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    existing = request.cookies.get(SESSION_COOKIE_NAME)
    if existing:
        state.sessions.destroy(existing)
    token = state.sessions.create(user.id)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=state.sessions.cookie_max_age,
        secure=state.settings.secure_cookies,
        httponly=True,
        samesite="lax",
        path="/",
    )
    _logger.info("User %s signed in", user.id)
    return {"message": "Login successful", "user": user.to_payload()}


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict[str, str]:
    """Revoke the session and clear its cookie."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        _state(request).sessions.destroy(token)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"message": "Logout successful"}


@router.get("/me")
async def me(request: Request) -> dict[str, object]:
    """Return the operator behind the session cookie."""
    user = await require_operator(request)
    return {"user": user.to_payload()}


@router.put("/me")
async def update_me(
    body: ProfileUpdate,
    request: Request,
    user: User = Depends(require_operator),
) -> dict[str, object]:
    """Change the operator's username or email."""
    updated = _state(request).store.update_user(
        user.id, username=body.username, email=body.email
    )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "Profile updated successfully", "user": updated.to_payload()}


@router.put("/me/password")
async def change_password(
    body: PasswordChange,
    request: Request,
    user: User = Depends(require_operator),
) -> dict[str, str]:
    """Replace the operator's password after checking the current one."""
    changed = _state(request).store.change_password(
        user.id, body.current_password, body.new_password
    )
    if not changed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    _logger.info("User %s changed password", user.id)
    return {"message": "Password changed successfully"}
