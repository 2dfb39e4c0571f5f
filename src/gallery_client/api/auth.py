"""Authentication endpoints backed by the cached session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from gallery_client.api.models import LoginRequest, RegisterRequest, user_payload

if TYPE_CHECKING:
    from gallery_client.containers import AppContainer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
async def register(body: RegisterRequest, request: Request) -> dict[str, object]:
    """Create an account and start a session."""
    container: AppContainer = request.app.state.container
    user = await container.auth_service.register(
        body.username, body.email, body.password
    )
    return {"user": user_payload(user)}


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> dict[str, object]:
    """Log in and cache the user."""
    container: AppContainer = request.app.state.container
    user = await container.auth_service.login(body.email, body.password)
    return {"user": user_payload(user)}


@router.post("/logout")
async def logout(request: Request) -> dict[str, str]:
    """Clear the cached session."""
    container: AppContainer = request.app.state.container
    container.auth_service.logout()
    return {"status": "ok"}


@router.get("/me")
async def me(request: Request) -> dict[str, object]:
    """Return the cached user, if any."""
    container: AppContainer = request.app.state.container
    return {"user": user_payload(container.auth_service.current_user)}
