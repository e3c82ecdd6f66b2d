"""Dependency injection for API endpoints.

Everything here reads the singletons that lifespan() put on app.state.
"""

import logging
from typing import cast

from fastapi import Depends, Header, HTTPException, Request

from tunegate.application.services import (
    GatewayAuthService,
    GuestSessionManager,
    ProxyDispatcher,
    is_well_formed,
)
from tunegate.domain.entities import GuestSession
from tunegate.domain.exceptions import AuthError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _from_state(request: Request, name: str) -> object:
    # Missing attribute means lifespan never ran (or failed); not a client error
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail="Service not initialized")
    return getattr(request.app.state, name)


def get_auth_service(request: Request) -> GatewayAuthService:
    """Get the gateway auth service from app state.

    Raises:
        HTTPException: 503 if the app has not finished starting
    """
    return cast(GatewayAuthService, _from_state(request, "auth_service"))


def get_guest_sessions(request: Request) -> GuestSessionManager:
    """Get the guest session manager from app state."""
    return cast(GuestSessionManager, _from_state(request, "guest_sessions"))


def get_proxy_dispatcher(request: Request) -> ProxyDispatcher:
    """Get the provider proxy from app state."""
    return cast(ProxyDispatcher, _from_state(request, "proxy_dispatcher"))


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


def get_optional_bearer_token(
    authorization: str | None = Header(default=None),
) -> str | None:
    """Bearer token if one was sent, None otherwise (never raises)."""
    return extract_bearer_token(authorization)


# Hey future me - this is the guest gate for the proxy. Three distinct 401s, same as the
# frontend expects: no header at all, a token that can't possibly be ours, and a token we
# don't have a live session for (expired, logged out, or never issued).
async def require_guest(
    authorization: str | None = Header(default=None),
    sessions: GuestSessionManager = Depends(get_guest_sessions),
) -> GuestSession:
    """Authenticate a guest by bearer session token.

    Returns:
        The live guest session

    Raises:
        AuthError: If the header is missing, the token is malformed, or no
            live session exists for it
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError("Unauthorized")

    if not is_well_formed(token):
        raise AuthError("Invalid or expired token")

    session = await sessions.validate(token)
    if session is None:
        raise AuthError("Session not found or expired")

    await sessions.touch(token)
    return session
