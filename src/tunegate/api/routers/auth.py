"""Auth endpoints: setup status, admin PKCE handshake, guest login/logout, password change.

The setup-state gate lives in GatewayAuthService, so every handler here is a
thin translation between JSON and service calls. Domain exceptions are turned
into {"error": ...} responses by the registered exception handlers.
"""

import logging

from fastapi import APIRouter, Depends

from tunegate.api.dependencies import get_auth_service, get_optional_bearer_token
from tunegate.api.schemas import (
    ChangePasswordRequest,
    CompleteSetupRequest,
    GuestLoginRequest,
    GuestLoginResponse,
    OAuthUrlResponse,
    SetupStatusResponse,
    SuccessResponse,
)
from tunegate.application.services import GatewayAuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=SetupStatusResponse)
async def get_setup_status(
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> SetupStatusResponse:
    """Report whether the admin handshake has been completed."""
    return SetupStatusResponse(setup_complete=await auth_service.is_setup_complete())


# Hey future me - the verifier goes back to the browser in the response. The server keeps
# nothing between this call and complete-setup; the admin page holds the verifier across
# the provider redirect and posts it back together with the code.
@router.get("/admin/oauth-url", response_model=OAuthUrlResponse)
async def get_admin_oauth_url(
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> OAuthUrlResponse:
    """Start the admin PKCE handshake (only before setup is complete)."""
    auth_url, code_verifier = await auth_service.build_admin_authorization()
    return OAuthUrlResponse(auth_url=auth_url, code_verifier=code_verifier)


@router.post("/admin/complete-setup", response_model=SuccessResponse)
async def complete_admin_setup(
    body: CompleteSetupRequest | None = None,
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """Exchange the authorization code, set the site password, finish setup.

    Returns:
        {"success": true}
    """
    body = body or CompleteSetupRequest()
    await auth_service.complete_admin_setup(
        code=body.code,
        code_verifier=body.code_verifier,
        site_password=body.site_password,
    )
    return SuccessResponse()


@router.post("/guest/login", response_model=GuestLoginResponse)
async def guest_login(
    body: GuestLoginRequest | None = None,
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> GuestLoginResponse:
    """Trade the site password for a bearer session token."""
    session = await auth_service.guest_login((body or GuestLoginRequest()).password)
    return GuestLoginResponse(token=session.token, expires_at=session.expires_at)


@router.post("/guest/logout", response_model=SuccessResponse)
async def guest_logout(
    token: str | None = Depends(get_optional_bearer_token),
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """Revoke the caller's session if it sent one. Always succeeds."""
    await auth_service.guest_logout(token)
    return SuccessResponse()


@router.post("/password/change", response_model=SuccessResponse)
async def change_password(
    body: ChangePasswordRequest | None = None,
    auth_service: GatewayAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """Replace the site password. Existing guest sessions stay valid."""
    body = body or ChangePasswordRequest()
    await auth_service.change_password(body.current_password, body.new_password)
    return SuccessResponse()
