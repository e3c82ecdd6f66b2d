"""Pydantic request/response models for the HTTP API."""

from tunegate.api.schemas.auth import (
    ChangePasswordRequest,
    CompleteSetupRequest,
    GuestLoginRequest,
    GuestLoginResponse,
    HealthResponse,
    OAuthUrlResponse,
    SetupStatusResponse,
    SuccessResponse,
)

__all__ = [
    "ChangePasswordRequest",
    "CompleteSetupRequest",
    "GuestLoginRequest",
    "GuestLoginResponse",
    "HealthResponse",
    "OAuthUrlResponse",
    "SetupStatusResponse",
    "SuccessResponse",
]
