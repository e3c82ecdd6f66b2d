"""Request and response models for the auth endpoints.

JSON field names are camelCase on the wire (what the browser frontend sends
and expects); Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request bodies: every field optional so a missing one reaches the service and gets
# the proper 400 message instead of a generic schema error.


class CompleteSetupRequest(CamelModel):
    """Body of POST /admin/complete-setup."""

    code: str | None = Field(default=None, description="Authorization code from the redirect")
    code_verifier: str | None = Field(
        default=None, description="PKCE verifier returned by /admin/oauth-url"
    )
    site_password: str | None = Field(
        default=None, description="Initial shared password for guests"
    )


class GuestLoginRequest(CamelModel):
    """Body of POST /guest/login."""

    password: str | None = Field(default=None, description="Site password")


class ChangePasswordRequest(CamelModel):
    """Body of POST /password/change."""

    current_password: str | None = Field(default=None, description="Current site password")
    new_password: str | None = Field(default=None, description="Replacement site password")


class SetupStatusResponse(CamelModel):
    setup_complete: bool = Field(description="Whether the provider account is linked")


class OAuthUrlResponse(CamelModel):
    """Authorization URL plus the verifier the admin must send back."""

    auth_url: str = Field(description="Provider authorization URL")
    code_verifier: str = Field(description="PKCE verifier for the code exchange")


class GuestLoginResponse(CamelModel):
    token: str = Field(description="Bearer session token")
    expires_at: datetime = Field(description="Session expiry (ISO-8601, UTC)")


class SuccessResponse(CamelModel):
    success: bool = True


class HealthResponse(CamelModel):
    status: str = "ok"
    timestamp: str = Field(description="ISO timestamp of the check")
