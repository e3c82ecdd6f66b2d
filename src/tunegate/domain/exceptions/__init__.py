"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me - message is stored as an attribute so the API handlers can put it
    # straight into {"error": ...} without parsing str(exc). Never raise this directly,
    # always a subclass so the handlers can pick the right status code.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when provider client credentials or the stored site password
    hash are missing.

    HTTP Status: 500
    """

    pass


class ValidationError(DomainException):
    """Input validation failed.

    Missing fields, or a site password shorter than the minimum length.

    HTTP Status: 400
    """

    pass


class AuthError(DomainException):
    """Caller is not authenticated.

    Wrong site password, or a guest session token that is malformed,
    expired or revoked.

    HTTP Status: 401
    """

    pass


class StateError(DomainException):
    """Operation is not allowed in the current setup state.

    Admin setup attempted after completion, or a guest action attempted
    before the provider account is linked.

    HTTP Status: 403
    """

    pass


class UpstreamError(DomainException):
    """A call to the music provider failed.

    Carries the provider's status code and raw body when a response was
    received, so the API layer can relay them.

    HTTP Status: provider status if known, else 500
    """

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.body = body


class UpstreamAuthError(UpstreamError):
    """The provider token endpoint rejected a code exchange or refresh.

    Typical causes: invalid or expired authorization code, PKCE verifier
    mismatch, revoked refresh token (error="invalid_grant").
    """

    @property
    def error_code(self) -> str | None:
        """OAuth error code from the provider body, if any."""
        if isinstance(self.body, dict):
            code = self.body.get("error")
            return str(code) if code else None
        return None


class NoRefreshTokenError(DomainException):
    """A refresh is needed but no refresh token is stored.

    Means the admin handshake never completed or its tokens were lost;
    the account has to be linked again.

    HTTP Status: 500
    """

    def __init__(
        self, message: str = "No refresh token available"
    ) -> None:
        super().__init__(message)


__all__ = [
    "AuthError",
    "ConfigurationError",
    "DomainException",
    "NoRefreshTokenError",
    "StateError",
    "UpstreamAuthError",
    "UpstreamError",
    "ValidationError",
]
