"""Application services - token lifecycle, guest sessions and proxying."""

from tunegate.application.services.gateway_auth_service import GatewayAuthService
from tunegate.application.services.guest_session_manager import (
    GuestSessionManager,
    generate_session_token,
    is_well_formed,
)
from tunegate.application.services.password_service import (
    MIN_PASSWORD_LENGTH,
    SitePasswordService,
    hash_password,
    verify_password,
)
from tunegate.application.services.pkce import (
    PKCEPair,
    derive_challenge,
    generate_verifier,
)
from tunegate.application.services.proxy_dispatcher import ProxyDispatcher
from tunegate.application.services.setup_gate import SetupGate
from tunegate.application.services.token_manager import (
    ProviderTokenManager,
    parse_token_response,
)

__all__ = [
    "GatewayAuthService",
    "GuestSessionManager",
    "MIN_PASSWORD_LENGTH",
    "PKCEPair",
    "ProviderTokenManager",
    "ProxyDispatcher",
    "SetupGate",
    "SitePasswordService",
    "derive_challenge",
    "generate_session_token",
    "generate_verifier",
    "hash_password",
    "is_well_formed",
    "parse_token_response",
    "verify_password",
]
