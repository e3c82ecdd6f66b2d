"""Gateway auth orchestration: admin setup, guest login/logout, password change."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tunegate.application.services.guest_session_manager import GuestSessionManager
from tunegate.application.services.password_service import (
    MIN_PASSWORD_LENGTH,
    SitePasswordService,
)
from tunegate.application.services.pkce import PKCEPair
from tunegate.application.services.setup_gate import SetupGate
from tunegate.domain.entities import GuestSession, SetupState
from tunegate.domain.exceptions import (
    AuthError,
    ConfigurationError,
    UpstreamError,
    ValidationError,
)

if TYPE_CHECKING:
    from tunegate.application.services.token_manager import ProviderTokenManager
    from tunegate.infrastructure.integrations.provider_client import ProviderClient

logger = logging.getLogger(__name__)


class GatewayAuthService:
    """Ties the setup gate, provider tokens, site password and guest sessions together.

    Every public method checks the setup state first, so the HTTP layer only
    has to translate exceptions.
    """

    def __init__(
        self,
        gate: SetupGate,
        client: ProviderClient,
        token_manager: ProviderTokenManager,
        passwords: SitePasswordService,
        sessions: GuestSessionManager,
    ) -> None:
        self.gate = gate
        self.client = client
        self.token_manager = token_manager
        self.passwords = passwords
        self.sessions = sessions

    async def is_setup_complete(self) -> bool:
        return await self.gate.is_setup_complete()

    async def build_admin_authorization(self) -> tuple[str, str]:
        """Start the admin PKCE handshake.

        Returns:
            (authorization URL, code verifier). The verifier goes back to the
            admin's browser and must be sent again with the authorization code.

        Raises:
            StateError: If setup is already complete
            ConfigurationError: If client_id or redirect_uri is not configured
        """
        await self.gate.require(SetupState.NOT_CONFIGURED)
        pkce = PKCEPair.generate()
        auth_url = self.client.build_authorization_url(pkce.challenge)
        logger.info("Generated admin authorization URL")
        return auth_url, pkce.verifier

    # Hey future me - order matters here. Tokens first, then the password hash, and the
    # setup flag LAST. If the exchange blows up nothing is marked complete and the admin
    # can just start over with a fresh authorization URL.
    async def complete_admin_setup(
        self,
        code: str | None,
        code_verifier: str | None,
        site_password: str | None,
    ) -> None:
        """Finish the admin handshake and set the initial site password.

        Raises:
            StateError: If setup is already complete
            ValidationError: If a field is missing or the password is too short
            UpstreamError: If the code exchange fails for any reason (always status 500)
        """
        await self.gate.require(SetupState.NOT_CONFIGURED)

        if not code or not code_verifier or not site_password:
            raise ValidationError("Missing required parameters")
        if len(site_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        try:
            await self.token_manager.exchange_code(code, code_verifier)
        except (UpstreamError, ConfigurationError) as e:
            logger.error(
                "Admin setup failed during code exchange: %s",
                e.message,
                extra={"provider_status": getattr(e, "http_status", None)},
            )
            raise UpstreamError("Failed to complete admin setup") from e

        await self.passwords.set_password(site_password)
        await self.gate.mark_complete()
        logger.info("Admin setup complete")

    async def guest_login(self, password: str | None) -> GuestSession:
        """Check the site password and issue a guest session.

        Raises:
            StateError: If setup is not complete
            ValidationError: If password is missing
            ConfigurationError: If no site password is stored
            AuthError: If the password is wrong
        """
        await self.gate.require(SetupState.CONFIGURED)

        if not password:
            raise ValidationError("Password is required")

        if not await self.passwords.verify_site_password(password):
            logger.warning("Guest login rejected: invalid password")
            raise AuthError("Invalid password")

        session = await self.sessions.issue()
        await self.sessions.sweep_expired()
        return session

    async def guest_logout(self, token: str | None) -> None:
        """Revoke the token if one was given. Never fails for unknown tokens."""
        if token:
            await self.sessions.revoke(token)

    async def change_password(
        self, current_password: str | None, new_password: str | None
    ) -> None:
        """Replace the site password (setup must be complete)."""
        await self.gate.require(SetupState.CONFIGURED)
        await self.passwords.change(current_password, new_password)
