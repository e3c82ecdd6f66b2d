"""Guest session lifecycle: issue, validate, touch, revoke, sweep."""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from tunegate.domain.entities import GuestSession, utc_now
from tunegate.domain.ports import IGuestSessionStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=7)

# 32 random bytes -> 43 URL-safe characters
TOKEN_BYTES = 32
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{32,128}$")


def generate_session_token() -> str:
    """Generate an opaque, high-entropy bearer token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def is_well_formed(token: str | None) -> bool:
    """Structural check done before any store lookup."""
    return bool(token) and _TOKEN_PATTERN.fullmatch(token) is not None  # type: ignore[arg-type]


class GuestSessionManager:
    """Issues and checks guest bearer sessions.

    Tokens are opaque random strings; validity lives only in the store, so
    revoke() takes effect immediately. validate() is two independent checks:
    token shape first (garbage never hits the DB), then a live-row lookup.
    """

    def __init__(
        self,
        store: IGuestSessionStore,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def issue(
        self, token_value: str | None = None, ttl: timedelta | None = None
    ) -> GuestSession:
        """Create and persist a new session.

        Args:
            token_value: Token to use; a fresh one is generated if None
            ttl: Lifetime override (defaults to the manager's ttl)

        Raises:
            ValueError: If token_value is not a well-formed token
        """
        token = token_value if token_value is not None else generate_session_token()
        if not is_well_formed(token):
            raise ValueError("Session token is not well-formed")

        now = self._clock()
        session = GuestSession(
            token=token,
            created_at=now,
            expires_at=now + (ttl or self._ttl),
            last_used_at=now,
        )
        await self._store.create(session)
        logger.info("Issued guest session", extra={"expires_at": session.expires_at.isoformat()})
        return session

    async def validate(self, token: str | None) -> GuestSession | None:
        """Return the session if the token is well-formed and has a live row."""
        if not is_well_formed(token):
            return None
        return await self._store.get_live(token, self._clock())  # type: ignore[arg-type]

    # Hey future me - touch is best-effort. A failed last_used_at update must never turn
    # an authenticated proxy call into a 500, so anything it raises is logged and dropped.
    async def touch(self, token: str) -> None:
        """Record that the session was just used."""
        try:
            await self._store.touch(token, self._clock())
        except Exception as e:
            logger.warning("Failed to update guest session last_used_at: %s", e)

    async def revoke(self, token: str | None) -> bool:
        """Delete the session. Safe to call with unknown or malformed tokens."""
        if not is_well_formed(token):
            return False
        deleted = await self._store.delete(token)  # type: ignore[arg-type]
        if deleted:
            logger.info("Revoked guest session")
        return deleted

    async def sweep_expired(self) -> int:
        """Delete every session with expires_at before now."""
        count = await self._store.delete_expired(self._clock())
        if count:
            logger.info("Swept %d expired guest sessions", count)
        return count
