"""Provider token lifecycle: code exchange, persistence and refresh.

Hey future me - this is THE place that decides when the server-held provider
token gets renewed. Everything that talks to the provider API asks
get_valid_access_token() first.

Storage layout (settings table, one row each):
- spotify_access_token
- spotify_refresh_token      (only overwritten when the provider rotates it)
- spotify_token_expires_at   (epoch milliseconds as decimal text)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from tunegate.domain.entities import (
    ProviderTokenState,
    SettingKey,
    TokenResult,
    utc_now,
)
from tunegate.domain.exceptions import NoRefreshTokenError, UpstreamError
from tunegate.domain.ports import ISettingsStore

if TYPE_CHECKING:
    from tunegate.infrastructure.integrations.provider_client import ProviderClient

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MARGIN = timedelta(minutes=5)
DEFAULT_EXPIRES_IN = 3600


def _to_epoch_ms(dt: datetime) -> str:
    return str(int(dt.timestamp() * 1000))


def _from_epoch_ms(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromtimestamp(int(raw) / 1000, tz=UTC)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Stored token expiry is not a timestamp; forcing refresh")
        return None


def parse_token_response(data: dict[str, Any]) -> TokenResult:
    """Turn a token endpoint JSON body into a TokenResult.

    Raises:
        UpstreamError: If the body has no access_token
    """
    access_token = data.get("access_token")
    if not access_token:
        # Body is not attached: it can still carry a refresh token
        raise UpstreamError("Token response did not contain an access token")
    try:
        expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
    except (TypeError, ValueError) as e:
        raise UpstreamError("Token response had an invalid expires_in") from e
    return TokenResult(
        access_token=str(access_token),
        refresh_token=data.get("refresh_token") or None,
        expires_in=expires_in,
        token_type=data.get("token_type", "Bearer"),
        scope=data.get("scope"),
    )


class ProviderTokenManager:
    """Keeps a usable provider access token in the settings store.

    One instance per process (lives on app.state). The refresh lock makes
    refresh single-flight within the process: callers that hit the expiry
    window together wait for one refresh and then reuse its result.
    """

    def __init__(
        self,
        store: ISettingsStore,
        client: ProviderClient,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize token manager.

        Args:
            store: Settings store holding the provider tokens
            client: Provider client for token endpoint calls
            refresh_margin: Refresh this long before the stored expiry
            clock: Returns the current UTC time (injectable for tests)
        """
        self._store = store
        self._client = client
        self._margin = refresh_margin
        self._clock = clock
        self._refresh_lock = asyncio.Lock()

    async def load_state(self) -> ProviderTokenState:
        """Read the current token state from the store."""
        values = await self._store.get_many(
            SettingKey.ACCESS_TOKEN,
            SettingKey.REFRESH_TOKEN,
            SettingKey.TOKEN_EXPIRES_AT,
        )
        return ProviderTokenState(
            access_token=values[SettingKey.ACCESS_TOKEN],
            refresh_token=values[SettingKey.REFRESH_TOKEN],
            expires_at=_from_epoch_ms(values[SettingKey.TOKEN_EXPIRES_AT]),
        )

    async def _persist(self, result: TokenResult) -> None:
        """Store access token, expiry and (only if present) refresh token."""
        expires_at = self._clock() + timedelta(seconds=result.expires_in)
        values = {
            SettingKey.ACCESS_TOKEN: result.access_token,
            SettingKey.TOKEN_EXPIRES_AT: _to_epoch_ms(expires_at),
        }
        # Never overwrite a stored refresh token with nothing
        if result.refresh_token:
            values[SettingKey.REFRESH_TOKEN] = result.refresh_token
        await self._store.set_many(values)

    async def exchange_code(self, code: str, code_verifier: str) -> TokenResult:
        """Exchange an authorization code and persist the resulting tokens.

        Raises:
            UpstreamAuthError: If the provider rejects the code or verifier
        """
        data = await self._client.exchange_code(code, code_verifier)
        result = parse_token_response(data)
        await self._persist(result)
        logger.info(
            "Exchanged authorization code for provider tokens",
            extra={"expires_in": result.expires_in, "has_refresh": bool(result.refresh_token)},
        )
        return result

    async def get_valid_access_token(self) -> str:
        """Return an access token that is good for at least the refresh margin.

        Raises:
            NoRefreshTokenError: If a refresh is needed but none is stored
            UpstreamAuthError: If the provider rejects the refresh
        """
        state = await self.load_state()
        if not state.needs_refresh(self._clock(), self._margin):
            return state.access_token  # type: ignore[return-value]

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            state = await self.load_state()
            if not state.needs_refresh(self._clock(), self._margin):
                return state.access_token  # type: ignore[return-value]
            return await self._refresh_locked(state)

    async def refresh(self) -> str:
        """Refresh the access token unconditionally and return the new one.

        Raises:
            NoRefreshTokenError: If no refresh token is stored
            UpstreamAuthError: If the provider rejects the refresh
        """
        async with self._refresh_lock:
            return await self._refresh_locked(await self.load_state())

    async def _refresh_locked(self, state: ProviderTokenState) -> str:
        if not state.refresh_token:
            raise NoRefreshTokenError()

        data = await self._client.refresh_token(state.refresh_token)
        result = parse_token_response(data)
        await self._persist(result)

        logger.info(
            "Refreshed provider access token",
            extra={"expires_in": result.expires_in, "rotated": bool(result.refresh_token)},
        )
        return result.access_token
