"""Tests for ProviderTokenManager (exchange, refresh policy, single-flight)."""

import asyncio
from datetime import timedelta

import httpx
import pytest

from tunegate.application.services.token_manager import (
    ProviderTokenManager,
    parse_token_response,
)
from tunegate.domain.entities import SettingKey
from tunegate.domain.exceptions import (
    NoRefreshTokenError,
    UpstreamAuthError,
    UpstreamError,
)


def _epoch_ms(dt) -> str:
    return str(int(dt.timestamp() * 1000))


@pytest.fixture
def manager(settings_store, provider_client, clock) -> ProviderTokenManager:
    return ProviderTokenManager(settings_store, provider_client, clock=clock)


async def _seed(settings_store, clock, *, access="stored-access", refresh="stored-refresh",
                expires_in=timedelta(hours=1)) -> None:
    values = {
        SettingKey.ACCESS_TOKEN: access,
        SettingKey.TOKEN_EXPIRES_AT: _epoch_ms(clock.now + expires_in),
    }
    if refresh:
        values[SettingKey.REFRESH_TOKEN] = refresh
    await settings_store.set_many(values)


def _refresh_calls(fake_provider) -> list[dict[str, str]]:
    forms = [fake_provider.form(r) for r in fake_provider.token_requests]
    return [f for f in forms if f["grant_type"] == "refresh_token"]


class TestExchangeCode:
    """Test authorization code exchange."""

    async def test_persists_tokens_and_expiry(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        result = await manager.exchange_code("auth-code", "the-verifier")

        assert result.access_token == "access-1"
        assert await settings_store.get(SettingKey.ACCESS_TOKEN) == "access-1"
        assert await settings_store.get(SettingKey.REFRESH_TOKEN) == "refresh-1"
        assert await settings_store.get(SettingKey.TOKEN_EXPIRES_AT) == _epoch_ms(
            clock.now + timedelta(seconds=3600)
        )

        form = fake_provider.form(fake_provider.token_requests[0])
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "auth-code"
        assert form["code_verifier"] == "the-verifier"
        assert form["client_id"] == "test-client"
        assert form["redirect_uri"] == "http://localhost:3000/callback"

    async def test_rejected_code_raises_and_persists_nothing(
        self, manager, settings_store, fake_provider
    ) -> None:
        fake_provider.token_responses = [
            httpx.Response(400, json={"error": "invalid_grant", "error_description": "bad code"})
        ]

        with pytest.raises(UpstreamAuthError) as exc_info:
            await manager.exchange_code("expired-code", "the-verifier")

        assert exc_info.value.http_status == 400
        assert exc_info.value.error_code == "invalid_grant"
        assert await settings_store.get(SettingKey.ACCESS_TOKEN) is None


class TestGetValidAccessToken:
    """Test the refresh-before-expiry policy."""

    async def test_fresh_token_is_returned_without_provider_call(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)

        assert await manager.get_valid_access_token() == "stored-access"
        assert fake_provider.requests == []

    async def test_refreshes_inside_margin(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        clock.advance(timedelta(minutes=56))

        assert await manager.get_valid_access_token() == "access-1"

        calls = _refresh_calls(fake_provider)
        assert len(calls) == 1
        assert calls[0]["refresh_token"] == "stored-refresh"

    async def test_exactly_at_margin_boundary_refreshes(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        clock.advance(timedelta(minutes=55))

        await manager.get_valid_access_token()

        assert len(_refresh_calls(fake_provider)) == 1

    async def test_just_outside_margin_does_not_refresh(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        clock.advance(timedelta(minutes=54, seconds=59))

        assert await manager.get_valid_access_token() == "stored-access"
        assert fake_provider.requests == []

    async def test_missing_expiry_forces_refresh(
        self, manager, settings_store, fake_provider
    ) -> None:
        await settings_store.set_many(
            {SettingKey.ACCESS_TOKEN: "stored-access", SettingKey.REFRESH_TOKEN: "r"}
        )

        assert await manager.get_valid_access_token() == "access-1"

    async def test_garbage_expiry_forces_refresh(
        self, manager, settings_store, fake_provider
    ) -> None:
        await settings_store.set_many(
            {
                SettingKey.ACCESS_TOKEN: "stored-access",
                SettingKey.REFRESH_TOKEN: "r",
                SettingKey.TOKEN_EXPIRES_AT: "not-a-number",
            }
        )

        assert await manager.get_valid_access_token() == "access-1"

    async def test_no_refresh_token_raises(self, manager, settings_store, clock) -> None:
        await _seed(settings_store, clock, refresh=None, expires_in=timedelta(minutes=1))

        with pytest.raises(NoRefreshTokenError):
            await manager.get_valid_access_token()

    async def test_nothing_stored_raises(self, manager) -> None:
        with pytest.raises(NoRefreshTokenError):
            await manager.get_valid_access_token()

    async def test_concurrent_callers_share_one_refresh(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock, expires_in=timedelta(minutes=1))

        tokens = await asyncio.gather(*(manager.get_valid_access_token() for _ in range(8)))

        assert set(tokens) == {"access-1"}
        assert len(_refresh_calls(fake_provider)) == 1


class TestRefresh:
    """Test unconditional refresh."""

    async def test_keeps_refresh_token_when_not_rotated(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        fake_provider.token_responses = [
            httpx.Response(200, json={"access_token": "access-2", "expires_in": 1800})
        ]

        assert await manager.refresh() == "access-2"

        assert await settings_store.get(SettingKey.ACCESS_TOKEN) == "access-2"
        assert await settings_store.get(SettingKey.REFRESH_TOKEN) == "stored-refresh"
        assert await settings_store.get(SettingKey.TOKEN_EXPIRES_AT) == _epoch_ms(
            clock.now + timedelta(seconds=1800)
        )

    async def test_stores_rotated_refresh_token(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        fake_provider.token_responses = [
            httpx.Response(
                200,
                json={"access_token": "access-2", "refresh_token": "refresh-2", "expires_in": 3600},
            )
        ]

        await manager.refresh()

        assert await settings_store.get(SettingKey.REFRESH_TOKEN) == "refresh-2"

    async def test_refreshes_even_when_token_is_fresh(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)

        await manager.refresh()

        assert len(_refresh_calls(fake_provider)) == 1

    async def test_revoked_refresh_token_raises_without_retry(
        self, manager, settings_store, fake_provider, clock
    ) -> None:
        await _seed(settings_store, clock)
        fake_provider.token_responses = [
            httpx.Response(400, json={"error": "invalid_grant"})
        ]

        with pytest.raises(UpstreamAuthError):
            await manager.refresh()

        assert len(_refresh_calls(fake_provider)) == 1
        assert await settings_store.get(SettingKey.ACCESS_TOKEN) == "stored-access"


class TestParseTokenResponse:
    """Test token endpoint body parsing."""

    def test_defaults_expires_in(self) -> None:
        result = parse_token_response({"access_token": "a"})

        assert result.expires_in == 3600
        assert result.refresh_token is None
        assert result.token_type == "Bearer"

    def test_empty_refresh_token_is_none(self) -> None:
        assert parse_token_response({"access_token": "a", "refresh_token": ""}).refresh_token is None

    def test_missing_access_token_raises(self) -> None:
        with pytest.raises(UpstreamError):
            parse_token_response({"token_type": "Bearer"})

    def test_missing_access_token_does_not_carry_the_body(self) -> None:
        with pytest.raises(UpstreamError) as exc_info:
            parse_token_response({"refresh_token": "still-secret"})

        assert exc_info.value.body is None

    def test_invalid_expires_in_raises(self) -> None:
        with pytest.raises(UpstreamError, match="expires_in"):
            parse_token_response({"access_token": "a", "expires_in": "soon"})
