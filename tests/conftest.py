"""Shared fixtures: settings, a throwaway SQLite database, a fake provider, a clock."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from tunegate.config import (
    APISettings,
    DatabaseSettings,
    ObservabilitySettings,
    ProviderSettings,
    SessionSettings,
    Settings,
)
from tunegate.infrastructure.integrations import ProviderClient
from tunegate.infrastructure.persistence import (
    Database,
    DatabaseGuestSessionStore,
    DatabaseSettingsStore,
)

TOKEN_URL = "https://accounts.test/api/token"
AUTHORIZE_URL = "https://accounts.test/authorize"
API_BASE_URL = "https://api.test/v1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FakeProvider:
    """In-memory stand-in for the provider's accounts service and Web API.

    Records every request. token_responses is consumed in order (the last one
    repeats); api_handler answers Web API calls.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_responses: list[httpx.Response] = [
            httpx.Response(
                200,
                json={
                    "access_token": "access-1",
                    "refresh_token": "refresh-1",
                    "expires_in": 3600,
                    "token_type": "Bearer",
                },
            )
        ]
        self.api_handler: Callable[[httpx.Request], httpx.Response] = lambda request: (
            httpx.Response(200, json={"id": "listener"})
        )
        self.fail_with: Exception | None = None

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == TOKEN_URL]

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(API_BASE_URL)]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        """Decode a form-encoded request body."""
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if str(request.url) == TOKEN_URL:
            if len(self.token_responses) > 1:
                return self.token_responses.pop(0)
            return self.token_responses[0]
        return self.api_handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        client_id="test-client",
        client_secret="",
        redirect_uri="http://localhost:3000/callback",
        authorize_url=AUTHORIZE_URL,
        token_url=TOKEN_URL,
        api_base_url=API_BASE_URL,
        scopes=["user-read-private", "streaming"],
        timeout_seconds=5.0,
    )


@pytest.fixture
def settings(tmp_path: Path, provider_settings: ProviderSettings) -> Settings:
    """Settings pointing at a fresh SQLite file under tmp_path."""
    return Settings(
        app_name="tunegate-test",
        log_level="DEBUG",
        provider=provider_settings,
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}"),
        session=SessionSettings(ttl_days=7),
        api=APISettings(frontend_url="http://localhost:3000"),
        observability=ObservabilitySettings(log_json_format=False),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings.database)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
def settings_store(db: Database) -> DatabaseSettingsStore:
    return DatabaseSettingsStore(db)


@pytest.fixture
def guest_store(db: Database) -> DatabaseGuestSessionStore:
    return DatabaseGuestSessionStore(db)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
async def provider_client(
    provider_settings: ProviderSettings, fake_provider: FakeProvider
) -> AsyncGenerator[ProviderClient, None]:
    client = ProviderClient(provider_settings, transport=fake_provider.transport())
    yield client
    await client.close()
