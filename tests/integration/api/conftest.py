"""Fixtures for HTTP-level tests against the full app."""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tunegate.config import Settings
from tunegate.main import create_app

SITE_PASSWORD = "guest-password"


@pytest.fixture
def app(settings: Settings, fake_provider) -> FastAPI:
    return create_app(settings, provider_transport=fake_provider.transport())


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    # Context manager runs the lifespan (tables, services on app.state)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def configured_client(client: TestClient) -> TestClient:
    """Client for an app whose admin setup is already done."""
    verifier = client.get("/auth/admin/oauth-url").json()["codeVerifier"]
    response = client.post(
        "/auth/admin/complete-setup",
        json={"code": "auth-code", "codeVerifier": verifier, "sitePassword": SITE_PASSWORD},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def guest_token(configured_client: TestClient) -> str:
    response = configured_client.post("/auth/guest/login", json={"password": SITE_PASSWORD})
    assert response.status_code == 200
    return str(response.json()["token"])
