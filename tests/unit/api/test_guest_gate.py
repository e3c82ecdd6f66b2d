"""Tests for the guest bearer dependency and app.state lookups."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from tunegate.api.dependencies import (
    extract_bearer_token,
    get_auth_service,
    require_guest,
)
from tunegate.application.services import generate_session_token
from tunegate.domain.exceptions import AuthError


class MockRequest:
    """Mock for FastAPI Request."""

    def __init__(self, app_state: object) -> None:
        self.app = MagicMock()
        self.app.state = app_state


@pytest.fixture
def sessions() -> AsyncMock:
    mock = AsyncMock()
    mock.validate.return_value = MagicMock(name="GuestSession")
    return mock


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Basic abc", None),
        ("Bearer ", None),
        ("Bearer tok", "tok"),
        ("Bearer  tok ", "tok"),
    ],
)
def test_extract_bearer_token(header, expected) -> None:
    assert extract_bearer_token(header) == expected


async def test_missing_header_is_unauthorized(sessions) -> None:
    with pytest.raises(AuthError, match="Unauthorized"):
        await require_guest(authorization=None, sessions=sessions)

    sessions.validate.assert_not_called()


async def test_malformed_token_never_reaches_store(sessions) -> None:
    with pytest.raises(AuthError, match="Invalid or expired token"):
        await require_guest(authorization="Bearer not.a.session", sessions=sessions)

    sessions.validate.assert_not_called()


async def test_unknown_session(sessions) -> None:
    sessions.validate.return_value = None

    with pytest.raises(AuthError, match="Session not found or expired"):
        await require_guest(
            authorization=f"Bearer {generate_session_token()}", sessions=sessions
        )

    sessions.touch.assert_not_called()


async def test_live_session_is_touched(sessions) -> None:
    token = generate_session_token()

    session = await require_guest(authorization=f"Bearer {token}", sessions=sessions)

    assert session is sessions.validate.return_value
    sessions.validate.assert_awaited_once_with(token)
    sessions.touch.assert_awaited_once_with(token)


def test_service_lookup_before_startup_is_503() -> None:
    request = MockRequest(MagicMock(spec=[]))

    with pytest.raises(HTTPException) as exc_info:
        get_auth_service(request)  # type: ignore[arg-type]

    assert exc_info.value.status_code == 503


def test_service_lookup_after_startup() -> None:
    state = MagicMock()
    request = MockRequest(state)

    assert get_auth_service(request) is state.auth_service  # type: ignore[arg-type]
