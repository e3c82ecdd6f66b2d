"""Domain entities."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite hands datetimes back without tzinfo even though we only ever
# write UTC. Anything read from the store goes through this before being compared with
# utc_now(), otherwise you get "can't compare offset-naive and offset-aware" TypeErrors.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class SettingKey(str, Enum):
    """Keys of the settings table."""

    ADMIN_SETUP_COMPLETE = "admin_setup_complete"
    ACCESS_TOKEN = "spotify_access_token"  # nosec B105
    REFRESH_TOKEN = "spotify_refresh_token"  # nosec B105
    TOKEN_EXPIRES_AT = "spotify_token_expires_at"  # nosec B105
    SITE_PASSWORD_HASH = "site_password_hash"  # nosec B105


class SetupState(str, Enum):
    """Whether the one-time admin handshake has happened.

    The only transition is NOT_CONFIGURED -> CONFIGURED.
    """

    NOT_CONFIGURED = "not_configured"
    CONFIGURED = "configured"


@dataclass
class GuestSession:
    """Bearer session granted to a guest after the site password check."""

    token: str
    created_at: datetime
    expires_at: datetime
    last_used_at: datetime

    def is_live(self, now: datetime | None = None) -> bool:
        """A session is live while expires_at is strictly in the future."""
        now = now or utc_now()
        return ensure_utc_aware(self.expires_at) > now


@dataclass
class TokenResult:
    """Parsed response of the provider token endpoint.

    refresh_token may be None on refresh; the provider does not always
    rotate it.
    """

    access_token: str
    refresh_token: str | None
    expires_in: int
    token_type: str = "Bearer"  # nosec B107
    scope: str | None = None


@dataclass
class ProviderTokenState:
    """Provider credentials as currently stored.

    Materialised from three separate settings so that a refresh without a
    rotated refresh token only touches the access token and expiry.
    """

    access_token: str | None
    refresh_token: str | None
    expires_at: datetime | None

    def needs_refresh(self, now: datetime, margin: timedelta) -> bool:
        """Check if the access token is missing or inside the refresh margin."""
        if not self.access_token or self.expires_at is None:
            return True
        return now >= ensure_utc_aware(self.expires_at) - margin


@dataclass
class ProxiedResponse:
    """Provider response relayed back to the guest verbatim."""

    status_code: int
    content: bytes
    content_type: str | None = None


__all__ = [
    "GuestSession",
    "ProviderTokenState",
    "ProxiedResponse",
    "SettingKey",
    "SetupState",
    "TokenResult",
    "ensure_utc_aware",
    "utc_now",
]
