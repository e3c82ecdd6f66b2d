"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import datetime

from tunegate.domain.entities import GuestSession, SettingKey


# Hey future me - these are the store contracts the managers are built against. The
# SQLAlchemy implementations live in infrastructure.persistence.stores; tests can hand
# in anything that honours the same methods. Every call is its own unit of work - when
# a method returns, the write is durable and visible to other requests.
class ISettingsStore(ABC):
    """Durable key/value store for provider tokens and the site password hash."""

    @abstractmethod
    async def get(self, key: SettingKey) -> str | None:
        """Get a value, or None if the key is absent."""

    @abstractmethod
    async def get_many(self, *keys: SettingKey) -> dict[SettingKey, str | None]:
        """Get several values in one read."""

    @abstractmethod
    async def set(self, key: SettingKey, value: str) -> None:
        """Insert or update a value."""

    @abstractmethod
    async def set_many(self, values: dict[SettingKey, str]) -> None:
        """Insert or update several values atomically."""

    @abstractmethod
    async def delete(self, key: SettingKey) -> bool:
        """Delete a key. Returns True if it existed."""

    @abstractmethod
    async def exists(self, key: SettingKey) -> bool:
        """Check if a key is present."""


class IGuestSessionStore(ABC):
    """Durable store for guest session rows."""

    @abstractmethod
    async def create(self, session: GuestSession) -> None:
        """Persist a new session."""

    @abstractmethod
    async def get_live(self, token: str, now: datetime) -> GuestSession | None:
        """Get the session if it exists and expires_at > now."""

    @abstractmethod
    async def touch(self, token: str, now: datetime) -> bool:
        """Set last_used_at. Returns True if the row exists."""

    @abstractmethod
    async def delete(self, token: str) -> bool:
        """Delete a session. Returns True if it existed."""

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete sessions with expires_at < now. Returns the count."""


__all__ = ["IGuestSessionStore", "ISettingsStore"]
