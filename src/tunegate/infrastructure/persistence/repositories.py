"""Repository implementations for settings and guest sessions."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tunegate.domain.entities import GuestSession, SettingKey, ensure_utc_aware, utc_now

from .models import GuestSessionModel, SettingModel


class SettingsRepository:
    """SQLAlchemy repository for the settings key/value table."""

    # Hey future me - repositories only STAGE changes on the injected session. The commit
    # happens in Database.session_scope() around them (see stores.py). Don't open your own
    # session in here or a set_many() stops being atomic.
    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def get(self, key: SettingKey) -> str | None:
        """Get a value by key."""
        stmt = select(SettingModel.value).where(SettingModel.key == key.value)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, *keys: SettingKey) -> dict[SettingKey, str | None]:
        """Get several values; missing keys map to None."""
        stmt = select(SettingModel.key, SettingModel.value).where(
            SettingModel.key.in_([k.value for k in keys])
        )
        result = await self.session.execute(stmt)
        found = {row.key: row.value for row in result}
        return {k: found.get(k.value) for k in keys}

    # Listen up - UPSERT as select, then update or add. Works on SQLite and Postgres
    # alike without dialect-specific ON CONFLICT clauses.
    async def upsert(self, key: SettingKey, value: str) -> None:
        """Insert or update a setting."""
        stmt = select(SettingModel).where(SettingModel.key == key.value)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        now = utc_now()
        if model:
            model.value = value
            model.updated_at = now
        else:
            self.session.add(
                SettingModel(key=key.value, value=value, created_at=now, updated_at=now)
            )
        await self.session.flush()

    async def delete(self, key: SettingKey) -> bool:
        """Delete a setting. Returns True if a row was removed."""
        stmt = delete(SettingModel).where(SettingModel.key == key.value)
        result = await self.session.execute(stmt)
        rowcount = cast(int, result.rowcount)  # type: ignore[attr-defined]
        return bool(rowcount > 0)

    async def exists(self, key: SettingKey) -> bool:
        """Check if a setting exists."""
        stmt = select(SettingModel.key).where(SettingModel.key == key.value).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None


class GuestSessionRepository:
    """SQLAlchemy repository for guest sessions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, guest_session: GuestSession) -> None:
        """Stage a new session row."""
        self.session.add(
            GuestSessionModel(
                session_token=guest_session.token,
                created_at=guest_session.created_at,
                expires_at=guest_session.expires_at,
                last_used_at=guest_session.last_used_at,
            )
        )
        await self.session.flush()

    async def get_live(self, token: str, now: datetime) -> GuestSession | None:
        """Get a session only if its expiry is strictly after now."""
        stmt = select(GuestSessionModel).where(
            GuestSessionModel.session_token == token,
            GuestSessionModel.expires_at > now,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return self._to_entity(model)

    async def touch(self, token: str, now: datetime) -> bool:
        """Update last_used_at. Returns True if the session exists."""
        stmt = (
            update(GuestSessionModel)
            .where(GuestSessionModel.session_token == token)
            .values(last_used_at=now)
        )
        result = await self.session.execute(stmt)
        rowcount = cast(int, result.rowcount)  # type: ignore[attr-defined]
        return bool(rowcount > 0)

    # Yo, delete() is idempotent - logout of an already-gone session is not an error.
    async def delete(self, token: str) -> bool:
        """Delete a session by token."""
        stmt = delete(GuestSessionModel).where(GuestSessionModel.session_token == token)
        result = await self.session.execute(stmt)
        rowcount = cast(int, result.rowcount)  # type: ignore[attr-defined]
        return bool(rowcount > 0)

    # Strict "<": a row expiring exactly now survives the sweep.
    async def delete_expired(self, now: datetime) -> int:
        """Delete sessions whose expires_at is before now."""
        stmt = delete(GuestSessionModel).where(GuestSessionModel.expires_at < now)
        result = await self.session.execute(stmt)
        rowcount = cast(int, result.rowcount)  # type: ignore[attr-defined]
        return int(rowcount or 0)

    @staticmethod
    def _to_entity(model: GuestSessionModel) -> GuestSession:
        return GuestSession(
            token=model.session_token,
            created_at=ensure_utc_aware(model.created_at),
            expires_at=ensure_utc_aware(model.expires_at),
            last_used_at=ensure_utc_aware(model.last_used_at),
        )
