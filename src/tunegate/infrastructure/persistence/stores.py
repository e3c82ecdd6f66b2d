"""Database-backed stores used by the application services.

Each store method runs in its own Database.session_scope(), so the write is
committed before the method returns. The token manager relies on this: a
caller waiting on the refresh lock must see the refreshed token as soon as the
lock is released.
"""

from datetime import datetime

from tunegate.domain.entities import GuestSession, SettingKey
from tunegate.domain.ports import IGuestSessionStore, ISettingsStore

from .database import Database
from .repositories import GuestSessionRepository, SettingsRepository


class DatabaseSettingsStore(ISettingsStore):
    """Settings store backed by the settings table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, key: SettingKey) -> str | None:
        async with self._db.session_scope() as session:
            return await SettingsRepository(session).get(key)

    async def get_many(self, *keys: SettingKey) -> dict[SettingKey, str | None]:
        async with self._db.session_scope() as session:
            return await SettingsRepository(session).get_many(*keys)

    async def set(self, key: SettingKey, value: str) -> None:
        async with self._db.session_scope() as session:
            await SettingsRepository(session).upsert(key, value)

    async def set_many(self, values: dict[SettingKey, str]) -> None:
        async with self._db.session_scope() as session:
            repo = SettingsRepository(session)
            for key, value in values.items():
                await repo.upsert(key, value)

    async def delete(self, key: SettingKey) -> bool:
        async with self._db.session_scope() as session:
            return await SettingsRepository(session).delete(key)

    async def exists(self, key: SettingKey) -> bool:
        async with self._db.session_scope() as session:
            return await SettingsRepository(session).exists(key)


class DatabaseGuestSessionStore(IGuestSessionStore):
    """Guest session store backed by the guest_sessions table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, session: GuestSession) -> None:
        async with self._db.session_scope() as db_session:
            await GuestSessionRepository(db_session).add(session)

    async def get_live(self, token: str, now: datetime) -> GuestSession | None:
        async with self._db.session_scope() as db_session:
            return await GuestSessionRepository(db_session).get_live(token, now)

    async def touch(self, token: str, now: datetime) -> bool:
        async with self._db.session_scope() as db_session:
            return await GuestSessionRepository(db_session).touch(token, now)

    async def delete(self, token: str) -> bool:
        async with self._db.session_scope() as db_session:
            return await GuestSessionRepository(db_session).delete(token)

    async def delete_expired(self, now: datetime) -> int:
        async with self._db.session_scope() as db_session:
            return await GuestSessionRepository(db_session).delete_expired(now)
