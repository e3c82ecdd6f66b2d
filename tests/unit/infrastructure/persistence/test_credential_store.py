"""Tests for the settings and guest session stores on SQLite."""

from datetime import UTC, datetime, timedelta

from tunegate.domain.entities import GuestSession, SettingKey


class TestSettingsStore:
    """Test the key/value settings store."""

    async def test_get_missing_key(self, settings_store) -> None:
        assert await settings_store.get(SettingKey.ACCESS_TOKEN) is None
        assert await settings_store.exists(SettingKey.ACCESS_TOKEN) is False

    async def test_set_then_overwrite(self, settings_store) -> None:
        await settings_store.set(SettingKey.ACCESS_TOKEN, "one")
        await settings_store.set(SettingKey.ACCESS_TOKEN, "two")

        assert await settings_store.get(SettingKey.ACCESS_TOKEN) == "two"
        assert await settings_store.exists(SettingKey.ACCESS_TOKEN) is True

    async def test_get_many_fills_missing_with_none(self, settings_store) -> None:
        await settings_store.set_many(
            {SettingKey.ACCESS_TOKEN: "a", SettingKey.TOKEN_EXPIRES_AT: "123"}
        )

        values = await settings_store.get_many(
            SettingKey.ACCESS_TOKEN, SettingKey.REFRESH_TOKEN, SettingKey.TOKEN_EXPIRES_AT
        )

        assert values == {
            SettingKey.ACCESS_TOKEN: "a",
            SettingKey.REFRESH_TOKEN: None,
            SettingKey.TOKEN_EXPIRES_AT: "123",
        }

    async def test_delete(self, settings_store) -> None:
        await settings_store.set(SettingKey.SITE_PASSWORD_HASH, "hash")

        assert await settings_store.delete(SettingKey.SITE_PASSWORD_HASH) is True
        assert await settings_store.delete(SettingKey.SITE_PASSWORD_HASH) is False
        assert await settings_store.get(SettingKey.SITE_PASSWORD_HASH) is None

    async def test_values_survive_a_new_database_handle(self, settings, settings_store) -> None:
        from tunegate.infrastructure.persistence import Database, DatabaseSettingsStore

        await settings_store.set(SettingKey.REFRESH_TOKEN, "persisted")

        other = Database(settings.database)
        try:
            assert await DatabaseSettingsStore(other).get(SettingKey.REFRESH_TOKEN) == "persisted"
        finally:
            await other.close()


class TestGuestSessionStore:
    """Test guest session persistence."""

    @staticmethod
    def _session(token: str, now: datetime, ttl: timedelta) -> GuestSession:
        return GuestSession(token=token, created_at=now, expires_at=now + ttl, last_used_at=now)

    async def test_round_trip_returns_utc_aware_datetimes(self, guest_store) -> None:
        now = datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
        await guest_store.create(self._session("t" * 43, now, timedelta(days=7)))

        found = await guest_store.get_live("t" * 43, now)

        assert found is not None
        assert found.created_at == now
        assert found.expires_at.tzinfo is not None
        assert found.expires_at == now + timedelta(days=7)

    async def test_get_live_is_strict(self, guest_store) -> None:
        now = datetime(2026, 3, 1, tzinfo=UTC)
        await guest_store.create(self._session("a" * 43, now, timedelta(hours=1)))

        assert await guest_store.get_live("a" * 43, now + timedelta(minutes=59)) is not None
        assert await guest_store.get_live("a" * 43, now + timedelta(hours=1)) is None

    async def test_touch_and_delete(self, guest_store) -> None:
        now = datetime(2026, 3, 1, tzinfo=UTC)
        await guest_store.create(self._session("b" * 43, now, timedelta(days=1)))

        later = now + timedelta(hours=3)
        await guest_store.touch("b" * 43, later)
        found = await guest_store.get_live("b" * 43, later)
        assert found is not None
        assert found.last_used_at == later

        assert await guest_store.delete("b" * 43) is True
        assert await guest_store.delete("b" * 43) is False

    async def test_delete_expired_counts_rows(self, guest_store) -> None:
        now = datetime(2026, 3, 1, tzinfo=UTC)
        await guest_store.create(self._session("c" * 43, now - timedelta(days=2), timedelta(days=1)))
        await guest_store.create(self._session("d" * 43, now - timedelta(days=3), timedelta(days=1)))
        await guest_store.create(self._session("e" * 43, now, timedelta(days=1)))

        assert await guest_store.delete_expired(now) == 2
        assert await guest_store.get_live("e" * 43, now) is not None
