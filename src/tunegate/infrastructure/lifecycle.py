"""Application lifecycle management for startup and shutdown.

Startup builds the whole object graph once and hangs it on app.state:

    db -> settings_store / guest_session_store
       -> provider_client -> token_manager -> proxy_dispatcher
       -> setup_gate, password_service, guest_sessions -> auth_service

Shutdown closes the provider HTTP client and disposes the engine.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from tunegate.application.services import (
    GatewayAuthService,
    GuestSessionManager,
    ProviderTokenManager,
    ProxyDispatcher,
    SetupGate,
    SitePasswordService,
)
from tunegate.config import DatabaseSettings, Settings, get_settings
from tunegate.domain.exceptions import ConfigurationError
from tunegate.infrastructure.integrations import ProviderClient
from tunegate.infrastructure.observability import configure_logging
from tunegate.infrastructure.persistence import (
    Database,
    DatabaseGuestSessionStore,
    DatabaseSettingsStore,
)

logger = logging.getLogger(__name__)


# Hey future me - fail at startup with a readable message instead of a cryptic
# "unable to open database file" on the first request. SQLite also needs to create
# -wal and -shm files next to the .db, so the directory itself must be writable.
def _validate_sqlite_path(settings: DatabaseSettings) -> None:
    """Ensure the SQLite parent directory exists and is writable.

    Raises:
        ConfigurationError: If the directory cannot be created or written
    """
    db_path = settings.get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Set DB_PATH or DATABASE_URL to a writable location."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite needs write access for the database and its WAL files."
        ) from exc


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """FastAPI lifespan: build services on startup, release resources on shutdown.

    Reads app.state.settings (falls back to get_settings()) and an optional
    app.state.provider_transport, both set by create_app().
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    if not settings.provider.is_configured():
        # Not fatal: /auth/status and /health still work, oauth-url answers 500
        logger.warning("SPOTIFY_CLIENT_ID or SPOTIFY_REDIRECT_URI not set")

    _validate_sqlite_path(settings.database)

    db = Database(settings.database)
    provider_client = ProviderClient(
        settings.provider,
        transport=getattr(app.state, "provider_transport", None),
    )
    try:
        await db.create_tables()
        logger.info("Database initialized: %s", db.url)

        settings_store = DatabaseSettingsStore(db)
        guest_store = DatabaseGuestSessionStore(db)

        token_manager = ProviderTokenManager(
            settings_store,
            provider_client,
            refresh_margin=timedelta(seconds=settings.provider.refresh_margin_seconds),
        )
        guest_sessions = GuestSessionManager(
            guest_store, ttl=timedelta(days=settings.session.ttl_days)
        )
        setup_gate = SetupGate(settings_store)

        app.state.settings = settings
        app.state.db = db
        app.state.provider_client = provider_client
        app.state.token_manager = token_manager
        app.state.guest_sessions = guest_sessions
        app.state.setup_gate = setup_gate
        app.state.proxy_dispatcher = ProxyDispatcher(token_manager, provider_client)
        app.state.auth_service = GatewayAuthService(
            gate=setup_gate,
            client=provider_client,
            token_manager=token_manager,
            passwords=SitePasswordService(settings_store),
            sessions=guest_sessions,
        )

        swept = await guest_sessions.sweep_expired()
        logger.info(
            "Gateway ready (setup complete: %s, expired sessions removed: %d)",
            await setup_gate.is_setup_complete(),
            swept,
        )

        yield

    finally:
        logger.info("Shutting down application")
        await provider_client.close()
        await db.close()
        logger.info("Application shutdown complete")
