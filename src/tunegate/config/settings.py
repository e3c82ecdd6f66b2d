"""Application settings loaded from environment variables and .env files."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Scopes requested during the admin handshake. The proxy can only reach endpoints
# covered here, so the list is broad on purpose (one account, one consent screen).
DEFAULT_SCOPES: list[str] = [
    "ugc-image-upload",
    "streaming",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "playlist-read-private",
    "playlist-modify-public",
    "playlist-modify-private",
    "playlist-read-collaborative",
    "user-follow-modify",
    "user-follow-read",
    "user-read-playback-position",
    "user-top-read",
    "user-read-recently-played",
    "user-library-read",
    "user-library-modify",
    "user-read-email",
    "user-read-private",
]


class ProviderSettings(BaseSettings):
    """Music provider OAuth client and endpoint configuration.

    Environment prefix: SPOTIFY_
    Example: SPOTIFY_CLIENT_ID=abc123
    """

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_",
        env_file=".env",
        extra="ignore",
    )

    client_id: str = Field(default="", description="OAuth client ID")
    # Optional - PKCE public clients have no secret
    client_secret: str = Field(default="", description="OAuth client secret")
    redirect_uri: str = Field(default="", description="Registered OAuth redirect URI")
    authorize_url: str = "https://accounts.spotify.com/authorize"
    token_url: str = "https://accounts.spotify.com/api/token"  # nosec B105
    api_base_url: str = "https://api.spotify.com/v1"
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    timeout_seconds: float = Field(
        default=15.0, gt=0, description="Timeout for every provider HTTP call"
    )
    refresh_margin_seconds: int = Field(
        default=300,
        ge=0,
        description="Refresh the access token this long before it expires",
    )

    def is_configured(self) -> bool:
        """Check if client_id and redirect_uri are set."""
        return bool(self.client_id.strip() and self.redirect_uri.strip())


class DatabaseSettings(BaseSettings):
    """Credential store configuration.

    Environment prefix: DATABASE_
    DB_PATH is also honoured for a plain SQLite file location.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    url: str = Field(default="", description="Full SQLAlchemy URL (overrides path)")
    path: Path = Field(
        default=Path("./data/auth.db"),
        validation_alias=AliasChoices("DB_PATH", "DATABASE_PATH"),
    )
    echo: bool = False
    busy_timeout_ms: int = Field(default=5000, ge=0)

    def resolved_url(self) -> str:
        """Return the SQLAlchemy URL, building one from path if url is unset."""
        if self.url:
            return self.url
        return f"sqlite+aiosqlite:///{self.path}"

    def get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite file path, or None for non-file databases."""
        url = self.resolved_url()
        if not url.startswith("sqlite"):
            return None
        _, _, raw_path = url.partition(":///")
        if not raw_path or raw_path == ":memory:":
            return None
        return Path(raw_path)


class SessionSettings(BaseSettings):
    """Guest session configuration.

    Environment prefix: SESSION_
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        extra="ignore",
    )

    ttl_days: int = Field(default=7, ge=1, description="Guest session lifetime")


class APISettings(BaseSettings):
    """HTTP server configuration.

    Environment prefix: API_
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = "0.0.0.0"  # nosec B104
    port: int = 3001
    prefix: str = Field(default="", description="Mount prefix for all gateway routes")
    frontend_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("FRONTEND_URL", "API_FRONTEND_URL"),
    )


class ObservabilitySettings(BaseSettings):
    """Logging configuration.

    Environment prefix: OBSERVABILITY_
    """

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_",
        env_file=".env",
        extra="ignore",
    )

    log_json_format: bool = False


class Settings(BaseSettings):
    """Top-level application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "tunegate"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    api: APISettings = Field(default_factory=APISettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
