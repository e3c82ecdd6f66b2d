"""Configuration module for tunegate."""

from .settings import (
    DEFAULT_SCOPES,
    APISettings,
    DatabaseSettings,
    ObservabilitySettings,
    ProviderSettings,
    SessionSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_SCOPES",
    "APISettings",
    "DatabaseSettings",
    "ObservabilitySettings",
    "ProviderSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
]
