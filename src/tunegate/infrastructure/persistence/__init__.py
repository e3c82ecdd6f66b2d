"""Infrastructure persistence layer."""

from .database import Database
from .models import Base, GuestSessionModel, SettingModel
from .repositories import GuestSessionRepository, SettingsRepository
from .stores import DatabaseGuestSessionStore, DatabaseSettingsStore

__all__ = [
    # Database
    "Database",
    "Base",
    # Models
    "GuestSessionModel",
    "SettingModel",
    # Repositories
    "GuestSessionRepository",
    "SettingsRepository",
    # Stores
    "DatabaseGuestSessionStore",
    "DatabaseSettingsStore",
]
