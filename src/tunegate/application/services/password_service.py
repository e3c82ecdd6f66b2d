"""Site password credential (the shared secret guests log in with)."""

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from tunegate.domain.entities import SettingKey
from tunegate.domain.exceptions import AuthError, ConfigurationError, ValidationError
from tunegate.domain.ports import ISettingsStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    """Salted one-way hash (werkzeug default method)."""
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a stored hash."""
    return check_password_hash(password_hash, password)


def validate_new_password(password: str, message: str | None = None) -> None:
    """Raise ValidationError if the password is too short."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            message or f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


class SitePasswordService:
    """Stores and checks the site password hash in the settings store."""

    def __init__(self, store: ISettingsStore) -> None:
        self._store = store

    async def _stored_hash(self) -> str:
        password_hash = await self._store.get(SettingKey.SITE_PASSWORD_HASH)
        if not password_hash:
            raise ConfigurationError("Site password not configured")
        return password_hash

    async def set_password(self, password: str) -> None:
        """Validate, hash and store a new site password."""
        validate_new_password(password)
        await self._store.set(SettingKey.SITE_PASSWORD_HASH, hash_password(password))
        logger.info("Site password updated")

    async def verify_site_password(self, password: str) -> bool:
        """Check a candidate against the stored hash.

        Raises:
            ConfigurationError: If no site password has been set
        """
        return verify_password(password, await self._stored_hash())

    async def change(self, current_password: str | None, new_password: str | None) -> None:
        """Replace the site password after checking the current one.

        Args:
            current_password: Password the caller claims is current
            new_password: Replacement password

        Raises:
            ValidationError: If a field is missing or the new password is too short
            ConfigurationError: If no site password has been set
            AuthError: If current_password does not match
        """
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        validate_new_password(
            new_password,
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )

        if not verify_password(current_password, await self._stored_hash()):
            logger.warning("Password change rejected: current password mismatch")
            raise AuthError("Invalid current password")

        await self._store.set(SettingKey.SITE_PASSWORD_HASH, hash_password(new_password))
        logger.info("Site password changed")
