"""Setup state gate: which flows are reachable before and after the admin handshake."""

import logging

from tunegate.domain.entities import SettingKey, SetupState
from tunegate.domain.exceptions import StateError
from tunegate.domain.ports import ISettingsStore

logger = logging.getLogger(__name__)


class SetupGate:
    """Explicit NOT_CONFIGURED -> CONFIGURED state machine.

    Backed by the presence of the admin_setup_complete setting. There is no
    way back to NOT_CONFIGURED through this class.
    """

    def __init__(self, store: ISettingsStore) -> None:
        self._store = store

    async def state(self) -> SetupState:
        """Get the current setup state."""
        if await self._store.exists(SettingKey.ADMIN_SETUP_COMPLETE):
            return SetupState.CONFIGURED
        return SetupState.NOT_CONFIGURED

    async def is_setup_complete(self) -> bool:
        return await self.state() is SetupState.CONFIGURED

    async def require(self, expected: SetupState) -> None:
        """Raise StateError unless the current state is the expected one."""
        current = await self.state()
        if current is expected:
            return

        match current:
            case SetupState.CONFIGURED:
                raise StateError("Admin setup already complete")
            case SetupState.NOT_CONFIGURED:
                raise StateError("Admin setup not complete")

    async def mark_complete(self) -> None:
        """Record that the admin handshake finished."""
        await self._store.set(SettingKey.ADMIN_SETUP_COMPLETE, "true")
        logger.info("Admin setup marked complete")
