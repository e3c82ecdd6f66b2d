"""Tests for the setup state gate."""

import pytest

from tunegate.application.services.setup_gate import SetupGate
from tunegate.domain.entities import SettingKey, SetupState
from tunegate.domain.exceptions import StateError


@pytest.fixture
def gate(settings_store) -> SetupGate:
    return SetupGate(settings_store)


async def test_fresh_store_is_not_configured(gate) -> None:
    assert await gate.state() is SetupState.NOT_CONFIGURED
    assert await gate.is_setup_complete() is False


async def test_mark_complete_transitions_to_configured(gate, settings_store) -> None:
    await gate.mark_complete()

    assert await gate.state() is SetupState.CONFIGURED
    assert await settings_store.get(SettingKey.ADMIN_SETUP_COMPLETE) == "true"


async def test_presence_of_key_is_what_counts(gate, settings_store) -> None:
    # Any value, even "false", means complete
    await settings_store.set(SettingKey.ADMIN_SETUP_COMPLETE, "false")

    assert await gate.is_setup_complete() is True


async def test_require_passes_in_expected_state(gate) -> None:
    await gate.require(SetupState.NOT_CONFIGURED)
    await gate.mark_complete()
    await gate.require(SetupState.CONFIGURED)


async def test_require_configured_before_setup(gate) -> None:
    with pytest.raises(StateError, match="Admin setup not complete"):
        await gate.require(SetupState.CONFIGURED)


async def test_require_not_configured_after_setup(gate) -> None:
    await gate.mark_complete()

    with pytest.raises(StateError, match="Admin setup already complete"):
        await gate.require(SetupState.NOT_CONFIGURED)
