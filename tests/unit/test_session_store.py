"""Tests for the session store."""

from unittest.mock import MagicMock, PropertyMock

import pytest

from audiobook_buddy.domain.entities import ConfigurationError, SessionStatus
from audiobook_buddy.domain.services.session_store import SessionStore


@pytest.mark.asyncio
async def test_initial_status_is_loading(identity_provider):
    store = SessionStore(identity_provider)
    assert store.status == SessionStatus.LOADING


@pytest.mark.asyncio
async def test_start_resolves_current_identity(identity_provider, alice):
    store = SessionStore(identity_provider)

    await store.start()

    assert store.status == SessionStatus.READY_WITH_IDENTITY
    assert store.identity == alice


@pytest.mark.asyncio
async def test_start_without_identity(identity_provider):
    identity_provider._identity = None
    store = SessionStore(identity_provider)

    await store.start()

    assert store.status == SessionStatus.READY_WITHOUT_IDENTITY
    assert store.identity is None


@pytest.mark.asyncio
async def test_subscribes_exactly_once(identity_provider):
    store = SessionStore(identity_provider)

    await store.start()
    await store.start()

    assert len(identity_provider._listeners) == 1


@pytest.mark.asyncio
async def test_listeners_receive_previous_and_current(identity_provider, alice, bob):
    store = SessionStore(identity_provider)
    changes = []

    async def listener(previous, current):
        changes.append((previous, current))

    store.add_listener(listener)
    await store.start()
    await identity_provider.switch(bob)
    await identity_provider.switch(None)

    assert changes == [(None, alice), (alice, bob), (bob, None)]
    assert store.status == SessionStatus.READY_WITHOUT_IDENTITY


@pytest.mark.asyncio
async def test_configuration_error_is_terminal(alice):
    provider = MagicMock()
    provider.on_identity_change.side_effect = ConfigurationError("Cognito app client id is not configured.")
    store = SessionStore(provider)

    await store.start()

    assert store.status == SessionStatus.ERROR
    assert store.error.to_dict() == {
        "category": "configuration",
        "message": "Cognito app client id is not configured.",
    }


@pytest.mark.asyncio
async def test_identity_changes_ignored_after_failure(bob):
    listeners = []
    provider = MagicMock()
    provider.on_identity_change.side_effect = lambda listener: listeners.append(listener) or (lambda: None)
    type(provider).current_identity = PropertyMock(side_effect=ConfigurationError("broken"))
    store = SessionStore(provider)

    await store.start()
    await listeners[0](bob)

    assert store.status == SessionStatus.ERROR
    assert store.identity is None


@pytest.mark.asyncio
async def test_stop_unsubscribes(identity_provider):
    store = SessionStore(identity_provider)
    await store.start()

    store.stop()

    assert identity_provider._listeners == []
