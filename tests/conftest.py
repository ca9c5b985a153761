"""Pytest fixtures for tests."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from keylight.events import MESSAGE_TYPES, EventChannel
from keylight.keyboard import SimulatedKeyboard, StateReconciler
from helpers import FakeTimer, key_state


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def events():
    """A fresh event channel."""
    return EventChannel()


@pytest.fixture
def published(events):
    """Every message published on ``events``, in order."""
    messages = []
    for message_type in MESSAGE_TYPES:
        events.subscribe(message_type, messages.append)
    return messages


@pytest.fixture
def fake_timers():
    """Collect FakeTimer instances created during the test."""
    FakeTimer.instances = []
    yield FakeTimer.instances
    FakeTimer.instances = []


@pytest.fixture
def keyboard():
    """A present, unclaimed simulated keyboard."""
    return SimulatedKeyboard()


@pytest.fixture
def reconciler(keyboard, events):
    """Reconciler with no connect delay (attach connects synchronously)."""
    return StateReconciler(keyboard, events, sync_interval=0.05, connect_delay=0)


@pytest.fixture
def connected_reconciler(reconciler):
    """Reconciler already connected to the simulated keyboard."""
    reconciler.on_attach()
    assert reconciler.is_connected
    return reconciler


@pytest.fixture
def red():
    return key_state("FF0000")


@pytest.fixture
def green():
    return key_state("00FF00")


@pytest.fixture
def blue():
    return key_state("0000FF")
