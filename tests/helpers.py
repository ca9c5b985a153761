"""Shared test helpers."""

from keylight.mapping import CompiledAnimation
from keylight.models import KeyState, StateChangeRequest, solid_color


class FakeTimer:
    """Stand-in for RepeatingTimer that only fires when told to."""

    instances: list["FakeTimer"] = []

    def __init__(self, interval, callback, name="timer"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.started = False
        self.stopped = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def stop(self, timeout=2.0):
        self.stopped = True

    def fire(self):
        assert self.started and not self.stopped, f"timer {self.name} is not running"
        self.callback()


def key_state(color: str) -> KeyState:
    """Resolved solid colour key state."""
    return CompiledAnimation(solid_color(color)).resolve(0.0)


def request(key: str, color: str) -> StateChangeRequest:
    return StateChangeRequest(key=key, data=key_state(color))
