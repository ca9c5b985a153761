"""Signal overlay: the latest mapped key states of every active signal."""

import logging
import threading

from keylight.events import EventChannel, ProfileActivated, SignalDisabled, SignalValueChanged
from keylight.keyboard.reconciler import StateReconciler
from keylight.mapping.mapper import AnimationMapper, DefaultProvider
from keylight.models import SignalValue, StateChangeRequest

logger = logging.getLogger(__name__)

OVERLAY_PRIORITY = 1


class SignalOverlay:
    """
    Keeps the requests produced by each signal's latest value.

    The overlay is replayed on every reconciler tick after the profile
    baseline, so signal-driven keys always win within a tick window.
    When a signal is disabled its keys are handed back to the profile.
    """

    def __init__(self, mapper: AnimationMapper, defaults: DefaultProvider, reconciler: StateReconciler):
        self._mapper = mapper
        self._defaults = defaults
        self._reconciler = reconciler
        self._lock = threading.Lock()
        self._values: dict[str, SignalValue] = {}
        self._changes: dict[str, list[StateChangeRequest]] = {}

    def attach(self, events: EventChannel) -> None:
        """Subscribe to signal messages and join the tick at overlay priority."""
        events.subscribe(SignalValueChanged, self._on_value_changed)
        events.subscribe(SignalDisabled, self._on_disabled)
        events.subscribe(ProfileActivated, self._on_profile_activated)
        self._reconciler.add_tick_listener(OVERLAY_PRIORITY, self.tick)

    def detach(self, events: EventChannel) -> None:
        events.unsubscribe(SignalValueChanged, self._on_value_changed)
        events.unsubscribe(SignalDisabled, self._on_disabled)
        events.unsubscribe(ProfileActivated, self._on_profile_activated)
        self._reconciler.remove_tick_listener(self.tick)

    def _on_value_changed(self, message: SignalValueChanged) -> None:
        changes = self._mapper.resolve(message.name, message.value)
        with self._lock:
            self._values[message.name] = message.value
            self._changes[message.name] = changes
        logger.debug(f"Overlay for {message.name}={message.value!r}: {len(changes)} keys")

    def _on_disabled(self, message: SignalDisabled) -> None:
        with self._lock:
            self._values.pop(message.name, None)
            had_changes = self._changes.pop(message.name, None) is not None

        if had_changes:
            self._reconciler.process_key_changes(self.released_keys(message.name), sync=False)
            logger.info(f"Overlay released keys of {message.name}")

    def _on_profile_activated(self, message: ProfileActivated) -> None:
        # multi mode fills idle groups from the profile
        self.refresh()

    def released_keys(self, signal: str) -> list[StateChangeRequest]:
        """Profile defaults for the keys ``signal`` was lighting."""
        return self._defaults.default_for(self._mapper.keys_for(signal))

    @property
    def active_signals(self) -> list[str]:
        with self._lock:
            return list(self._changes)

    def refresh(self) -> None:
        """Re-resolve every stored value, e.g. after the layout or profile changed."""
        with self._lock:
            values = dict(self._values)

        changes = {name: self._mapper.resolve(name, value) for name, value in values.items()}

        with self._lock:
            for name, requests in changes.items():
                if name in self._values:
                    self._changes[name] = requests

    def tick(self) -> list[StateChangeRequest]:
        """Requests of every active signal."""
        with self._lock:
            return [request for requests in self._changes.values() for request in requests]
