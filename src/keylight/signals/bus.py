"""Signal bus: signal source lifecycle and de-duplicated publishing."""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from keylight.events import EventChannel, SignalDisabled, SignalValueChanged
from keylight.exceptions import handle_errors
from keylight.models import (
    HookHandle,
    HookSource,
    PluginSignal,
    PollingCallbackSource,
    PollingSource,
    SignalProviderPlugin,
    SignalValue,
    normalize_signal,
)
from keylight.signals.timer import RepeatingTimer

logger = logging.getLogger(__name__)

ALL_SIGNALS = "all"

TimerFactory = Callable[[float, Callable[[], None], str], RepeatingTimer]


def select_signals(catalogue: Iterable[PluginSignal], wanted: Iterable[str] | str) -> set[str]:
    """
    Names selected by ``wanted``.

    A string is a tag: ``"all"`` selects every signal, any other tag selects
    the signals carrying it. Otherwise ``wanted`` lists names directly.
    """
    if isinstance(wanted, str):
        if wanted == ALL_SIGNALS:
            return {signal.name for signal in catalogue}
        return {signal.name for signal in catalogue if wanted in signal.tags}
    return set(wanted)


@dataclass
class _ActiveSignal:
    """Running acquisition for one enabled signal."""

    signal: PluginSignal
    timer: RepeatingTimer | None = None
    hook: HookHandle | None = None

    def stop(self) -> None:
        if self.timer is not None:
            self.timer.stop()
        if self.hook is not None:
            self.hook.unhook()


class SignalBus:
    """
    Owns the signal catalogue and the sources of enabled signals.

    Every reading goes through ``publish``, which forwards it to the event
    channel as ``SignalValueChanged`` only when it differs from the previous
    reading of the same signal.

    Threading:
        Catalogue, enabled set and last values are guarded by one lock.
        Sources are stopped outside the lock so a poll that is publishing
        can finish while it is being disabled.
    """

    def __init__(self, events: EventChannel, timer_factory: TimerFactory = RepeatingTimer):
        self._events = events
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._catalogue: list[PluginSignal] = []
        self._enabled: dict[str, _ActiveSignal] = {}
        self._last_values: dict[str, SignalValue] = {}

    # =================================================================
    # Catalogue
    # =================================================================

    def register_plugin(self, plugin: SignalProviderPlugin) -> None:
        """Add the plugin's signals to the catalogue. Duplicate names are not detected."""
        with self._lock:
            self._catalogue.extend(plugin.signals)
        logger.info(f"Registered signal plugin '{plugin.name}' ({len(plugin.signals)} signals)")

    def get_catalogue(self) -> list[PluginSignal]:
        """All catalogued signals in registration order."""
        with self._lock:
            return list(self._catalogue)

    def _find(self, name: str) -> PluginSignal | None:
        for signal in self._catalogue:
            if signal.name == name:
                return signal
        return None

    # =================================================================
    # Enable / disable
    # =================================================================

    @property
    def enabled_signals(self) -> set[str]:
        with self._lock:
            return set(self._enabled)

    def last_value(self, name: str) -> SignalValue | None:
        """Last published value of ``name``, or None if nothing was published yet."""
        with self._lock:
            return self._last_values.get(name)

    def set_enabled_signals(self, wanted: Iterable[str] | str) -> None:
        """
        Enable exactly the ``wanted`` signals.

        Args:
            wanted: Signal names, or a tag. ``"all"`` selects every catalogued
                signal; any other string selects the signals carrying that tag.

        Removed signals are fully stopped before this returns, so no further
        value is published for them.

        Raises:
            TypeError: If a signal has an unknown source type
        """
        with self._lock:
            wanted_names = select_signals(self._catalogue, wanted)
            removed = [self._enabled.pop(name) for name in list(self._enabled) if name not in wanted_names]
            added_names = sorted(wanted_names - set(self._enabled))
            for active in removed:
                self._last_values.pop(active.signal.name, None)

        for active in removed:
            active.stop()
            logger.info(f"Disabled signal: {active.signal.name}")
            self._events.publish(SignalDisabled(active.signal.name))

        for name in added_names:
            self._enable(name)

    def _enable(self, name: str) -> None:
        with self._lock:
            signal = self._find(name)
            if signal is None:
                logger.warning(f"Cannot enable unknown signal: {name}")
                return
            if name in self._enabled:
                return
            active = _ActiveSignal(signal)
            self._enabled[name] = active

        source = signal.source
        callback = self._make_callback(name)

        try:
            if isinstance(source, PollingSource):
                active.timer = self._timer_factory(
                    source.interval, lambda: self.publish(name, source.poll()), name
                )
                active.timer.start()
            elif isinstance(source, PollingCallbackSource):
                active.timer = self._timer_factory(
                    source.interval, lambda: source.poll(callback), name
                )
                active.timer.start()
            elif isinstance(source, HookSource):
                active.hook = source.attach(callback)
            else:
                raise TypeError(f"Unknown signal source type for '{name}': {type(source).__name__}")
        except BaseException:
            with self._lock:
                self._enabled.pop(name, None)
            raise

        logger.info(f"Enabled signal: {name} ({type(source).__name__})")

    def _make_callback(self, name: str) -> Callable[[object], None]:
        @handle_errors(operation_name=f"publish signal {name}", re_raise=False)
        def callback(value: object) -> None:
            self.publish(name, value)

        return callback

    def stop(self) -> None:
        """Disable every signal."""
        self.set_enabled_signals(set())

    # =================================================================
    # Publishing
    # =================================================================

    def publish(self, name: str, value: object) -> None:
        """
        Record a reading and forward it if it changed.

        Readings for signals that are not enabled are dropped.

        Raises:
            TypeError: If the reading is not a number or a no-signal marker
        """
        normalized = normalize_signal(value)

        with self._lock:
            if name not in self._enabled:
                logger.debug(f"Dropping reading for disabled signal {name}: {normalized!r}")
                return
            if name in self._last_values and not (self._last_values[name] != normalized):
                return
            self._last_values[name] = normalized

        logger.debug(f"Signal {name} changed: {normalized!r}")
        self._events.publish(SignalValueChanged(name, normalized))
