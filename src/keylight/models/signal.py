"""Signal values, sources and provider plugins."""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class NoSignal:
    """Sentinel for "value temporarily unavailable". Never treated as zero."""

    _instance: "NoSignal | None" = None

    def __new__(cls) -> "NoSignal":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_SIGNAL"

    def __reduce__(self):
        return (NoSignal, ())


NO_SIGNAL = NoSignal()

SignalValue = float | NoSignal
SignalCallback = Callable[[object], None]


def normalize_signal(value: object) -> SignalValue:
    """
    Convert a raw plugin reading into a signal value.

    ``None``, the string ``"nosignal"`` and non-finite numbers become
    ``NO_SIGNAL``. Everything else must be a real number.

    Raises:
        TypeError: If the reading is neither a number nor a no-signal marker
    """
    if value is NO_SIGNAL or value is None or value == "nosignal":
        return NO_SIGNAL
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Signal value must be a number, got {type(value).__name__}: {value!r}")
    if not math.isfinite(value):
        return NO_SIGNAL
    return float(value)


class HookHandle(Protocol):
    """Returned by ``HookSource.attach``; detaches the callback."""

    def unhook(self) -> None: ...


@dataclass(frozen=True)
class PollingSource:
    """Polled every ``interval`` seconds; ``poll()`` returns the reading."""

    interval: float
    poll: Callable[[], object]


@dataclass(frozen=True)
class PollingCallbackSource:
    """Polled every ``interval`` seconds; ``poll`` delivers the reading via a callback, possibly later."""

    interval: float
    poll: Callable[[SignalCallback], None]


@dataclass(frozen=True)
class HookSource:
    """Push-driven source; ``attach`` registers a callback fired at arbitrary times."""

    attach: Callable[[SignalCallback], HookHandle]


SignalSource = PollingSource | PollingCallbackSource | HookSource


@dataclass(frozen=True)
class PluginSignal:
    """A named signal offered by a provider plugin."""

    name: str
    source: SignalSource
    description: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SignalProviderPlugin:
    """A group of signals registered together."""

    name: str
    signals: tuple[PluginSignal, ...] = field(default_factory=tuple)
