"""Time of day signal."""

from collections.abc import Callable
from datetime import datetime

from keylight.models import PluginSignal, PollingSource, SignalProviderPlugin


def seconds_since_midnight(now: Callable[[], datetime] = datetime.now) -> float:
    """Seconds elapsed since local midnight."""
    current = now()
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    return (current - midnight).total_seconds()


def create_plugin(interval: float = 1.0) -> SignalProviderPlugin:
    """Build the ``clock`` provider."""
    return SignalProviderPlugin(
        name="clock",
        signals=(
            PluginSignal(
                name="time_ofday",
                description="The number of seconds since midnight.",
                tags=("time",),
                source=PollingSource(interval=interval, poll=seconds_since_midnight),
            ),
        ),
    )
