"""Memory utilization signal backed by psutil."""

import logging
import threading

import psutil

from keylight.models import NO_SIGNAL, PluginSignal, PollingCallbackSource, SignalCallback, SignalProviderPlugin

logger = logging.getLogger(__name__)


def poll_memory(callback: SignalCallback) -> None:
    """Read memory utilization on a worker thread and hand it to ``callback``."""

    def read() -> None:
        try:
            value = psutil.virtual_memory().percent
        except (psutil.Error, OSError) as e:
            logger.warning(f"Could not read memory utilization: {e}")
            value = NO_SIGNAL
        callback(value)

    threading.Thread(target=read, name="keylight-memory-poll", daemon=True).start()


def create_plugin(interval: float = 1.0) -> SignalProviderPlugin:
    """Build the ``memory`` provider."""
    return SignalProviderPlugin(
        name="memory",
        signals=(
            PluginSignal(
                name="memory_utilization",
                description="Share of physical memory in use (percent).",
                tags=("memory", "system"),
                source=PollingCallbackSource(interval=interval, poll=poll_memory),
            ),
        ),
    )
