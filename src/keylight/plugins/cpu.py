"""CPU utilization signals backed by psutil."""

import logging
import math
import threading

import psutil

from keylight.models import NO_SIGNAL, PluginSignal, PollingSource, SignalProviderPlugin, SignalValue

logger = logging.getLogger(__name__)


class CpuSampler:
    """
    Utilization since the previous sample, in whole percent.

    psutil measures non-blocking CPU usage between two calls, so the first
    sample has nothing to compare against and reports NO_SIGNAL.
    """

    def __init__(self, per_cpu_max: bool = False):
        self._per_cpu_max = per_cpu_max
        self._primed = False
        self._lock = threading.Lock()

    def sample(self) -> SignalValue:
        with self._lock:
            if self._per_cpu_max:
                usage = max(psutil.cpu_percent(interval=None, percpu=True), default=0.0)
            else:
                usage = psutil.cpu_percent(interval=None)

            if not self._primed:
                self._primed = True
                logger.debug("First CPU sample taken, no utilization yet")
                return NO_SIGNAL

            return float(math.floor(usage))


def create_plugin(interval: float = 1.0) -> SignalProviderPlugin:
    """Build the ``cpu`` provider."""
    return SignalProviderPlugin(
        name="cpu",
        signals=(
            PluginSignal(
                name="cpu_utilization",
                description="Average utilization across all cores (percent).",
                tags=("cpu", "system"),
                source=PollingSource(interval=interval, poll=CpuSampler().sample),
            ),
            PluginSignal(
                name="cpu_utilization_max",
                description="Utilization of the busiest core (percent).",
                tags=("cpu", "system"),
                source=PollingSource(interval=interval, poll=CpuSampler(per_cpu_max=True).sample),
            ),
        ),
    )
