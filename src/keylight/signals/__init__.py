"""Signal acquisition: the signal bus and its timers."""

from keylight.signals.bus import ALL_SIGNALS, SignalBus, select_signals
from keylight.signals.timer import RepeatingTimer

__all__ = ["ALL_SIGNALS", "RepeatingTimer", "SignalBus", "select_signals"]
