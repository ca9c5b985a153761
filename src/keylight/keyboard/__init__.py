"""Keyboard side: driver protocol, reconciliation and hot-plug."""

from keylight.keyboard.hotplug import HotplugMonitor
from keylight.keyboard.protocols import KeyboardDriver
from keylight.keyboard.reconciler import ConnectionState, StateReconciler, TickListener
from keylight.keyboard.registry import ENTRY_POINT_GROUP, available_drivers, load_driver
from keylight.keyboard.simulated import SimulatedKeyboard

__all__ = [
    "ENTRY_POINT_GROUP",
    "ConnectionState",
    "HotplugMonitor",
    "KeyboardDriver",
    "SimulatedKeyboard",
    "StateReconciler",
    "TickListener",
    "available_drivers",
    "load_driver",
]
