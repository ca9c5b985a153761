"""Keyboard driver lookup.

The built-in ``simulated`` driver is always available. Hardware drivers are
installed as separate packages advertising a zero-argument factory under the
``keylight.drivers`` entry-point group.
"""

import logging
from collections.abc import Callable
from importlib.metadata import entry_points

from keylight.exceptions import ConfigValidationError, ErrorContext
from keylight.keyboard.protocols import KeyboardDriver
from keylight.keyboard.simulated import SimulatedKeyboard

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "keylight.drivers"

BUILTIN_DRIVERS: dict[str, Callable[[], KeyboardDriver]] = {
    "simulated": SimulatedKeyboard,
}


def available_drivers() -> list[str]:
    """Names of every driver that can be loaded."""
    names = list(BUILTIN_DRIVERS)
    names.extend(ep.name for ep in entry_points(group=ENTRY_POINT_GROUP) if ep.name not in names)
    return names


def load_driver(name: str) -> KeyboardDriver:
    """
    Instantiate the driver called ``name``.

    Raises:
        ConfigValidationError: If no such driver is installed
    """
    factory = BUILTIN_DRIVERS.get(name)
    if factory is None:
        matches = [ep for ep in entry_points(group=ENTRY_POINT_GROUP) if ep.name == name]
        if not matches:
            raise ConfigValidationError(
                field="driver",
                value=name,
                error_msg=f"no keyboard driver named '{name}' (available: {', '.join(available_drivers())})",
            )
        with ErrorContext(f"load keyboard driver {name}"):
            factory = matches[0].load()

    driver = factory()
    if not isinstance(driver, KeyboardDriver):
        raise TypeError(f"Driver factory '{name}' returned {type(driver).__name__}, not a KeyboardDriver")

    logger.info(f"Using keyboard driver: {name}")
    return driver
