"""Signal provider plugins.

Built-in providers are always available. Third-party packages add their own
by advertising a ``SignalProviderPlugin`` (or a zero-argument callable that
returns one) under the ``keylight.signals`` entry-point group:

```toml
[project.entry-points."keylight.signals"]
weather = "keylight_weather:plugin"
```

Plugins are imported, never executed from source text.
"""

import logging
from importlib.metadata import entry_points

from keylight.exceptions import collect_errors
from keylight.models import SignalProviderPlugin

from . import clock, cpu, memory

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "keylight.signals"


def builtin_plugins() -> list[SignalProviderPlugin]:
    """Providers shipped with keylight."""
    return [cpu.create_plugin(), memory.create_plugin(), clock.create_plugin()]


def discover_plugins() -> list[SignalProviderPlugin]:
    """
    Built-in providers followed by every installed entry-point provider.

    Entry points that fail to load or do not yield a SignalProviderPlugin
    are logged and skipped.
    """
    plugins = builtin_plugins()

    collector = collect_errors("load signal plugins")
    for entry_point in entry_points(group=ENTRY_POINT_GROUP):
        with collector.try_operation(f"load {entry_point.name}"):
            loaded = entry_point.load()
            plugin = loaded() if callable(loaded) else loaded
            if not isinstance(plugin, SignalProviderPlugin):
                raise TypeError(
                    f"Entry point {entry_point.name} returned {type(plugin).__name__}, "
                    "expected SignalProviderPlugin"
                )
            plugins.append(plugin)
            logger.info(f"Loaded signal plugin '{plugin.name}' from {entry_point.value}")

    if collector.has_errors:
        logger.warning(collector.get_summary())

    return plugins


__all__ = ["ENTRY_POINT_GROUP", "builtin_plugins", "discover_plugins"]
