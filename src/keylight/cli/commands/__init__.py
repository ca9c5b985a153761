"""CLI commands for keylight."""

from .config import config
from .profiles import profiles_group
from .run import run
from .signals import signals_group

__all__ = ["config", "profiles_group", "run", "signals_group"]
