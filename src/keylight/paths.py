"""Locations of keylight's files."""

import os
from pathlib import Path

CONFIG_DIR_ENV = "KEYLIGHT_CONFIG_DIR"
SETTINGS_FILENAME = "settings.json"


def config_dir() -> Path:
    """``$KEYLIGHT_CONFIG_DIR`` if set, else ``~/.config/keylight``."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "keylight"


def settings_path(base: Path | None = None) -> Path:
    return (base or config_dir()) / SETTINGS_FILENAME


def profiles_dir(base: Path | None = None) -> Path:
    return (base or config_dir()) / "profiles"


def logs_dir(base: Path | None = None) -> Path:
    return (base or config_dir()) / "logs"
