"""Helpers shared by CLI commands."""

import logging
import sys
from pathlib import Path

import click

from keylight.exceptions import format_error_for_display
from keylight.model_manager import ModelManagerService, PydanticPersistence
from keylight.models import Settings
from keylight.paths import settings_path

logger = logging.getLogger(__name__)


def load_settings_service(base_dir: Path) -> ModelManagerService[Settings]:
    """Settings service for ``base_dir``, creating settings.json with defaults if missing."""
    path = settings_path(base_dir)
    settings = PydanticPersistence.ensure_valid_or_create(path, Settings)
    return ModelManagerService[Settings](Settings, settings, default_path=path)


def exit_with_error(error: Exception, log_path: Path | None = None) -> None:
    """Print ``error`` without a traceback and exit with status 1."""
    logger.error(f"Command failed: {error}", exc_info=True)

    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    if log_path is not None:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
    click.echo("For logging options, run: keylight --help", err=True)

    sys.exit(1)
