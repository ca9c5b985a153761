"""Main CLI entry point."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from keylight import __version__
from keylight.paths import CONFIG_DIR_ENV, config_dir, logs_dir

from .commands import config, profiles_group, run, signals_group

logger = logging.getLogger(__name__)


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str, base_dir: Path) -> Path:
    """
    Configure logging for the application.

    Args:
        verbose: Verbosity count (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, enable debug mode with file logging in the current directory
        log_file: Custom log file path (optional)
        log_level: Log level for file logging (DEBUG/INFO/WARNING/ERROR)
        base_dir: Config directory holding the default logs/ folder

    Returns:
        Path of the log file
    """
    if debug:
        level = logging.DEBUG
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Explicit log level wins when logging to a custom file
    if log_file:
        level = getattr(logging, log_level.upper())

    if debug and not log_file:
        log_path = Path.cwd() / "keylight-debug.log"
    elif log_file:
        log_path = log_file
    else:
        log_dir = logs_dir(base_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "keylight.log"

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Keeps the last 5 files, 10MB each
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, file={log_path}")
    return log_path


@click.group()
@click.pass_context
@click.version_option(version=__version__, prog_name="keylight")
@click.option(
    '--config-dir',
    'config_path',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    envvar=CONFIG_DIR_ENV,
    help='Configuration directory (default: ~/.config/keylight)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./keylight-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
def cli(
    ctx,
    config_path: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
    log_level: str
):
    """
    keylight - per-key keyboard lighting driven by live system signals.

    Selected keys show CPU load, memory use or the time of day while every
    other key shows the active lighting profile.

    \b
    Examples:
      # Run with the settings in ~/.config/keylight
      keylight run

      # Dry run against the in-memory keyboard for ten seconds
      keylight run --driver simulated --duration 10

      # Save what the keyboard shows as a new profile
      keylight profiles create "Work"

      # Switch profile
      keylight config set profile <id>

      # List signals
      keylight signals list
    """
    base_dir = (config_path or config_dir()).expanduser()
    log_path = setup_logging(verbose, debug, log_file, log_level, base_dir)

    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = base_dir
    ctx.obj["log_path"] = log_path


cli.add_command(run)
cli.add_command(signals_group)
cli.add_command(profiles_group)
cli.add_command(config)

if __name__ == "__main__":
    cli()
