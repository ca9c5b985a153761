"""Run command - drives the keyboard until interrupted."""

import logging
from typing import Optional

import click

from keylight.cli.common import exit_with_error, load_settings_service
from keylight.engine import LightingEngine
from keylight.keyboard import available_drivers, load_driver

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    '--driver',
    '-d',
    type=str,
    default=None,
    help='Keyboard driver to use (default: the "driver" setting)'
)
@click.option(
    '--duration',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Stop after this many seconds (default: run until Ctrl+C)'
)
@click.option(
    '--restore/--no-restore',
    default=True,
    help='Give the keyboard its own lighting back on exit (default: enabled)'
)
@click.pass_context
def run(ctx, driver: Optional[str], duration: Optional[float], restore: bool):
    """
    Drive the keyboard lighting.

    Enables the configured signals, shows the active profile and keeps the
    keyboard in sync, reconnecting whenever it is unplugged and plugged
    back in.
    """
    base_dir = ctx.obj["config_dir"]
    log_path = ctx.obj.get("log_path")

    engine: Optional[LightingEngine] = None
    try:
        settings_service = load_settings_service(base_dir)
        driver_name = driver or settings_service.get("driver")
        keyboard = load_driver(driver_name)

        engine = LightingEngine(settings_service, keyboard, base_dir)
        engine.start()

        click.echo(f"keylight running with driver '{driver_name}' (drivers: {', '.join(available_drivers())})")
        if duration is None:
            click.echo("Press Ctrl+C to stop")
        engine.wait(duration)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        click.echo("\nShutting down...", err=True)
    except click.Abort:
        raise
    except Exception as e:
        if engine is not None:
            engine.stop(restore=restore)
            engine = None
        exit_with_error(e, log_path)
    finally:
        if engine is not None:
            engine.stop(restore=restore)
