"""Signal command implementations."""

import click

from keylight.cli.common import load_settings_service
from keylight.models import HookSource, PollingCallbackSource, PollingSource, SignalSource
from keylight.plugins import discover_plugins
from keylight.signals import select_signals


def _describe_source(source: SignalSource) -> str:
    if isinstance(source, PollingSource):
        return f"polling every {source.interval:g}s"
    if isinstance(source, PollingCallbackSource):
        return f"polling (callback) every {source.interval:g}s"
    if isinstance(source, HookSource):
        return "hook"
    raise TypeError(f"Unknown signal source type: {type(source).__name__}")


@click.group(name="signals")
def signals_group():
    """Signal commands."""
    pass


@signals_group.command(name="list")
@click.pass_context
def list_signals(ctx):
    """List every available signal and whether it is enabled."""
    settings = load_settings_service(ctx.obj["config_dir"]).get_model()
    plugins = discover_plugins()
    catalogue = [signal for plugin in plugins for signal in plugin.signals]
    enabled = select_signals(catalogue, settings.signals)

    if not catalogue:
        click.echo("No signals available.")
        return

    for plugin in plugins:
        click.echo(f"{plugin.name}:")
        for signal in plugin.signals:
            marker = "*" if signal.name in enabled else " "
            click.echo(f"  [{marker}] {signal.name}")
            if signal.description:
                click.echo(f"      {signal.description}")
            if signal.tags:
                click.echo(f"      Tags: {', '.join(signal.tags)}")
            click.echo(f"      Source: {_describe_source(signal.source)}")
        click.echo()

    click.echo("[*] = enabled by the 'signals' setting")
