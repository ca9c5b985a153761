"""Config command implementations."""

import json
from typing import Any, Optional

import click
from pydantic import ValidationError

from keylight.cli.common import exit_with_error, load_settings_service
from keylight.exceptions import ConfigValidationError
from keylight.models import Settings


def resolve_field(name: str) -> str:
    """Map a settings key given as camelCase alias or snake_case name to the field name."""
    for field_name, info in Settings.model_fields.items():
        if name in (field_name, info.alias):
            return field_name
    valid = ", ".join(info.alias or field_name for field_name, info in Settings.model_fields.items())
    raise click.BadParameter(f"Unknown setting '{name}'. Valid settings: {valid}")


def parse_value(raw: str) -> Any:
    """Interpret ``raw`` as JSON when possible (numbers, lists), else as a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group(name="config")
def config():
    """View and change keylight settings."""
    pass


@config.command(name="show")
@click.option('--field', '-f', 'field', type=str, default=None, help='Show only this setting')
@click.pass_context
def show_config(ctx, field: Optional[str]):
    """Display the current settings."""
    service = load_settings_service(ctx.obj["config_dir"])
    values = service.get_model().model_dump(by_alias=True)

    if field is not None:
        field_name = resolve_field(field)
        alias = Settings.model_fields[field_name].alias or field_name
        click.echo(json.dumps(values[alias]))
        return

    click.echo(f"Settings ({service.default_path}):\n")
    for key, value in values.items():
        click.echo(f"  {key}: {json.dumps(value)}")


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx, key: str, value: str):
    """
    Change one setting and save it.

    \b
    Examples:
      keylight config set syncInterval 0.5
      keylight config set signals '["cpu_utilization_max"]'
      keylight config set signals cpu
    """
    field_name = resolve_field(key)
    service = load_settings_service(ctx.obj["config_dir"])
    parsed = value if Settings.model_fields[field_name].annotation is str else parse_value(value)

    try:
        try:
            service.set(field_name, parsed)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            raise ConfigValidationError(
                field=key,
                value=parsed,
                error_msg=first.get("msg", str(e)),
                file_path=str(service.default_path),
            ) from e
        service.save()
    except Exception as e:
        exit_with_error(e, ctx.obj.get("log_path"))
        return

    click.echo(f"{key} = {json.dumps(service.get(field_name))}")


@config.command(name="reset")
@click.confirmation_option(prompt="Reset all settings to their defaults?")
@click.pass_context
def reset_config(ctx):
    """Reset every setting to its default."""
    service = load_settings_service(ctx.obj["config_dir"])
    try:
        service.reset()
        service.save()
    except Exception as e:
        exit_with_error(e, ctx.obj.get("log_path"))
        return
    click.echo("Settings reset to defaults")
