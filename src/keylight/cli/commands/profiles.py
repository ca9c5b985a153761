"""Profile command implementations."""

from pathlib import Path
from typing import Optional

import click

from keylight.cli.common import exit_with_error, load_settings_service
from keylight.engine import LightingEngine
from keylight.keyboard import SimulatedKeyboard
from keylight.layouts import keys_for_layout
from keylight.mapping import CompiledAnimation
from keylight.models import StateChangeRequest, parse_hex_color, solid_color


def _offline_engine(base_dir: Path) -> LightingEngine:
    """
    Engine with no signals and no keyboard, its WantedState seeded from the
    active profile.
    """
    settings_service = load_settings_service(base_dir)
    engine = LightingEngine(settings_service, SimulatedKeyboard(present=False), base_dir, plugins=[])
    engine.store.load()
    engine.profiles.attach()
    engine.reconciler.tick()
    return engine


def _validate_color(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        parse_hex_color(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    return value


@click.group(name="profiles")
def profiles_group():
    """Lighting profile commands."""
    pass


@profiles_group.command(name="list")
@click.pass_context
def list_profiles(ctx):
    """List saved profiles."""
    engine = _offline_engine(ctx.obj["config_dir"])
    active_id = engine.profiles.profile_id

    for profile in engine.list_profiles():
        marker = "*" if profile.id == active_id else " "
        click.echo(f"[{marker}] {profile.id}  {profile.name}")
        if profile.description:
            click.echo(f"      {profile.description}")

    click.echo("\n[*] = active profile")


@profiles_group.command(name="show")
@click.argument("profile_id")
@click.pass_context
def show_profile(ctx, profile_id: str):
    """Print a profile document."""
    engine = _offline_engine(ctx.obj["config_dir"])
    try:
        profile = engine.profiles.get_profile(profile_id)
    except Exception as e:
        exit_with_error(e, ctx.obj.get("log_path"))
        return
    click.echo(profile.model_dump_json(indent=2, by_alias=True, exclude_none=True))


@profiles_group.command(name="create")
@click.argument("name")
@click.option('--description', type=str, default=None, help='Free-form description')
@click.option(
    '--color',
    type=str,
    default=None,
    callback=_validate_color,
    help='Fill every key with this RRGGBB colour instead of capturing the active profile'
)
@click.option('--activate', is_flag=True, help='Make the new profile the active one')
@click.pass_context
def create_profile(ctx, name: str, description: Optional[str], color: Optional[str], activate: bool):
    """
    Save the current lighting as a new profile.

    \b
    Examples:
      keylight profiles create "Work"
      keylight profiles create "All red" --color FF0000 --activate
    """
    base_dir = ctx.obj["config_dir"]
    try:
        engine = _offline_engine(base_dir)

        if color is not None:
            state = CompiledAnimation(solid_color(color)).resolve(0.0)
            keys = keys_for_layout(engine.profiles.layout)
            engine.reconciler.process_key_changes(
                [StateChangeRequest(key=key, data=state) for key in keys], sync=False
            )

        profile = engine.create_profile(name, description)

        if activate:
            settings_service = load_settings_service(base_dir)
            settings_service.set("profile", profile.id)
            settings_service.save()
    except Exception as e:
        exit_with_error(e, ctx.obj.get("log_path"))
        return

    click.echo(f"Created profile '{profile.name}' ({profile.id})")
    if activate:
        click.echo("Profile activated")


@profiles_group.command(name="delete")
@click.argument("profile_id")
@click.confirmation_option(prompt="Delete this profile?")
@click.pass_context
def delete_profile(ctx, profile_id: str):
    """Delete a saved profile."""
    try:
        engine = _offline_engine(ctx.obj["config_dir"])
        profile = engine.delete_profile(profile_id)
    except Exception as e:
        exit_with_error(e, ctx.obj.get("log_path"))
        return

    click.echo(f"Deleted profile '{profile.name}' ({profile.id})")
