"""Application settings model."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Settings(BaseModel):
    """User settings persisted as ``settings.json`` in the config directory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    profile: str = Field(default="default", description="Identifier of the active profile")
    layout: str = Field(default="en-US", description="Keyboard layout name used by mappings and profiles")
    signals: list[str] | str = Field(
        default="all", description="Enabled signal names, or a tag ('all' enables every signal)"
    )
    sync_interval: float = Field(
        default=1.0, gt=0, description="Seconds between reconciliation ticks"
    )
    connect_delay: float = Field(
        default=2.0, ge=0, description="Seconds to wait after the keyboard appears before claiming it"
    )
    hotplug_poll_interval: float = Field(
        default=2.0, gt=0, description="How often to check whether the keyboard is present (seconds)"
    )
    driver: str = Field(default="simulated", description="Name of the keyboard driver to use")
