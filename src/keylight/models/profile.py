"""Profile model: the persisted baseline lighting program."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .channel import StateChangeRequest


class Profile(BaseModel):
    """
    Per-layout default key states shown when no signal claims a key.

    Profiles are immutable. Editing a profile means saving a new one.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    description: str | None = None
    default_animations: dict[str, list[StateChangeRequest]] = Field(default_factory=dict)
    enabled_signals: list[str] | str = Field(
        default="all", description="Signal names, or a tag such as 'all'"
    )

    def defaults_for_layout(self, layout: str) -> list[StateChangeRequest]:
        """Default requests for ``layout`` (empty if the layout is unknown)."""
        return list(self.default_animations.get(layout, []))

    @property
    def key_count(self) -> int:
        """Number of key entries across all layouts."""
        return sum(len(requests) for requests in self.default_animations.values())


# Fallback when the active profile is missing or unreadable: nothing is
# listed, so every key resolves to KeyState.off()
NULL_PROFILE = Profile(id="null", name="Off", description="All keys off", enabled_signals=[])
