"""Resolved per-key lighting state sent to the keyboard."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Direction(str, Enum):
    """Ramp direction of a channel animation."""

    INC = "inc"  # Ramp up once and hold
    INC_DEC = "incDec"  # Ramp up, then down, repeat
    DEC = "dec"  # Ramp down once and hold
    DEC_INC = "decInc"  # Ramp down, then up, repeat


class Channel(str, Enum):
    """The three colour channels of a key."""

    RED = "red"
    GREEN = "green"
    BLUE = "blue"


class ChannelState(BaseModel):
    """
    Concrete parameters for one colour channel of one key.

    Every field is optional. ``None`` means "leave the hardware default"
    and the driver must not send a value for it. Instances are frozen and
    compared field by field.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    up_hold_level: int | None = None
    down_hold_level: int | None = None
    up_maximum_level: int | None = None
    down_minimum_level: int | None = None
    up_hold_delay: int | None = None
    down_hold_delay: int | None = None
    up_increment: int | None = None
    down_decrement: int | None = None
    up_increment_delay: int | None = None
    down_decrement_delay: int | None = None
    start_delay: int | None = None
    effect_id: int | None = None
    direction: Direction | None = None
    transition: bool | None = None

    @classmethod
    def off(cls) -> "ChannelState":
        """Channel held at level zero."""
        return cls(up_hold_level=0, direction=Direction.INC)


class KeyState(BaseModel):
    """Three resolved channel states for one key."""

    model_config = ConfigDict(frozen=True)

    red: ChannelState = Field(default_factory=ChannelState)
    green: ChannelState = Field(default_factory=ChannelState)
    blue: ChannelState = Field(default_factory=ChannelState)

    @classmethod
    def off(cls) -> "KeyState":
        """Create a key state with every channel dark."""
        return cls(red=ChannelState.off(), green=ChannelState.off(), blue=ChannelState.off())

    def channel(self, channel: Channel) -> ChannelState:
        """Get the state of one channel."""
        return getattr(self, channel.value)

    def channels(self) -> list[tuple[Channel, ChannelState]]:
        """All channels in red, green, blue order."""
        return [(channel, self.channel(channel)) for channel in Channel]


class StateChangeRequest(BaseModel):
    """Request to put ``key`` into state ``data``."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1, description="Key name in the active layout")
    data: KeyState
