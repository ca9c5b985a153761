"""Animation templates: per-channel parameters as literals or expressions."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# A numeric parameter is either a literal or an expression over ``signal``
NumericTemplate = int | float | str | None


class ChannelAnimation(BaseModel):
    """
    Parameter templates for one colour channel.

    Numeric parameters hold a literal or an arithmetic expression such as
    ``"signal * 2.55"``. ``direction`` holds a direction name (``"incDec"``)
    or an expression yielding one. ``transition`` holds a boolean literal.
    Unset parameters resolve to ``None`` (hardware default).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    up_hold_level: NumericTemplate = None
    down_hold_level: NumericTemplate = None
    up_maximum_level: NumericTemplate = None
    down_minimum_level: NumericTemplate = None
    up_hold_delay: NumericTemplate = None
    down_hold_delay: NumericTemplate = None
    up_increment: NumericTemplate = None
    down_decrement: NumericTemplate = None
    up_increment_delay: NumericTemplate = None
    down_decrement_delay: NumericTemplate = None
    start_delay: NumericTemplate = None
    effect_id: NumericTemplate = None
    direction: str | None = None
    transition: bool | str | None = None


class Animation(BaseModel):
    """Templates for the three channels of a key."""

    model_config = ConfigDict(frozen=True)

    red: ChannelAnimation = Field(default_factory=ChannelAnimation)
    green: ChannelAnimation = Field(default_factory=ChannelAnimation)
    blue: ChannelAnimation = Field(default_factory=ChannelAnimation)


def parse_hex_color(color: str) -> tuple[int, int, int]:
    """
    Parse ``RRGGBB`` (optionally ``#``-prefixed) into byte values.

    Raises:
        ValueError: If the string is not six hex digits
    """
    digits = color.removeprefix("#")
    if len(digits) != 6:
        raise ValueError(f"Expected a six digit hex colour, got {color!r}")
    try:
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
    except ValueError:
        raise ValueError(f"Expected a six digit hex colour, got {color!r}") from None


def solid_color(color: str) -> Animation:
    """Ramp each channel up once to the colour's byte value and hold it."""
    red, green, blue = parse_hex_color(color)
    return Animation(
        red=ChannelAnimation(up_hold_level=red, direction="inc"),
        green=ChannelAnimation(up_hold_level=green, direction="inc"),
        blue=ChannelAnimation(up_hold_level=blue, direction="inc"),
    )


def solid_color_flashing(color: str) -> Animation:
    """Pulse continuously between the colour and black."""

    def flashing(level: int) -> ChannelAnimation:
        return ChannelAnimation(
            up_hold_level=level,
            down_hold_level=0,
            direction="incDec",
            up_increment=255,
            down_decrement=40,
            up_hold_delay=20,
            down_hold_delay=20,
        )

    red, green, blue = parse_hex_color(color)
    return Animation(red=flashing(red), green=flashing(green), blue=flashing(blue))
