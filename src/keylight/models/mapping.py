"""Signal mapping tables: value ranges and key groups per layout."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .animation import Animation

_CAMEL = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class MappingMode(str, Enum):
    """How a mapping distributes its animation over its key groups."""

    ALL = "all"  # Every group gets the same animation
    MULTI = "multi"  # Groups light up progressively with the value
    MULTI_SINGLE = "multiSingle"  # Only the highest activated group lights up
    MULTI_SPLIT = "multiSplit"  # Each activated group keeps its own range's animation


class Range(BaseModel):
    """A value interval and the animation used while the value is inside it."""

    model_config = _CAMEL

    start: float
    start_inclusive: bool = True
    end: float
    end_inclusive: bool = True
    activated_animation: Animation | None = Field(
        default=None, description="Animation for activated keys; a matching range without one is a configuration error"
    )
    not_activated_animation: Animation | None = Field(
        default=None, description="Animation for keys that are not activated (None inherits the profile)"
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "Range":
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is greater than end {self.end}")
        return self

    def contains(self, value: float) -> bool:
        """Check whether ``value`` falls inside this range."""
        after_start = self.start < value or (self.start <= value and self.start_inclusive)
        before_end = value < self.end or (value <= self.end and self.end_inclusive)
        return after_start and before_end

    def overlaps(self, other: "Range") -> bool:
        """Check whether this range shares at least one value with ``other``."""
        if self.end < other.start or other.end < self.start:
            return False
        if self.end == other.start:
            return self.end_inclusive and other.start_inclusive
        if other.end == self.start:
            return other.end_inclusive and self.start_inclusive
        return True


class LayoutMapping(BaseModel):
    """Key groups lit by a mapping in one keyboard layout."""

    model_config = _CAMEL

    key_groups: list[list[str]] = Field(min_length=1)
    mode: MappingMode = MappingMode.ALL

    @model_validator(mode="after")
    def check_groups(self) -> "LayoutMapping":
        for index, group in enumerate(self.key_groups):
            if not group:
                raise ValueError(f"key group {index} is empty")
        return self

    def keys(self) -> list[str]:
        """All keys of every group, in group order."""
        return [key for group in self.key_groups for key in group]


class SignalMapping(BaseModel):
    """
    Binds a signal's value range to animations on groups of keys.

    Ranges are looked up in listed order and the last matching range wins.
    They are expected to cover ``[min, max]`` without gaps.
    """

    model_config = _CAMEL

    id: str = Field(default_factory=lambda: uuid4().hex)
    signal: str = Field(min_length=1)
    min: float = 0.0
    max: float = 100.0
    ranges: list[Range] = Field(min_length=1)
    layouts: dict[str, LayoutMapping] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_limits(self) -> "SignalMapping":
        if self.min >= self.max:
            raise ValueError(f"min {self.min} must be less than max {self.max}")
        if self.max <= 0:
            for name, layout in self.layouts.items():
                if layout.mode is MappingMode.MULTI:
                    raise ValueError(f"layout {name!r} uses multi mode, which needs a positive max (got {self.max})")
        return self

    def overlapping_ranges(self) -> list[tuple[int, int]]:
        """Index pairs of ranges that share at least one value."""
        pairs = []
        for i, first in enumerate(self.ranges):
            for j in range(i + 1, len(self.ranges)):
                if first.overlaps(self.ranges[j]):
                    pairs.append((i, j))
        return pairs


class MappingTable(BaseModel):
    """Root of the ``mappings.json`` document."""

    model_config = _CAMEL

    mappings: list[SignalMapping] = Field(default_factory=list)
