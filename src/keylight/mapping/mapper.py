"""Animation mapper: signal values to per-key lighting requests."""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from keylight.exceptions import ConfigurationError, MappingModeNotImplementedError
from keylight.mapping.expression import CompiledAnimation
from keylight.models import (
    NO_SIGNAL,
    KeyState,
    LayoutMapping,
    MappingMode,
    SignalMapping,
    SignalValue,
    StateChangeRequest,
)

logger = logging.getLogger(__name__)


class DefaultProvider(Protocol):
    """Supplies the baseline request for keys no signal is lighting."""

    def default_for(self, keys: list[str]) -> list[StateChangeRequest]: ...


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Limit ``value`` to ``[minimum, maximum]``."""
    return max(minimum, min(value, maximum))


@dataclass
class _CompiledRange:
    activated: CompiledAnimation | None
    not_activated: CompiledAnimation | None


@dataclass
class _CompiledMapping:
    mapping: SignalMapping
    ranges: list[_CompiledRange]


class AnimationMapper:
    """
    Resolves ``(signal, value)`` into StateChangeRequests for the current layout.

    All animation templates are compiled when the mapper is built, so a
    malformed expression fails at load time rather than on the first reading.

    Example:
        ```python
        mapper = AnimationMapper(default_mappings(), profile_layer, layout="en-US")
        requests = mapper.resolve("cpu_utilization_max", 45.0)
        ```
    """

    def __init__(self, mappings: list[SignalMapping], defaults: DefaultProvider, layout: str = "en-US"):
        self._defaults = defaults
        self._layout = layout
        self._mappings: list[_CompiledMapping] = [self._compile(mapping) for mapping in mappings]
        logger.info(f"AnimationMapper loaded {len(self._mappings)} mappings (layout={layout})")

    @staticmethod
    def _compile(mapping: SignalMapping) -> _CompiledMapping:
        for first, second in mapping.overlapping_ranges():
            logger.warning(
                f"Mapping for '{mapping.signal}': ranges {first} and {second} overlap, "
                f"range {second} wins where both match"
            )

        ranges = [
            _CompiledRange(
                activated=CompiledAnimation(r.activated_animation) if r.activated_animation else None,
                not_activated=CompiledAnimation(r.not_activated_animation) if r.not_activated_animation else None,
            )
            for r in mapping.ranges
        ]
        return _CompiledMapping(mapping, ranges)

    @property
    def layout(self) -> str:
        return self._layout

    def set_layout(self, layout: str) -> None:
        """Switch the layout used to pick key groups."""
        if layout != self._layout:
            logger.info(f"Mapping layout changed: {self._layout} -> {layout}")
        self._layout = layout

    @property
    def mappings(self) -> list[SignalMapping]:
        return [entry.mapping for entry in self._mappings]

    def keys_for(self, signal: str) -> list[str]:
        """Every key the mappings of ``signal`` cover in the current layout."""
        keys: list[str] = []
        for entry in self._mappings:
            layout = entry.mapping.layouts.get(self._layout)
            if entry.mapping.signal == signal and layout is not None:
                keys.extend(key for key in layout.keys() if key not in keys)
        return keys

    def resolve(self, signal: str, value: SignalValue) -> list[StateChangeRequest]:
        """
        Requests for every mapping of ``signal``.

        A signal without a mapping for the current layout yields ``[]``.
        ``NO_SIGNAL`` yields the profile defaults for the mapping's keys.

        Raises:
            ConfigurationError: If no range with an animation matches the value
            MappingModeNotImplementedError: If the mapping selects multiSingle or multiSplit
        """
        requests: list[StateChangeRequest] = []
        for entry in self._mappings:
            if entry.mapping.signal != signal:
                continue
            layout = entry.mapping.layouts.get(self._layout)
            if layout is None:
                logger.debug(f"Mapping for '{signal}' has no layout '{self._layout}'")
                continue
            requests.extend(self._resolve_mapping(entry, layout, value))
        return requests

    def _resolve_mapping(
        self, entry: _CompiledMapping, layout: LayoutMapping, value: SignalValue
    ) -> list[StateChangeRequest]:
        mapping = entry.mapping

        if value is NO_SIGNAL:
            return self._defaults.default_for(layout.keys())

        clamped = clamp(value, mapping.min, mapping.max)
        compiled = self._find_range(entry, clamped)
        state = compiled.activated.resolve(clamped)

        if layout.mode is MappingMode.ALL:
            return self._requests(layout.keys(), state)

        if layout.mode is MappingMode.MULTI:
            activated = max(0, math.floor(len(layout.key_groups) * clamped / mapping.max))
            active_keys = [key for group in layout.key_groups[:activated] for key in group]
            idle_keys = [key for group in layout.key_groups[activated:] for key in group]

            requests = self._requests(active_keys, state)
            if compiled.not_activated is not None:
                requests.extend(self._requests(idle_keys, compiled.not_activated.resolve(clamped)))
            elif idle_keys:
                requests.extend(self._defaults.default_for(idle_keys))
            return requests

        if layout.mode in (MappingMode.MULTI_SINGLE, MappingMode.MULTI_SPLIT):
            raise MappingModeNotImplementedError(layout.mode.value, mapping.signal)

        raise TypeError(f"Unhandled mapping mode: {layout.mode!r}")

    @staticmethod
    def _find_range(entry: _CompiledMapping, value: float) -> _CompiledRange:
        winner: _CompiledRange | None = None
        for range_, compiled in zip(entry.mapping.ranges, entry.ranges):
            if range_.contains(value):
                winner = compiled

        if winner is None or winner.activated is None:
            raise ConfigurationError(
                user_message="ranges invalid",
                technical_message=(
                    f"ranges invalid: no range with an animation matches "
                    f"{entry.mapping.signal}={value}"
                ),
                recovery_hint="Make the mapping's ranges cover min..max, each with an activatedAnimation",
            )
        return winner

    @staticmethod
    def _requests(keys: list[str], state: KeyState) -> list[StateChangeRequest]:
        return [StateChangeRequest(key=key, data=state) for key in keys]
