"""Tests for AnimationMapper."""

import logging

import pytest

from helpers import key_state
from keylight.exceptions import ConfigurationError, MappingModeNotImplementedError
from keylight.mapping import AnimationMapper, clamp, default_mappings, load_mappings, save_default_mappings
from keylight.models import (
    NO_SIGNAL,
    LayoutMapping,
    MappingMode,
    Range,
    SignalMapping,
    StateChangeRequest,
    solid_color,
)

GREEN = key_state("00FF00")
YELLOW = key_state("FFFF00")
RED = key_state("FF0000")
BASELINE = key_state("2040FF")


class FakeDefaults:
    """Default provider that paints every key with one baseline colour."""

    def __init__(self):
        self.calls: list[list[str]] = []

    def default_for(self, keys):
        self.calls.append(list(keys))
        return [StateChangeRequest(key=key, data=BASELINE) for key in keys]


def by_key(requests):
    return {r.key: r.data for r in requests}


@pytest.fixture
def defaults():
    return FakeDefaults()


@pytest.fixture
def mapper(defaults):
    return AnimationMapper(default_mappings(), defaults, layout="en-US")


def single_mapping(mode=MappingMode.ALL, ranges=None, groups=None):
    return SignalMapping(
        signal="load",
        ranges=ranges or [Range(start=0, end=100, activated_animation=solid_color("00FF00"))],
        layouts={"en-US": LayoutMapping(key_groups=groups or [["a"], ["b"]], mode=mode)},
    )


class TestRangeSelection:
    """Test which range a value lands in."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, GREEN), (80.0, GREEN), (80.0001, YELLOW), (90.0, YELLOW), (90.5, RED), (99.0, RED)],
    )
    def test_band_boundaries(self, defaults, value, expected):
        """Test the default cpu bands around their edges."""
        cpu = default_mappings()[0]
        mapper = AnimationMapper([single_mapping(ranges=cpu.ranges)], defaults)
        assert by_key(mapper.resolve("load", value))["a"] == expected

    @pytest.mark.unit
    def test_top_band_is_flashing(self, mapper):
        """Test that 100 lands in the last band."""
        state = by_key(mapper.resolve("cpu_utilization_max", 100.0))["1"]
        assert state.red.up_hold_level == 255
        assert state.red.down_hold_level == 0
        assert state.red.direction.value == "incDec"

    @pytest.mark.unit
    def test_values_are_clamped(self, mapper):
        """Test that out-of-range values are clamped to min..max."""
        assert mapper.resolve("cpu_utilization_max", 250.0) == mapper.resolve("cpu_utilization_max", 100.0)
        assert mapper.resolve("cpu_utilization_max", -5.0) == mapper.resolve("cpu_utilization_max", 0.0)

    @pytest.mark.unit
    def test_last_matching_range_wins(self, defaults):
        """Test overlapping ranges resolve to the later one."""
        mapping = single_mapping(
            ranges=[
                Range(start=0, end=60, activated_animation=solid_color("00FF00")),
                Range(start=50, end=100, activated_animation=solid_color("FF0000")),
            ]
        )
        mapper = AnimationMapper([mapping], defaults)
        assert by_key(mapper.resolve("load", 55.0))["a"] == RED
        assert by_key(mapper.resolve("load", 45.0))["a"] == GREEN

    @pytest.mark.unit
    def test_overlap_logs_warning(self, defaults, caplog):
        """Test that overlapping ranges are reported at load time."""
        mapping = single_mapping(
            ranges=[
                Range(start=0, end=60, activated_animation=solid_color("00FF00")),
                Range(start=50, end=100, activated_animation=solid_color("FF0000")),
            ]
        )
        with caplog.at_level(logging.WARNING, logger="keylight.mapping.mapper"):
            AnimationMapper([mapping], defaults)
        assert "overlap" in caplog.text

    @pytest.mark.unit
    def test_gap_raises_configuration_error(self, defaults):
        """Test that a value in no range is a configuration error."""
        mapping = single_mapping(
            ranges=[
                Range(start=0, end=40, activated_animation=solid_color("00FF00")),
                Range(start=60, end=100, activated_animation=solid_color("FF0000")),
            ]
        )
        mapper = AnimationMapper([mapping], defaults)
        with pytest.raises(ConfigurationError) as exc_info:
            mapper.resolve("load", 50.0)
        assert exc_info.value.user_message == "ranges invalid"

    @pytest.mark.unit
    def test_range_without_animation_raises(self, defaults):
        """Test that a matching range without an animation is a configuration error."""
        mapper = AnimationMapper([single_mapping(ranges=[Range(start=0, end=100)])], defaults)
        with pytest.raises(ConfigurationError):
            mapper.resolve("load", 50.0)


class TestModes:
    """Test layout modes."""

    @pytest.mark.unit
    def test_all_mode(self, defaults):
        """Test that every key gets the resolved state."""
        mapper = AnimationMapper([single_mapping(groups=[["a", "b"], ["c"]])], defaults)
        requests = mapper.resolve("load", 10.0)
        assert [r.key for r in requests] == ["a", "b", "c"]
        assert all(r.data == GREEN for r in requests)
        assert defaults.calls == []

    @pytest.mark.unit
    @pytest.mark.parametrize("value,lit", [(45.0, 4), (100.0, 10), (0.0, 0), (9.99, 0), (10.0, 1)])
    def test_multi_mode_activation_count(self, mapper, value, lit):
        """Test floor(groups * value / max) activated groups."""
        states = by_key(mapper.resolve("cpu_utilization_max", value))
        row = ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"]
        assert len(states) == 10
        activated = [key for key in row if states[key] != BASELINE]
        assert activated == row[:lit]

    @pytest.mark.unit
    def test_multi_mode_idle_groups_use_defaults(self, mapper, defaults):
        """Test that idle groups fall back to the baseline."""
        mapper.resolve("cpu_utilization_max", 45.0)
        assert defaults.calls == [["5", "6", "7", "8", "9", "0"]]

    @pytest.mark.unit
    def test_multi_mode_not_activated_animation(self, defaults):
        """Test that a range's not-activated animation paints idle groups."""
        mapping = single_mapping(
            mode=MappingMode.MULTI,
            ranges=[
                Range(
                    start=0,
                    end=100,
                    activated_animation=solid_color("00FF00"),
                    not_activated_animation=solid_color("FF0000"),
                )
            ],
        )
        mapper = AnimationMapper([mapping], defaults)
        states = by_key(mapper.resolve("load", 50.0))
        assert states == {"a": GREEN, "b": RED}
        assert defaults.calls == []

    @pytest.mark.unit
    @pytest.mark.parametrize("mode", [MappingMode.MULTI_SINGLE, MappingMode.MULTI_SPLIT])
    def test_unimplemented_modes(self, defaults, mode):
        """Test that multiSingle and multiSplit are rejected."""
        mapper = AnimationMapper([single_mapping(mode=mode)], defaults)
        with pytest.raises(MappingModeNotImplementedError):
            mapper.resolve("load", 50.0)


class TestSignals:
    """Test signal and layout lookup."""

    @pytest.mark.unit
    def test_no_signal_yields_defaults(self, mapper, defaults):
        """Test that NO_SIGNAL restores the baseline on the mapping's keys."""
        requests = mapper.resolve("memory_utilization", NO_SIGNAL)
        assert [r.key for r in requests] == [f"f{n}" for n in range(1, 11)]
        assert all(r.data == BASELINE for r in requests)

    @pytest.mark.unit
    def test_unmapped_signal(self, mapper):
        """Test that a signal without mappings yields nothing."""
        assert mapper.resolve("time_ofday", 100.0) == []

    @pytest.mark.unit
    def test_missing_layout(self, mapper):
        """Test that a mapping without the current layout is skipped."""
        mapper.set_layout("de-DE")
        assert mapper.layout == "de-DE"
        assert mapper.resolve("cpu_utilization_max", 50.0) == []
        assert mapper.keys_for("cpu_utilization_max") == []

    @pytest.mark.unit
    def test_keys_for(self, mapper):
        """Test listing the keys a signal covers."""
        assert mapper.keys_for("cpu_utilization_max") == ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"]
        assert mapper.keys_for("unknown") == []

    @pytest.mark.unit
    def test_clamp(self):
        """Test clamp helper."""
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10


class TestMappingsFile:
    """Test loading mappings.json."""

    @pytest.mark.unit
    def test_missing_file_uses_defaults(self, temp_dir):
        """Test the built-in fallback."""
        assert load_mappings(temp_dir) == default_mappings()

    @pytest.mark.unit
    def test_saved_defaults_load_back(self, temp_dir):
        """Test writing and re-reading the built-in mappings."""
        path = save_default_mappings(temp_dir)
        assert path.exists()
        assert load_mappings(temp_dir) == default_mappings()

    @pytest.mark.unit
    def test_malformed_file_raises(self, temp_dir):
        """Test that a malformed document is a configuration error."""
        (temp_dir / "mappings.json").write_text('{"mappings": [{"signal": "x", "ranges": []}]}')
        with pytest.raises(ConfigurationError):
            load_mappings(temp_dir)

    @pytest.mark.unit
    def test_multi_mapping_with_zero_max_raises(self, temp_dir):
        """Test that a multi layout over a non-positive range is rejected at load."""
        (temp_dir / "mappings.json").write_text(
            '{"mappings": [{"signal": "temp", "min": -10, "max": 0, '
            '"ranges": [{"start": -10, "end": 0}], '
            '"layouts": {"en-US": {"keyGroups": [["a"], ["b"]], "mode": "multi"}}}]}'
        )
        with pytest.raises(ConfigurationError):
            load_mappings(temp_dir)
