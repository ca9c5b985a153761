"""Tests for SignalOverlay."""

import pytest

from helpers import key_state
from keylight.events import ProfileActivated, SignalDisabled, SignalValueChanged
from keylight.exceptions import ConfigurationError
from keylight.mapping import AnimationMapper, SignalOverlay, default_mappings
from keylight.models import NO_SIGNAL, LayoutMapping, Range, SignalMapping, solid_color
from keylight.profiles import ProfileLayer, ProfileStore

BASELINE = key_state("2040FF")
GREEN = key_state("00FF00")
ROW = ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"]


@pytest.fixture
def profiles(temp_dir, connected_reconciler, events):
    store = ProfileStore(temp_dir / "profiles")
    store.load()
    layer = ProfileLayer(store, connected_reconciler, events)
    layer.attach()
    return layer


@pytest.fixture
def mapper(profiles):
    return AnimationMapper(default_mappings(), profiles)


@pytest.fixture
def overlay(mapper, profiles, connected_reconciler, events):
    overlay = SignalOverlay(mapper, profiles, connected_reconciler)
    overlay.attach(events)
    profiles.activate()
    return overlay


class TestSignalOverlay:
    """Test the overlay on top of the profile baseline."""

    @pytest.mark.unit
    def test_value_is_drawn_on_next_tick(self, overlay, events, connected_reconciler, keyboard):
        """Test that a signal value lights its keys over the baseline."""
        events.publish(SignalValueChanged("cpu_utilization_max", 45.0))
        assert keyboard.visible["1"] == BASELINE

        connected_reconciler.tick()

        assert [keyboard.visible[key] for key in ROW[:4]] == [GREEN] * 4
        assert [keyboard.visible[key] for key in ROW[4:]] == [BASELINE] * 6
        assert keyboard.visible["a"] == BASELINE
        assert overlay.active_signals == ["cpu_utilization_max"]

    @pytest.mark.unit
    def test_overlay_wins_every_tick(self, overlay, events, connected_reconciler, keyboard):
        """Test that the profile does not overwrite signal keys on later ticks."""
        events.publish(SignalValueChanged("memory_utilization", 100.0))
        connected_reconciler.tick()
        keyboard.writes.clear()

        connected_reconciler.tick()

        assert keyboard.writes == []
        assert keyboard.visible["f10"] != BASELINE

    @pytest.mark.unit
    def test_no_signal_restores_baseline(self, overlay, events, connected_reconciler, keyboard):
        """Test that NO_SIGNAL hands the keys back to the profile."""
        events.publish(SignalValueChanged("cpu_utilization_max", 100.0))
        connected_reconciler.tick()
        events.publish(SignalValueChanged("cpu_utilization_max", NO_SIGNAL))
        connected_reconciler.tick()

        assert all(keyboard.visible[key] == BASELINE for key in ROW)

    @pytest.mark.unit
    def test_disabled_signal_releases_keys(self, overlay, events, connected_reconciler, keyboard):
        """Test that disabling a signal restores its keys."""
        events.publish(SignalValueChanged("cpu_utilization_max", 100.0))
        connected_reconciler.tick()

        events.publish(SignalDisabled("cpu_utilization_max"))
        assert overlay.active_signals == []
        connected_reconciler.reconcile()

        assert all(keyboard.visible[key] == BASELINE for key in ROW)

    @pytest.mark.unit
    def test_disabling_unknown_signal_is_noop(self, overlay, events, connected_reconciler):
        """Test SignalDisabled for a signal that never published."""
        events.publish(SignalDisabled("time_ofday"))
        assert not connected_reconciler.is_dirty

    @pytest.mark.unit
    def test_profile_change_refreshes_idle_groups(self, overlay, profiles, events, connected_reconciler, keyboard):
        """Test that multi-mode idle groups follow a new profile."""
        events.publish(SignalValueChanged("cpu_utilization_max", 45.0))
        connected_reconciler.tick()

        profiles.activate("missing")

        assert [keyboard.visible[key] for key in ROW[:4]] == [GREEN] * 4
        assert keyboard.visible["9"].red.up_hold_level == 0
        assert keyboard.visible["9"].blue.up_hold_level == 0
        assert events.subscriber_count(ProfileActivated) == 1

    @pytest.mark.unit
    def test_invalid_ranges_reach_the_publisher(self, profiles, connected_reconciler, events):
        """Test that a mapping gap raises ConfigurationError at publish."""
        mapping = SignalMapping(
            signal="load",
            ranges=[Range(start=0, end=10, activated_animation=solid_color("00FF00"))],
            layouts={"en-US": LayoutMapping(key_groups=[["a"]])},
        )
        overlay = SignalOverlay(AnimationMapper([mapping], profiles), profiles, connected_reconciler)
        overlay.attach(events)

        events.publish(SignalValueChanged("load", 5.0))
        with pytest.raises(ConfigurationError):
            events.publish(SignalValueChanged("load", 50.0))

    @pytest.mark.unit
    def test_detach(self, overlay, events, connected_reconciler):
        """Test that a detached overlay ignores signals."""
        overlay.detach(events)
        events.publish(SignalValueChanged("cpu_utilization_max", 45.0))
        assert overlay.active_signals == []
        assert overlay.tick() == []
