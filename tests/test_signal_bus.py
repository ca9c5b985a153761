"""Tests for SignalBus."""

from unittest.mock import Mock

import pytest

from helpers import FakeTimer
from keylight.events import SignalDisabled, SignalValueChanged
from keylight.models import (
    NO_SIGNAL,
    HookSource,
    PluginSignal,
    PollingCallbackSource,
    PollingSource,
    SignalProviderPlugin,
)
from keylight.signals import SignalBus, select_signals


class FixedPoll:
    """Polling function returning queued readings."""

    def __init__(self, *readings):
        self.readings = list(readings)

    def __call__(self):
        return self.readings.pop(0)


def make_plugin(*signals, name="test"):
    return SignalProviderPlugin(name=name, signals=tuple(signals))


@pytest.fixture
def bus(events, fake_timers):
    return SignalBus(events, timer_factory=FakeTimer)


def values(published, name=None):
    return [m.value for m in published if isinstance(m, SignalValueChanged) and (name is None or m.name == name)]


class TestCatalogue:
    """Test plugin registration and signal selection."""

    @pytest.mark.unit
    def test_register_plugin(self, bus):
        """Test that signals are catalogued in registration order."""
        first = PluginSignal("a", PollingSource(1.0, lambda: 1))
        second = PluginSignal("b", PollingSource(1.0, lambda: 2))
        bus.register_plugin(make_plugin(first, second))
        assert [s.name for s in bus.get_catalogue()] == ["a", "b"]

    @pytest.mark.unit
    def test_select_signals(self):
        """Test selecting by 'all', by tag and by name."""
        catalogue = [
            PluginSignal("cpu", PollingSource(1.0, lambda: 0), tags=("system",)),
            PluginSignal("clock", PollingSource(1.0, lambda: 0), tags=("time",)),
        ]
        assert select_signals(catalogue, "all") == {"cpu", "clock"}
        assert select_signals(catalogue, "time") == {"clock"}
        assert select_signals(catalogue, "nothing") == set()
        assert select_signals(catalogue, ["cpu", "ghost"]) == {"cpu", "ghost"}


class TestEnable:
    """Test enabling and disabling signals."""

    @pytest.mark.unit
    def test_polling_source_starts_timer(self, bus, fake_timers, published):
        """Test that a polling source gets a timer with its interval."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(0.5, FixedPoll(10, 20)))))
        bus.set_enabled_signals("all")

        assert bus.enabled_signals == {"cpu"}
        timer = fake_timers[0]
        assert timer.interval == 0.5
        assert timer.name == "cpu"
        assert timer.started

        timer.fire()
        timer.fire()
        assert values(published) == [10.0, 20.0]

    @pytest.mark.unit
    def test_polling_callback_source(self, bus, fake_timers, published):
        """Test a source that delivers readings through a callback."""
        captured = []
        bus.register_plugin(make_plugin(PluginSignal("mem", PollingCallbackSource(1.0, captured.append))))
        bus.set_enabled_signals(["mem"])

        fake_timers[0].fire()
        assert len(captured) == 1
        captured[0](42)
        assert values(published) == [42.0]

    @pytest.mark.unit
    def test_hook_source(self, bus, fake_timers, published):
        """Test that a hook source is attached and unhooked on disable."""
        handle = Mock()
        attached = []

        def attach(callback):
            attached.append(callback)
            return handle

        bus.register_plugin(make_plugin(PluginSignal("key", HookSource(attach))))
        bus.set_enabled_signals("all")
        assert fake_timers == []

        attached[0](3)
        assert values(published) == [3.0]

        bus.set_enabled_signals([])
        handle.unhook.assert_called_once()

    @pytest.mark.unit
    def test_callback_errors_are_logged(self, bus, published):
        """Test that a bad reading delivered through a callback does not raise."""
        attached = []
        bus.register_plugin(make_plugin(PluginSignal("key", HookSource(lambda cb: attached.append(cb) or Mock()))))
        bus.set_enabled_signals("all")

        attached[0]("not a number")
        assert values(published) == []

    @pytest.mark.unit
    def test_enable_by_tag(self, bus):
        """Test enabling the signals carrying a tag."""
        bus.register_plugin(
            make_plugin(
                PluginSignal("cpu", PollingSource(1.0, lambda: 0), tags=("system",)),
                PluginSignal("clock", PollingSource(1.0, lambda: 0), tags=("time",)),
            )
        )
        bus.set_enabled_signals("time")
        assert bus.enabled_signals == {"clock"}

    @pytest.mark.unit
    def test_unknown_signal_is_skipped(self, bus, caplog):
        """Test that unknown names are logged and ignored."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, lambda: 0))))
        bus.set_enabled_signals(["cpu", "ghost"])
        assert bus.enabled_signals == {"cpu"}
        assert "ghost" in caplog.text

    @pytest.mark.unit
    def test_unknown_source_type(self, bus):
        """Test that an unhandled source variant raises TypeError."""
        bus.register_plugin(make_plugin(PluginSignal("odd", object())))
        with pytest.raises(TypeError):
            bus.set_enabled_signals("all")
        assert bus.enabled_signals == set()

    @pytest.mark.unit
    def test_disable_stops_and_announces(self, bus, fake_timers, published):
        """Test that disabling stops the timer and publishes SignalDisabled."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, FixedPoll(10)))))
        bus.set_enabled_signals("all")
        fake_timers[0].fire()
        assert bus.last_value("cpu") == 10.0

        bus.set_enabled_signals([])

        assert fake_timers[0].stopped
        assert bus.enabled_signals == set()
        assert bus.last_value("cpu") is None
        assert published[-1] == SignalDisabled("cpu")

    @pytest.mark.unit
    def test_reenabled_signal_republishes(self, bus, fake_timers, published):
        """Test that a re-enabled signal publishes its first value again."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, FixedPoll(10, 10)))))
        bus.set_enabled_signals("all")
        fake_timers[0].fire()
        bus.set_enabled_signals([])
        bus.set_enabled_signals("all")
        fake_timers[1].fire()
        assert values(published) == [10.0, 10.0]

    @pytest.mark.unit
    def test_unchanged_signals_keep_their_timer(self, bus, fake_timers):
        """Test that re-applying the same set does not restart sources."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, lambda: 0))))
        bus.set_enabled_signals("all")
        bus.set_enabled_signals(["cpu"])
        assert len(fake_timers) == 1
        assert not fake_timers[0].stopped

    @pytest.mark.unit
    def test_stop_disables_everything(self, bus, fake_timers):
        """Test stop()."""
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, lambda: 0))))
        bus.set_enabled_signals("all")
        bus.stop()
        assert bus.enabled_signals == set()
        assert fake_timers[0].stopped


class TestPublish:
    """Test de-duplication and filtering of readings."""

    @pytest.fixture
    def enabled_bus(self, bus):
        bus.register_plugin(make_plugin(PluginSignal("cpu", PollingSource(1.0, lambda: 0))))
        bus.set_enabled_signals("all")
        return bus

    @pytest.mark.unit
    def test_duplicates_are_suppressed(self, enabled_bus, published):
        """Test that only changed readings are forwarded."""
        for reading in (10, 10, 10.0, 20, 10):
            enabled_bus.publish("cpu", reading)
        assert values(published) == [10.0, 20.0, 10.0]

    @pytest.mark.unit
    def test_no_signal_is_forwarded_once(self, enabled_bus, published):
        """Test NO_SIGNAL de-duplication."""
        for reading in (None, "nosignal", 5, None):
            enabled_bus.publish("cpu", reading)
        assert values(published) == [NO_SIGNAL, 5.0, NO_SIGNAL]

    @pytest.mark.unit
    def test_disabled_signal_readings_are_dropped(self, enabled_bus, published):
        """Test that readings for signals that are not enabled are dropped."""
        enabled_bus.publish("memory", 50)
        assert published == []
        assert enabled_bus.last_value("memory") is None

    @pytest.mark.unit
    def test_invalid_reading_raises(self, enabled_bus):
        """Test that a non-numeric reading raises TypeError."""
        with pytest.raises(TypeError):
            enabled_bus.publish("cpu", "high")
