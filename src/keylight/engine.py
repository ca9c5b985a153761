"""Lighting engine: builds and wires every component."""

import logging
import threading
from pathlib import Path

from keylight.events import EventChannel, SettingsChanged
from keylight.keyboard import HotplugMonitor, KeyboardDriver, StateReconciler
from keylight.mapping import AnimationMapper, SignalOverlay, load_mappings
from keylight.model_manager import ModelEvent, ModelManagerService
from keylight.models import Profile, Settings, SignalMapping, SignalProviderPlugin
from keylight.paths import profiles_dir
from keylight.plugins import discover_plugins
from keylight.profiles import ProfileLayer, ProfileStore
from keylight.signals import SignalBus

logger = logging.getLogger(__name__)

# Settings that only take effect when the engine is rebuilt
_RESTART_FIELDS = {"sync_interval", "connect_delay", "hotplug_poll_interval", "driver"}


class LightingEngine:
    """
    Owner of one running lighting pipeline.

    Data flow per tick:
        SignalBus -> EventChannel -> SignalOverlay (AnimationMapper)
        ProfileLayer (priority 0) + SignalOverlay (priority 1) -> StateReconciler -> driver

    The engine observes the settings service and re-applies enabled signals,
    layout and profile whenever settings change.

    Example:
        ```python
        with LightingEngine(settings_service, SimulatedKeyboard(), config_dir) as engine:
            engine.wait()
        ```
    """

    def __init__(
        self,
        settings_service: ModelManagerService[Settings],
        driver: KeyboardDriver,
        config_dir: Path,
        plugins: list[SignalProviderPlugin] | None = None,
        mappings: list[SignalMapping] | None = None,
    ):
        """
        Build the pipeline without starting anything.

        Args:
            settings_service: Service holding the active Settings
            driver: Keyboard driver to reconcile against
            config_dir: Directory holding profiles/ and mappings.json
            plugins: Signal providers (default: built-ins plus entry points)
            mappings: Mapping table (default: mappings.json or the built-ins)

        Raises:
            ConfigurationError: If the mapping table is invalid
        """
        self._settings_service = settings_service
        self._driver = driver
        self._stopped = threading.Event()
        self._running = False

        settings = settings_service.get_model()

        self.events = EventChannel()
        self.signal_bus = SignalBus(self.events)
        self.reconciler = StateReconciler(
            driver,
            self.events,
            sync_interval=settings.sync_interval,
            connect_delay=settings.connect_delay,
        )
        self.store = ProfileStore(profiles_dir(config_dir))
        self.profiles = ProfileLayer(
            self.store, self.reconciler, self.events, profile_id=settings.profile, layout=settings.layout
        )
        self.mapper = AnimationMapper(
            mappings if mappings is not None else load_mappings(config_dir),
            self.profiles,
            layout=settings.layout,
        )
        self.overlay = SignalOverlay(self.mapper, self.profiles, self.reconciler)
        self.hotplug = HotplugMonitor(
            driver.is_present,
            self.reconciler.on_attach,
            self.reconciler.on_detach,
            poll_interval=settings.hotplug_poll_interval,
        )

        for plugin in plugins if plugins is not None else discover_plugins():
            self.signal_bus.register_plugin(plugin)

    # =================================================================
    # Lifecycle
    # =================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Load profiles, start ticking, enable signals and watch for the keyboard."""
        if self._running:
            logger.warning("LightingEngine is already running")
            return

        settings = self._settings_service.get_model()
        logger.info(f"Starting lighting engine (driver={self._driver.name}, profile={settings.profile})")

        self.store.load()
        self.profiles.attach()
        self.overlay.attach(self.events)
        self._settings_service.register_observer(self)

        self.reconciler.start()
        self.profiles.activate(settings.profile)
        self.signal_bus.set_enabled_signals(settings.signals)
        self.hotplug.start()

        self._stopped.clear()
        self._running = True

    def stop(self, restore: bool = True) -> None:
        """
        Stop every component and release the keyboard.

        Args:
            restore: Hand the keyboard back to its stored lighting
        """
        if not self._running:
            return

        logger.info("Stopping lighting engine")
        self.hotplug.stop()
        self.signal_bus.stop()
        self._settings_service.unregister_observer(self)
        self.overlay.detach(self.events)
        self.profiles.detach()
        self.reconciler.shutdown(restore=restore)

        self._running = False
        self._stopped.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``stop()`` is called or ``timeout`` elapses. Returns True if stopped."""
        return self._stopped.wait(timeout)

    def __enter__(self) -> "LightingEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # =================================================================
    # Settings
    # =================================================================

    def on_model_event(self, event: ModelEvent, **kwargs) -> None:
        """Re-apply settings whenever they change."""
        if event is ModelEvent.MODEL_SAVED:
            return

        if event is ModelEvent.MODEL_UPDATED:
            changed = set(kwargs.get("keys", []))
            needs_restart = changed & _RESTART_FIELDS
            if needs_restart:
                logger.info(f"Changes to {sorted(needs_restart)} take effect after a restart")

        self.apply_settings(self._settings_service.get_model())

    def apply_settings(self, settings: Settings) -> None:
        """Apply layout, enabled signals and active profile from ``settings``."""
        self.events.publish(SettingsChanged(settings))

        self.mapper.set_layout(settings.layout)
        self.profiles.set_layout(settings.layout)
        self.signal_bus.set_enabled_signals(settings.signals)
        self.profiles.activate(settings.profile)

    # =================================================================
    # Profiles
    # =================================================================

    def create_profile(self, name: str, description: str | None = None) -> Profile:
        """Capture the keyboard's current wanted lighting as a new profile."""
        settings = self._settings_service.get_model()
        return self.profiles.create_profile(name, description, enabled_signals=settings.signals)

    def delete_profile(self, profile_id: str) -> Profile:
        return self.profiles.delete_profile(profile_id)

    def list_profiles(self) -> list[Profile]:
        return self.profiles.list_profiles()
