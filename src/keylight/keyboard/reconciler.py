"""State reconciler: drives the keyboard toward the wanted per-key state."""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from keylight.events import EventChannel, KeyboardConnected, KeyboardDisconnected
from keylight.exceptions import ErrorContext, wrap_hardware_error
from keylight.keyboard.protocols import KeyboardDriver
from keylight.models import FirmwareInfo, KeyState, StateChangeRequest
from keylight.signals.timer import RepeatingTimer

logger = logging.getLogger(__name__)

TickListener = Callable[[], list[StateChangeRequest]]


class ConnectionState(Enum):
    """Keyboard connectivity as seen by the reconciler."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class StateReconciler:
    """
    Owns WantedState and CurrentState and applies their difference.

    WantedState is what every layer asked for (last write wins per key).
    CurrentState mirrors what was actually written to the keyboard. A
    reconciliation pass sends only the channels that differ, then commits
    once.

    Threading:
        Both states, the dirty flag and connectivity share one RLock. A pass
        holds it for its whole duration, so a detach waits for a running
        pass and blocks new passes until the keyboard is initialized again.
        Events are published after the lock is released.
    """

    def __init__(
        self,
        driver: KeyboardDriver,
        events: EventChannel,
        sync_interval: float = 1.0,
        connect_delay: float = 2.0,
    ):
        self._driver = driver
        self._events = events
        self._sync_interval = sync_interval
        self._connect_delay = connect_delay

        self._lock = threading.RLock()
        self._wanted: dict[str, KeyState] = {}
        self._current: dict[str, KeyState] = {}
        self._dirty = False
        self._state = ConnectionState.DISCONNECTED
        self._uncommitted = False
        self._firmware = FirmwareInfo()
        self._pending_connect: threading.Event | None = None

        self._listeners_lock = threading.Lock()
        self._tick_listeners: list[tuple[int, TickListener]] = []
        self._timer: RepeatingTimer | None = None

    # =================================================================
    # State access
    # =================================================================

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def firmware(self) -> FirmwareInfo:
        with self._lock:
            return self._firmware

    @property
    def is_dirty(self) -> bool:
        with self._lock:
            return self._dirty

    @property
    def wanted_state(self) -> dict[str, KeyState]:
        with self._lock:
            return dict(self._wanted)

    @property
    def current_state(self) -> dict[str, KeyState]:
        with self._lock:
            return dict(self._current)

    def get_wanted_states(self) -> list[StateChangeRequest]:
        """Every known key with its wanted state, or its current state if nothing is wanted for it."""
        with self._lock:
            states = dict(self._current)
            states.update(self._wanted)
        return [StateChangeRequest(key=key, data=data) for key, data in states.items()]

    # =================================================================
    # Changes and passes
    # =================================================================

    def process_key_changes(self, changes: list[StateChangeRequest], sync: bool = True) -> None:
        """
        Merge ``changes`` into WantedState.

        Args:
            changes: Requests to apply; a later request for the same key wins
            sync: Run a reconciliation pass now instead of on the next tick
        """
        with self._lock:
            for change in changes:
                self._wanted[change.key] = change.data
            if changes:
                self._dirty = True

            if sync:
                self.reconcile()

    def reconcile(self) -> int:
        """
        Run one reconciliation pass.

        Does nothing unless the state is dirty and the keyboard is connected.
        A failing pass is logged and leaves the dirty flag set; channels sent
        before the failure stay recorded in CurrentState. A failed commit is
        retried by the next pass even if no channel differs.

        Returns:
            Number of channels sent
        """
        with self._lock:
            if not self._dirty or self._state is not ConnectionState.CONNECTED:
                return 0

            sent = 0
            key: str | None = None
            try:
                for key, wanted in list(self._wanted.items()):
                    current = self._current.get(key)
                    for channel, channel_state in wanted.channels():
                        if current is None or current.channel(channel) != channel_state:
                            self._driver.set_key_channel(key, channel, channel_state)
                            self._uncommitted = True
                            sent += 1
                    self._current[key] = wanted

                key = "commit"
                if self._uncommitted:
                    self._driver.commit()
                    self._uncommitted = False
            except Exception as e:
                error = wrap_hardware_error(e, key=key)
                logger.error(f"Reconciliation pass failed after {sent} channels: {error.technical_message}")
                return sent

            self._dirty = False

        if sent:
            logger.debug(f"Reconciled {sent} channels")
        return sent

    # =================================================================
    # Tick loop
    # =================================================================

    def add_tick_listener(self, priority: int, listener: TickListener) -> None:
        """
        Call ``listener`` on every tick; lower priorities run first.

        The requests it returns are merged without syncing, then one pass
        runs after all listeners.
        """
        with self._listeners_lock:
            self._tick_listeners.append((priority, listener))
            self._tick_listeners.sort(key=lambda entry: entry[0])

    def remove_tick_listener(self, listener: TickListener) -> None:
        with self._listeners_lock:
            self._tick_listeners = [entry for entry in self._tick_listeners if entry[1] != listener]

    def tick(self) -> None:
        """Run every tick listener in priority order, then one pass."""
        with self._listeners_lock:
            listeners = list(self._tick_listeners)

        for priority, listener in listeners:
            try:
                changes = listener()
            except Exception as e:
                logger.error(f"Tick listener {listener} (priority {priority}) failed: {e}", exc_info=True)
                continue
            self.process_key_changes(changes, sync=False)

        self.reconcile()

    def start(self) -> None:
        """Start the periodic tick."""
        if self._timer is not None:
            return
        self._timer = RepeatingTimer(self._sync_interval, self.tick, name="reconciler")
        self._timer.start()

    def stop(self) -> None:
        """Stop the periodic tick."""
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    # =================================================================
    # Connectivity
    # =================================================================

    def on_attach(self) -> None:
        """
        Keyboard appeared: wait for it to boot, then claim and initialize it.

        A second attach while waiting restarts the wait. With a zero delay
        the keyboard is connected before this returns.
        """
        with self._lock:
            if self._state is ConnectionState.CONNECTED:
                logger.debug("Attach ignored, keyboard already connected")
                return
            if self._pending_connect is not None:
                self._pending_connect.set()
            cancel = threading.Event()
            self._pending_connect = cancel
            self._state = ConnectionState.CONNECTING

        if self._connect_delay <= 0:
            self._connect(cancel)
        else:
            threading.Thread(
                target=self._connect_after_delay, args=(cancel,), name="keylight-connect", daemon=True
            ).start()

    def _connect_after_delay(self, cancel: threading.Event) -> None:
        if cancel.wait(self._connect_delay):
            logger.debug("Pending keyboard connect cancelled")
            return
        self._connect(cancel)

    def _connect(self, cancel: threading.Event) -> None:
        with self._lock:
            if cancel.is_set() or self._pending_connect is not cancel:
                return
            self._pending_connect = None

            with ErrorContext("initialize keyboard", logger_instance=logger, re_raise=False) as ctx:
                self._driver.claim()
                firmware = self._driver.initialize()

            if ctx.error is not None:
                error = wrap_hardware_error(ctx.error)
                logger.warning(f"{error.user_message} Staying disconnected.")
                self._release()
                self._state = ConnectionState.DISCONNECTED
                return

            self._state = ConnectionState.CONNECTED
            self._firmware = firmware
            # CurrentState is empty, so the pass below resends every wanted key
            self._current.clear()
            self._uncommitted = False
            self._dirty = True
            logger.info(f"Keyboard connected (firmware {firmware.firmware})")
            self.reconcile()

        self._events.publish(KeyboardConnected(firmware.firmware))

    def on_detach(self) -> None:
        """Keyboard went away: forget what it shows and release it."""
        with self._lock:
            if self._pending_connect is not None:
                self._pending_connect.set()
                self._pending_connect = None
            was_connected = self._state is ConnectionState.CONNECTED
            self._state = ConnectionState.DISCONNECTED
            self._current.clear()
            self._uncommitted = False
            self._firmware = FirmwareInfo()
            self._release()

        logger.info("Keyboard disconnected")
        if was_connected:
            self._events.publish(KeyboardDisconnected())

    def _release(self) -> None:
        try:
            self._driver.close()
        except Exception as e:
            logger.error(f"Error releasing keyboard: {e}")

    def shutdown(self, restore: bool = True) -> None:
        """
        Stop ticking and release the keyboard.

        Args:
            restore: Ask the keyboard to show its own stored lighting again
        """
        self.stop()

        with self._lock:
            if self._pending_connect is not None:
                self._pending_connect.set()
                self._pending_connect = None
            was_connected = self._state is ConnectionState.CONNECTED
            if was_connected and restore:
                try:
                    self._driver.restore_hardware_profile()
                except Exception as e:
                    logger.error(f"Error restoring hardware profile: {wrap_hardware_error(e).technical_message}")
            self._state = ConnectionState.DISCONNECTED
            self._current.clear()
            self._uncommitted = False
            self._firmware = FirmwareInfo()
            self._release()

        if was_connected:
            self._events.publish(KeyboardDisconnected())
        logger.info("StateReconciler shut down")
