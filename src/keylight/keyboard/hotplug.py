"""Polling hot-plug monitor."""

import logging
import queue
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class HotplugMonitor:
    """
    Polls ``discover()`` and reports keyboard arrival and removal.

    Callbacks run on a dispatcher thread, in the order the changes were
    seen, so a slow attach (claiming the device) never stalls polling.
    """

    def __init__(
        self,
        discover: Callable[[], bool],
        on_attach: Callable[[], None],
        on_detach: Callable[[], None],
        poll_interval: float = 2.0,
    ):
        self._discover = discover
        self._on_attach = on_attach
        self._on_detach = on_detach
        self._poll_interval = poll_interval
        self._present = False
        self._stop_event = threading.Event()
        self._events: queue.Queue[Callable[[], None] | None] = queue.Queue()
        self._monitor_thread: threading.Thread | None = None
        self._dispatch_thread: threading.Thread | None = None

    @property
    def is_present(self) -> bool:
        return self._present

    def start(self) -> None:
        """Start polling. A keyboard already present is reported as attached."""
        if self._monitor_thread is not None:
            logger.warning("HotplugMonitor is already running")
            return

        self._stop_event.clear()
        self._dispatch_thread = threading.Thread(target=self._dispatch, name="keylight-hotplug-events", daemon=True)
        self._dispatch_thread.start()
        self._monitor_thread = threading.Thread(target=self._monitor, name="keylight-hotplug", daemon=True)
        self._monitor_thread.start()
        logger.debug("HotplugMonitor started")

    def stop(self) -> None:
        """Stop polling and dispatching."""
        self._stop_event.set()
        self._events.put(None)

        for thread in (self._monitor_thread, self._dispatch_thread):
            if thread is not None and thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=max(1.0, self._poll_interval))

        self._monitor_thread = None
        self._dispatch_thread = None
        logger.debug("HotplugMonitor stopped")

    def poll_once(self) -> None:
        """Check presence once and queue a callback if it changed."""
        try:
            present = bool(self._discover())
        except Exception as e:
            logger.error(f"Error checking for keyboard: {e}")
            return

        if present == self._present:
            return

        self._present = present
        if present:
            logger.info("Keyboard attached")
            self._events.put(self._on_attach)
        else:
            logger.warning("Keyboard detached")
            self._events.put(self._on_detach)

    def _monitor(self) -> None:
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self._poll_interval)

    def _dispatch(self) -> None:
        while True:
            callback = self._events.get()
            if callback is None or self._stop_event.is_set():
                return
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in hot-plug callback: {e}", exc_info=True)
