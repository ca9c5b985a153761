"""Repeating background timer."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """
    Calls ``callback`` every ``interval`` seconds on a daemon thread.

    The first call happens one interval after ``start()``. Exceptions raised
    by the callback are logged and the timer keeps running.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "timer"):
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        """Start firing."""
        if self._thread is not None:
            logger.warning(f"Timer {self._name} is already started")
            return

        self._thread = threading.Thread(target=self._run, name=f"keylight-{self._name}", daemon=True)
        self._thread.start()
        logger.debug(f"Timer {self._name} started (interval={self._interval}s)")

    def stop(self, timeout: float = 2.0) -> None:
        """
        Stop firing and wait for an in-progress call to finish.

        When called from the timer's own callback the thread is not joined;
        no further calls happen after the current one returns.
        """
        self._stop_event.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Timer {self._name} did not stop within {timeout}s")

        logger.debug(f"Timer {self._name} stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Error in timer {self._name}: {e}", exc_info=True)
