"""Observer bookkeeping for the settings service.

The lighting engine registers here to redraw when settings change. The list
shares the service's lock, and callbacks run after that lock is released so
an observer may read settings back while it is being notified.
"""

import logging
from threading import Lock
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=object)


class ObserverManager(Generic[T]):
    """
    Registered observers of one kind, notified by callback name.

    A failing observer is logged and skipped; the remaining observers are
    still notified and nothing reaches the code that changed the settings.
    """

    def __init__(self, lock: "Lock | None" = None, observer_type_name: str = "observer"):
        """
        Args:
            lock: Lock to share with the owner (a fresh one if omitted)
            observer_type_name: Label used in log messages, e.g. "settings"
        """
        self._observers: list[T] = []
        self._lock = lock or Lock()
        self._observer_type_name = observer_type_name

    def register(self, observer: T) -> None:
        """Add ``observer``; registering it twice has no effect."""
        with self._lock:
            if observer in self._observers:
                logger.debug(f"{observer} already observes {self._observer_type_name}")
                return
            self._observers.append(observer)
        logger.info(f"{observer} now observes {self._observer_type_name}")

    def unregister(self, observer: T) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                logger.warning(f"{observer} was not observing {self._observer_type_name}")
                return
        logger.debug(f"{observer} stopped observing {self._observer_type_name}")

    def notify(self, callback_name: str, *args: Any, **kwargs: Any) -> None:
        """Call ``observer.<callback_name>(*args, **kwargs)`` on a snapshot of the observers."""
        with self._lock:
            observers = list(self._observers)

        for observer in observers:
            callback = getattr(observer, callback_name, None)
            if callback is None:
                logger.error(f"{self._observer_type_name} observer {observer} has no '{callback_name}'")
                continue
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{self._observer_type_name} observer {observer} failed in {callback_name}: {e}",
                    exc_info=True,
                )

    def __contains__(self, observer: T) -> bool:
        with self._lock:
            return observer in self._observers

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)
