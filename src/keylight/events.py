"""In-process event channel with a closed set of typed messages.

Components publish messages here instead of calling each other directly:

- SignalBus publishes SignalValueChanged / SignalDisabled
- ProfileLayer publishes ProfileActivated
- LightingEngine publishes SettingsChanged
- StateReconciler publishes KeyboardConnected / KeyboardDisconnected

Delivery is serialized through one re-entrant lock, so handlers never run
concurrently with each other. A handler may publish further messages; they
are delivered immediately on the same thread.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock

from keylight.exceptions import ConfigurationError
from keylight.models import Settings, SignalValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalValueChanged:
    """A signal produced a value different from its previous one."""

    name: str
    value: SignalValue


@dataclass(frozen=True)
class SignalDisabled:
    """A signal was disabled and will not publish again until re-enabled."""

    name: str


@dataclass(frozen=True)
class ProfileActivated:
    """A profile became the active baseline."""

    profile_id: str


@dataclass(frozen=True)
class SettingsChanged:
    """Settings were updated, loaded or reset."""

    settings: Settings


@dataclass(frozen=True)
class KeyboardConnected:
    """The keyboard was claimed and initialized."""

    firmware: str


@dataclass(frozen=True)
class KeyboardDisconnected:
    """The keyboard went away or was released."""


Message = (
    SignalValueChanged
    | SignalDisabled
    | ProfileActivated
    | SettingsChanged
    | KeyboardConnected
    | KeyboardDisconnected
)

MESSAGE_TYPES: tuple[type, ...] = (
    SignalValueChanged,
    SignalDisabled,
    ProfileActivated,
    SettingsChanged,
    KeyboardConnected,
    KeyboardDisconnected,
)

Handler = Callable[[Message], None]


class EventChannel:
    """
    Publish/subscribe dispatcher for keylight messages.

    Threading:
        ``publish`` may be called from any thread. Handlers run on the
        publishing thread while it holds the dispatcher lock.

    Errors:
        A failing handler is logged and the remaining handlers still run.
        ConfigurationError is the exception: it is re-raised to the
        publisher once every handler has been called.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._handlers: dict[type, list[Handler]] = {message_type: [] for message_type in MESSAGE_TYPES}

    @staticmethod
    def _check_type(message_type: type) -> None:
        if message_type not in MESSAGE_TYPES:
            raise TypeError(f"Unknown message type: {message_type!r}")

    def subscribe(self, message_type: type, handler: Handler) -> None:
        """Call ``handler`` for every published message of ``message_type``."""
        self._check_type(message_type)
        with self._lock:
            if handler not in self._handlers[message_type]:
                self._handlers[message_type].append(handler)
                logger.debug(f"Subscribed {handler} to {message_type.__name__}")

    def unsubscribe(self, message_type: type, handler: Handler) -> None:
        """Stop delivering ``message_type`` to ``handler``."""
        self._check_type(message_type)
        with self._lock:
            if handler in self._handlers[message_type]:
                self._handlers[message_type].remove(handler)
                logger.debug(f"Unsubscribed {handler} from {message_type.__name__}")
            else:
                logger.warning(f"Attempted to unsubscribe unknown handler {handler} from {message_type.__name__}")

    def publish(self, message: Message) -> None:
        """
        Deliver ``message`` to every subscriber of its type.

        Raises:
            TypeError: If ``message`` is not one of the known message types
            ConfigurationError: If a handler raised one
        """
        message_type = type(message)
        self._check_type(message_type)

        config_error: ConfigurationError | None = None
        with self._lock:
            for handler in list(self._handlers[message_type]):
                try:
                    handler(message)
                except ConfigurationError as e:
                    logger.error(f"Configuration error handling {message}: {e.technical_message}")
                    if config_error is None:
                        config_error = e
                except Exception as e:
                    logger.error(f"Error in handler {handler} for {message}: {e}", exc_info=True)

        if config_error is not None:
            raise config_error

    def subscriber_count(self, message_type: type) -> int:
        """Number of handlers subscribed to ``message_type``."""
        self._check_type(message_type)
        with self._lock:
            return len(self._handlers[message_type])
