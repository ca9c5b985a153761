"""In-memory keyboard used for dry runs and tests."""

import logging
import threading

from keylight.models import Channel, ChannelState, FirmwareInfo, KeyState

logger = logging.getLogger(__name__)


class SimulatedKeyboard:
    """
    Keyboard driver that records writes instead of talking to hardware.

    ``writes`` lists every ``(key, channel, state)`` sent, ``commits``
    counts commit calls and ``visible`` holds the per-key state as of the
    last commit.
    """

    name = "simulated"

    def __init__(self, present: bool = True, firmware: str = "simulated-1.0"):
        self._lock = threading.Lock()
        self._present = present
        self._firmware = firmware
        self.claimed = False
        self.initialized = False
        self.restored = False
        self.writes: list[tuple[str, Channel, ChannelState]] = []
        self.commits = 0
        self._pending: dict[str, dict[Channel, ChannelState]] = {}
        self.visible: dict[str, KeyState] = {}

    # Test/dry-run controls

    def plug(self) -> None:
        with self._lock:
            self._present = True
        logger.info("Simulated keyboard plugged in")

    def unplug(self) -> None:
        with self._lock:
            self._present = False
            self.claimed = False
            self.initialized = False
        logger.info("Simulated keyboard unplugged")

    # KeyboardDriver

    def is_present(self) -> bool:
        with self._lock:
            return self._present

    def claim(self) -> None:
        with self._lock:
            if not self._present:
                raise OSError("No simulated keyboard present")
            self.claimed = True
            self.restored = False
        logger.debug("Simulated keyboard claimed")

    def initialize(self) -> FirmwareInfo:
        with self._lock:
            if not self.claimed:
                raise OSError("Simulated keyboard is not claimed")
            self.initialized = True
        return FirmwareInfo(firmware=self._firmware)

    def set_key_channel(self, key: str, channel: Channel, state: ChannelState) -> None:
        with self._lock:
            if not self.initialized:
                raise OSError("Simulated keyboard is not initialized")
            self.writes.append((key, channel, state))
            self._pending.setdefault(key, {})[channel] = state

    def commit(self) -> None:
        with self._lock:
            if not self.initialized:
                raise OSError("Simulated keyboard is not initialized")
            for key, channels in self._pending.items():
                previous = self.visible.get(key, KeyState())
                self.visible[key] = previous.model_copy(update={c.value: s for c, s in channels.items()})
            self._pending.clear()
            self.commits += 1

    def restore_hardware_profile(self) -> None:
        with self._lock:
            self.restored = True
            self.visible.clear()
        logger.debug("Simulated keyboard restored its hardware profile")

    def close(self) -> None:
        with self._lock:
            self.claimed = False
            self.initialized = False
            self._pending.clear()
        logger.debug("Simulated keyboard released")
