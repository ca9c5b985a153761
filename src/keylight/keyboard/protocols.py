"""Keyboard driver protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from keylight.models import Channel, ChannelState, FirmwareInfo


@runtime_checkable
class KeyboardDriver(Protocol):
    """
    Hardware abstraction the reconciler drives.

    The wire protocol and USB plumbing live behind this interface. Every
    method may raise; the reconciler converts failures into HardwareError.
    """

    name: str

    def is_present(self) -> bool:
        """Whether a matching keyboard is currently plugged in."""
        ...

    def claim(self) -> None:
        """Find the keyboard and take exclusive control of it."""
        ...

    def initialize(self) -> FirmwareInfo:
        """Prepare the claimed keyboard for per-key updates."""
        ...

    def set_key_channel(self, key: str, channel: Channel, state: ChannelState) -> None:
        """
        Send one channel of one key.

        Fields of ``state`` that are None must be left at the hardware default.
        """
        ...

    def commit(self) -> None:
        """Make all channels sent since the last commit visible at once."""
        ...

    def restore_hardware_profile(self) -> None:
        """Hand lighting back to the keyboard's own stored program."""
        ...

    def close(self) -> None:
        """Release the keyboard. Safe to call when not claimed."""
        ...
