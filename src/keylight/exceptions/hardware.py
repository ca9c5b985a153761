"""Keyboard hardware exceptions.

These are recovered locally by the reconciler: they are logged, the pass is
retried on the next tick and an initialization failure leaves the keyboard
disconnected.
"""

from typing import Optional

from .base import KeylightError


class HardwareError(KeylightError):
    """Keyboard claim, initialization or write failed."""

    def __init__(self, user_message: str, original_error: Optional[str] = None, **kwargs):
        """
        Initialize hardware error.

        Args:
            user_message: User-friendly error message
            original_error: The message of the driver exception, if any
        """
        technical = kwargs.pop("technical_message", None)
        if technical is None and original_error:
            technical = f"{user_message}\nOriginal error: {original_error}"
        kwargs.setdefault("recoverable", True)
        super().__init__(user_message, technical_message=technical, **kwargs)
        self.original_error = original_error


class DeviceClaimError(HardwareError):
    """The keyboard could not be claimed or initialized."""

    def __init__(self, original_error: Optional[str] = None):
        super().__init__(
            "Could not take control of the keyboard.",
            original_error=original_error,
            recovery_hint=(
                "Make sure no other lighting software is running and that your user "
                "has permission to access the USB device."
            ),
        )


class DeviceWriteError(HardwareError):
    """Sending a channel state or commit to the keyboard failed."""

    def __init__(self, key: str, original_error: Optional[str] = None):
        super().__init__(
            f"Failed to update key '{key}' on the keyboard.",
            original_error=original_error,
        )
        self.key = key
