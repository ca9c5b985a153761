"""Keyboard identity model."""

from pydantic import BaseModel, ConfigDict


class FirmwareInfo(BaseModel):
    """Firmware identity reported by a keyboard when it is initialized."""

    model_config = ConfigDict(frozen=True)

    firmware: str = "unknown"
