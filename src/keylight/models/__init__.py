"""Data models for keylight."""

from .animation import Animation, ChannelAnimation, parse_hex_color, solid_color, solid_color_flashing
from .channel import Channel, ChannelState, Direction, KeyState, StateChangeRequest
from .keyboard import FirmwareInfo
from .mapping import LayoutMapping, MappingMode, MappingTable, Range, SignalMapping
from .profile import NULL_PROFILE, Profile
from .settings import Settings
from .signal import (
    NO_SIGNAL,
    HookHandle,
    HookSource,
    NoSignal,
    PluginSignal,
    PollingCallbackSource,
    PollingSource,
    SignalCallback,
    SignalProviderPlugin,
    SignalSource,
    SignalValue,
    normalize_signal,
)

__all__ = [
    # Animations
    "Animation",
    "ChannelAnimation",
    "parse_hex_color",
    "solid_color",
    "solid_color_flashing",
    # Key state
    "Channel",
    "ChannelState",
    "Direction",
    "KeyState",
    "StateChangeRequest",
    # Keyboard
    "FirmwareInfo",
    # Mappings
    "LayoutMapping",
    "MappingMode",
    "MappingTable",
    "Range",
    "SignalMapping",
    # Profiles and settings
    "NULL_PROFILE",
    "Profile",
    "Settings",
    # Signals
    "NO_SIGNAL",
    "HookHandle",
    "HookSource",
    "NoSignal",
    "PluginSignal",
    "PollingCallbackSource",
    "PollingSource",
    "SignalCallback",
    "SignalProviderPlugin",
    "SignalSource",
    "SignalValue",
    "normalize_signal",
]
