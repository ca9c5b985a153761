"""Mapping of signal values onto key lighting."""

from keylight.mapping.defaults import MAPPINGS_FILENAME, default_mappings, load_mappings, save_default_mappings
from keylight.mapping.expression import CompiledAnimation, CompiledExpression, compile_expression
from keylight.mapping.mapper import AnimationMapper, DefaultProvider, clamp
from keylight.mapping.overlay import OVERLAY_PRIORITY, SignalOverlay

__all__ = [
    "MAPPINGS_FILENAME",
    "OVERLAY_PRIORITY",
    "AnimationMapper",
    "CompiledAnimation",
    "CompiledExpression",
    "DefaultProvider",
    "SignalOverlay",
    "clamp",
    "compile_expression",
    "default_mappings",
    "load_mappings",
    "save_default_mappings",
]
