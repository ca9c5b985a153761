"""Profiles: persisted baseline lighting programs."""

from keylight.profiles.layer import BASELINE_PRIORITY, ProfileLayer
from keylight.profiles.store import DEFAULT_PROFILE_ID, ProfileStore, build_default_profile

__all__ = ["BASELINE_PRIORITY", "DEFAULT_PROFILE_ID", "ProfileLayer", "ProfileStore", "build_default_profile"]
