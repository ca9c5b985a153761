"""Profile documents stored as JSON files in the config directory."""

import logging
import threading
from pathlib import Path

from keylight.exceptions import PersistenceError, ProfileNotFoundError, collect_errors
from keylight.layouts import LAYOUTS
from keylight.mapping.expression import CompiledAnimation
from keylight.model_manager import PydanticPersistence
from keylight.models import Profile, StateChangeRequest, solid_color

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "default"
DEFAULT_PROFILE_COLOR = "2040FF"


def build_default_profile() -> Profile:
    """Built-in profile: every key of every known layout in a solid colour."""
    state = CompiledAnimation(solid_color(DEFAULT_PROFILE_COLOR)).resolve(0.0)
    return Profile(
        id=DEFAULT_PROFILE_ID,
        name="Default",
        description="Solid colour on every key",
        default_animations={
            layout: [StateChangeRequest(key=key, data=state) for key in keys]
            for layout, keys in LAYOUTS.items()
        },
        enabled_signals="all",
    )


class ProfileStore:
    """
    In-memory catalogue of profiles backed by ``<profiles_dir>/<id>.json``.

    The built-in ``default`` profile is always present and never written to
    disk. A file that fails to load is logged and skipped. Writes hit the
    disk first; the catalogue only changes once the write succeeded.
    """

    def __init__(self, profiles_dir: Path):
        self._profiles_dir = profiles_dir
        self._lock = threading.Lock()
        self._default = build_default_profile()
        self._profiles: dict[str, Profile] = {}

    @property
    def profiles_dir(self) -> Path:
        return self._profiles_dir

    def _path(self, profile_id: str) -> Path:
        return self._profiles_dir / f"{profile_id}.json"

    def load(self) -> None:
        """(Re)read every profile document from disk."""
        profiles: dict[str, Profile] = {}

        if self._profiles_dir.exists():
            collector = collect_errors("load profiles")
            for path in sorted(self._profiles_dir.glob("*.json")):
                with collector.try_operation(f"load {path.name}"):
                    profile = PydanticPersistence.load_json(path, Profile)
                    if profile.id == DEFAULT_PROFILE_ID:
                        logger.warning(f"Ignoring {path}: the '{DEFAULT_PROFILE_ID}' profile is built in")
                        continue
                    profiles[profile.id] = profile
            if collector.has_errors:
                logger.warning(collector.get_summary())

        with self._lock:
            self._profiles = profiles
        logger.info(f"Loaded {len(profiles)} profiles from {self._profiles_dir}")

    def list_profiles(self) -> list[Profile]:
        """Built-in default first, then stored profiles by name."""
        with self._lock:
            stored = sorted(self._profiles.values(), key=lambda profile: profile.name.lower())
        return [self._default, *stored]

    def get(self, profile_id: str) -> Profile:
        """
        Look up a profile.

        Raises:
            ProfileNotFoundError: If no profile has this id
        """
        if profile_id == DEFAULT_PROFILE_ID:
            return self._default
        with self._lock:
            profile = self._profiles.get(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def save(self, profile: Profile) -> None:
        """
        Persist ``profile`` and add it to the catalogue.

        Raises:
            PersistenceError: If the document could not be written
        """
        if profile.id == DEFAULT_PROFILE_ID:
            raise PersistenceError(
                user_message=f"The '{DEFAULT_PROFILE_ID}' profile is built in and cannot be overwritten",
                recoverable=True,
            )

        PydanticPersistence.save_json(profile, self._path(profile.id), backup=False)

        with self._lock:
            self._profiles[profile.id] = profile
        logger.info(f"Saved profile '{profile.name}' ({profile.id})")

    def delete(self, profile_id: str) -> Profile:
        """
        Remove a stored profile.

        Raises:
            PersistenceError: If asked to delete the built-in profile or the file cannot be removed
            ProfileNotFoundError: If no stored profile has this id
        """
        if profile_id == DEFAULT_PROFILE_ID:
            raise PersistenceError(
                user_message=f"The '{DEFAULT_PROFILE_ID}' profile is built in and cannot be deleted",
                recoverable=True,
            )

        profile = self.get(profile_id)
        try:
            PydanticPersistence.delete_json(self._path(profile_id))
        except FileNotFoundError:
            logger.warning(f"Profile {profile_id} had no file on disk")

        with self._lock:
            self._profiles.pop(profile_id, None)
        logger.info(f"Deleted profile '{profile.name}' ({profile_id})")
        return profile
