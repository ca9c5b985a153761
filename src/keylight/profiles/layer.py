"""Profile layer: the baseline lighting under every signal."""

import logging
import threading
from uuid import uuid4

from keylight.events import EventChannel, ProfileActivated
from keylight.exceptions import PersistenceError, handle_errors
from keylight.keyboard.reconciler import StateReconciler
from keylight.layouts import keys_for_layout
from keylight.models import NULL_PROFILE, KeyState, Profile, StateChangeRequest
from keylight.profiles.store import DEFAULT_PROFILE_ID, ProfileStore

logger = logging.getLogger(__name__)

BASELINE_PRIORITY = 0


class ProfileLayer:
    """
    Serves the active profile's default key states.

    Its tick listener runs at priority 0, before the signal overlay, so a
    signal-driven key never flickers back to the profile within a tick.
    Keys the profile does not mention are turned off.
    """

    def __init__(
        self,
        store: ProfileStore,
        reconciler: StateReconciler,
        events: EventChannel,
        profile_id: str = DEFAULT_PROFILE_ID,
        layout: str = "en-US",
    ):
        self._store = store
        self._reconciler = reconciler
        self._events = events
        self._lock = threading.Lock()
        self._profile_id = profile_id
        self._layout = layout
        self._active: Profile | None = None

    def attach(self) -> None:
        """Join the reconciler tick at baseline priority."""
        self._reconciler.add_tick_listener(BASELINE_PRIORITY, self.tick)

    def detach(self) -> None:
        self._reconciler.remove_tick_listener(self.tick)

    # =================================================================
    # Active profile
    # =================================================================

    def _resolve(self, profile_id: str) -> Profile:
        try:
            return self._store.get(profile_id)
        except PersistenceError as e:
            logger.warning(f"Active profile unavailable ({e.user_message}), all keys off")
            return NULL_PROFILE

    def get_active_profile(self) -> Profile:
        """The profile named in settings, or the all-off profile if it cannot be found."""
        with self._lock:
            if self._active is None:
                self._active = self._resolve(self._profile_id)
            return self._active

    @property
    def profile_id(self) -> str:
        with self._lock:
            return self._profile_id

    @property
    def layout(self) -> str:
        with self._lock:
            return self._layout

    def set_layout(self, layout: str) -> None:
        with self._lock:
            self._layout = layout

    def activate(self, profile_id: str | None = None) -> Profile:
        """
        Make ``profile_id`` (default: the current one) the baseline and redraw.

        Runs a full reconciler tick, so the baseline and the signal overlay
        land in the same pass.
        """
        with self._lock:
            if profile_id is not None:
                self._profile_id = profile_id
            self._active = self._resolve(self._profile_id)
            active = self._active
            resolved_id = self._profile_id

        logger.info(f"Activated profile '{active.name}' ({resolved_id})")
        self._events.publish(ProfileActivated(resolved_id))
        self._reconciler.tick()
        return active

    def tick(self) -> list[StateChangeRequest]:
        """
        Baseline requests for every key of the current layout.

        Layout keys the profile does not mention are off, followed by any
        extra keys the profile names.
        """
        profile = self.get_active_profile()
        with self._lock:
            layout = self._layout

        named = {request.key: request for request in profile.defaults_for_layout(layout)}
        requests = [
            named.pop(key, None) or StateChangeRequest(key=key, data=KeyState.off())
            for key in keys_for_layout(layout)
        ]
        return requests + list(named.values())

    def default_for(self, keys: list[str]) -> list[StateChangeRequest]:
        """The active profile's request for each of ``keys``; unmentioned keys are off."""
        by_key = {request.key: request for request in self.tick()}
        return [by_key.get(key) or StateChangeRequest(key=key, data=KeyState.off()) for key in keys]

    # =================================================================
    # Catalogue
    # =================================================================

    def list_profiles(self) -> list[Profile]:
        return self._store.list_profiles()

    def get_profile(self, profile_id: str) -> Profile:
        """
        Raises:
            ProfileNotFoundError: If no profile has this id
        """
        return self._store.get(profile_id)

    @handle_errors(operation_name="create profile")
    def create_profile(
        self,
        name: str,
        description: str | None = None,
        enabled_signals: list[str] | str = "all",
    ) -> Profile:
        """
        Capture every key's wanted state as a new profile and persist it.

        Raises:
            PersistenceError: If the profile could not be written; the
                catalogue is left unchanged
        """
        with self._lock:
            layout = self._layout

        profile = Profile(
            id=uuid4().hex,
            name=name,
            description=description,
            default_animations={layout: self._reconciler.get_wanted_states()},
            enabled_signals=enabled_signals,
        )
        self._store.save(profile)
        return profile

    @handle_errors(operation_name="delete profile")
    def delete_profile(self, profile_id: str) -> Profile:
        """
        Remove a stored profile. Deleting the active profile turns the baseline off.

        Raises:
            PersistenceError: If ``profile_id`` is the built-in default or the file cannot be removed
            ProfileNotFoundError: If no stored profile has this id
        """
        profile = self._store.delete(profile_id)

        with self._lock:
            was_active = profile_id == self._profile_id
        if was_active:
            self.activate()
        return profile
