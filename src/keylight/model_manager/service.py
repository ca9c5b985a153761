"""Observable, persisted settings.

``ModelManagerService[Settings]`` is the single owner of keylight's settings
document. ``keylight config`` edits it, ``keylight profiles create
--activate`` switches the active profile through it, and a running
``LightingEngine`` observes it to redraw.
"""

import logging
from pathlib import Path
from threading import Lock
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from keylight.model_manager.observer import ObserverManager
from keylight.model_manager.persistence import PydanticPersistence
from keylight.model_manager.protocols import ModelEvent, ModelObserver

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class ModelManagerService(Generic[ModelType]):
    """
    Holds one pydantic model, validates every change and tells observers.

    Fields are addressed by their Python names (``sync_interval``), never by
    the camelCase names used on disk.

    Threading:
        Reads and writes take one lock. Observers are called after it is
        released, from the thread that made the change.

    Usage Example:
        ```python
        service = ModelManagerService[Settings](Settings, Settings(), settings_path(base))
        service.register_observer(engine)
        service.set("profile", "f3a9...")  # engine activates the profile
        service.save()
        ```
    """

    def __init__(
        self,
        model_type: type[ModelType],
        initial_model: ModelType,
        default_path: Path | None = None,
    ):
        """
        Args:
            model_type: Model class, used to validate updates and build defaults
            initial_model: Starting value, usually loaded from disk by the caller
            default_path: Document used by save() and load() when no path is given
        """
        self._model_type = model_type
        self._model = initial_model
        self._default_path = default_path
        self._lock = Lock()

        self._observers = ObserverManager[ModelObserver](
            lock=self._lock, observer_type_name="settings"
        )

        logger.debug(f"Managing {model_type.__name__} (document: {default_path})")

    # =================================================================
    # Observers
    # =================================================================

    def register_observer(self, observer: ModelObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: ModelObserver) -> None:
        self._observers.unregister(observer)

    def _notify_observers(self, event: ModelEvent, **kwargs: Any) -> None:
        self._observers.notify("on_model_event", event, **kwargs)

    # =================================================================
    # Reading
    # =================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Value of field ``key``, or ``default`` if the model has no such field."""
        with self._lock:
            return getattr(self._model, key, default)

    def get_all(self) -> dict[str, Any]:
        """Every field value, keyed by Python name."""
        with self._lock:
            return self._model.model_dump()

    def get_model(self) -> ModelType:
        """A deep copy, safe to hand to other threads."""
        with self._lock:
            return self._model.model_copy(deep=True)

    @property
    def default_path(self) -> Path | None:
        return self._default_path

    # =================================================================
    # Changing
    # =================================================================

    def set(self, key: str, value: Any) -> None:
        """Shorthand for ``update({key: value})``."""
        self.update({key: value})

    def update(self, values: dict[str, Any]) -> None:
        """
        Validate and apply ``values`` as one change.

        Observers receive one MODEL_UPDATED naming only the fields whose value
        actually changed. Nothing is sent when every value is already current,
        so re-setting the active profile does not redraw the keyboard.

        Raises:
            AttributeError: If a key is not a field of the model
            ValidationError: If the result does not validate; nothing is applied
        """
        with self._lock:
            unknown = [key for key in values if key not in self._model_type.model_fields]
            if unknown:
                raise AttributeError(f"'{self._model_type.__name__}' has no field '{unknown[0]}'")

            merged = self._model.model_dump()
            merged.update(values)
            try:
                updated = self._model_type.model_validate(merged)
            except ValidationError as e:
                logger.error(f"Rejected {self._model_type.__name__} update {values}: {e}")
                raise

            changed = {
                key: getattr(updated, key)
                for key in values
                if getattr(updated, key) != getattr(self._model, key)
            }
            self._model = updated

        if not changed:
            logger.debug(f"Update {values} left {self._model_type.__name__} unchanged")
            return

        logger.debug(f"{self._model_type.__name__} updated: {changed}")
        self._notify_observers(ModelEvent.MODEL_UPDATED, keys=list(changed), values=changed)

    def reset(self) -> None:
        """Replace the model with its defaults and send MODEL_RESET with a copy."""
        with self._lock:
            self._model = self._model_type()
            model_copy = self._model.model_copy(deep=True)

        logger.info(f"{self._model_type.__name__} reset to defaults")
        self._notify_observers(ModelEvent.MODEL_RESET, model=model_copy)

    # =================================================================
    # Persistence
    # =================================================================

    def _resolve_path(self, path: Path | None) -> Path:
        file_path = path or self._default_path
        if file_path is None:
            raise ValueError("No path given and the service has no default_path")
        return Path(file_path)

    def load(self, path: Path | None = None) -> None:
        """
        Replace the model with the document at ``path`` and send MODEL_LOADED.

        Raises:
            ValueError: If no path is given and there is no default_path
            FileNotFoundError: If the document does not exist
            ConfigurationError: If the document is invalid
        """
        file_path = self._resolve_path(path)
        loaded = PydanticPersistence.load_json(file_path, self._model_type)

        with self._lock:
            self._model = loaded

        logger.info(f"Loaded {self._model_type.__name__} from {file_path}")
        self._notify_observers(ModelEvent.MODEL_LOADED, path=file_path)

    def save(self, path: Path | None = None) -> None:
        """
        Write the model to ``path`` and send MODEL_SAVED.

        Raises:
            ValueError: If no path is given and there is no default_path
            PersistenceError: If the document cannot be written
        """
        file_path = self._resolve_path(path)

        with self._lock:
            model_copy = self._model.model_copy(deep=True)

        # Written outside the lock
        PydanticPersistence.save_json(model_copy, file_path)

        logger.info(f"Saved {self._model_type.__name__} to {file_path}")
        self._notify_observers(ModelEvent.MODEL_SAVED, path=file_path)
