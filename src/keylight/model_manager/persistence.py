"""Shared utilities for Pydantic model persistence.

Loads and saves settings, profiles and mapping tables to/from JSON files in
the config directory.

Error Handling:
    Pydantic/JSON problems on load become ConfigurationError subclasses
    (via wrap_pydantic_error). Anything that prevents a document from being
    written becomes a PersistenceError, which is propagated to the caller.

Safety Features:
    - Automatic .bak backups before overwriting files
    - Atomic writes using temp file + rename
    - Never auto-saves over corrupted files
    - Only auto-saves when file is missing (FileNotFoundError)
"""

import logging
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from keylight.exceptions import (
    ConfigFileInvalidError,
    ConfigurationError,
    PersistenceError,
    wrap_pydantic_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class PydanticPersistence:
    """
    Stateless load/save helpers for Pydantic models.

    Example Usage:
        ```python
        settings = PydanticPersistence.load_json(Path("settings.json"), Settings)
        PydanticPersistence.save_json(settings, Path("settings.json"))
        ```

    Thread-Safety:
        All methods are thread-safe as they operate on function parameters
        and do not access shared mutable state.
    """

    @staticmethod
    def load_json(path: Path, model_type: type[T]) -> T:
        """
        Load and validate a Pydantic model from a JSON file.

        Args:
            path: Path to the JSON file to load
            model_type: The Pydantic model class to validate against

        Returns:
            Validated model instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigFileInvalidError: If the JSON syntax is invalid
            ConfigValidationError: If the JSON content fails Pydantic validation
        """
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            json_content = path.read_text(encoding="utf-8")

            if not json_content or not json_content.strip():
                raise ConfigFileInvalidError(str(path), "File is empty")

            model = model_type.model_validate_json(json_content)

            logger.debug(f"Loaded {model_type.__name__} from {path}")
            return model

        except ValidationError as e:
            logger.error(f"Validation error loading {model_type.__name__} from {path}: {e}")
            raise wrap_pydantic_error(e, str(path)) from e

        except ConfigurationError:
            raise

        except Exception as e:
            logger.error(f"Unexpected error loading {model_type.__name__} from {path}: {e}")
            raise ConfigFileInvalidError(str(path), f"Unexpected error: {e}") from e

    @staticmethod
    def save_json(
        data: BaseModel,
        path: Path,
        indent: int = 2,
        create_parents: bool = True,
        backup: bool = True,
    ) -> None:
        """
        Save a Pydantic model to a JSON file with automatic backup and atomic write.

        Documents are written by alias so the on-disk keys stay camelCase.

        Args:
            data: The Pydantic model instance to save
            path: Path where the file should be saved
            indent: JSON indentation level (default: 2 spaces)
            create_parents: Create parent directories if they don't exist (default: True)
            backup: Create .bak backup before overwriting existing file (default: True)

        Raises:
            PersistenceError: If serialization or the write fails
        """
        try:
            if create_parents and path.parent:
                path.parent.mkdir(parents=True, exist_ok=True)

            if backup and path.exists():
                backup_path = path.with_suffix(path.suffix + ".bak")
                shutil.copy2(path, backup_path)
                logger.debug(f"Created backup: {backup_path}")

            json_content = data.model_dump_json(indent=indent, by_alias=True)

            # Atomic write: temp file first, then rename
            temp_path = path.with_suffix(path.suffix + ".tmp")
            try:
                temp_path.write_text(json_content, encoding="utf-8")
                temp_path.replace(path)
                logger.debug(f"Saved {type(data).__name__} to {path}")
            finally:
                if temp_path.exists():
                    temp_path.unlink()

        except OSError as e:
            logger.error(f"OS error saving {type(data).__name__} to {path}: {e}")
            raise PersistenceError(
                user_message=f"Could not write {path}",
                technical_message=f"OS error saving {type(data).__name__} to {path}: {e}",
                recoverable=True,
                recovery_hint="Check file permissions and free disk space.",
            ) from e

        except Exception as e:
            logger.error(f"Unexpected error saving {type(data).__name__} to {path}: {e}")
            raise PersistenceError(
                user_message=f"Failed to save {path}",
                technical_message=f"Failed to save {type(data).__name__}: {e}",
                recovery_hint="A backup file (.bak) may be available.",
            ) from e

    @staticmethod
    def delete_json(path: Path) -> None:
        """
        Delete a persisted JSON document.

        Raises:
            FileNotFoundError: If the file doesn't exist
            PersistenceError: If the file exists but cannot be removed
        """
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            path.unlink()
            logger.debug(f"Deleted {path}")
        except OSError as e:
            logger.error(f"OS error deleting {path}: {e}")
            raise PersistenceError(
                user_message=f"Could not delete {path}",
                technical_message=f"OS error deleting {path}: {e}",
                recoverable=True,
                recovery_hint="Check file permissions.",
            ) from e

    @staticmethod
    def ensure_valid_or_create(
        path: Path,
        model_type: type[T],
        default_factory: Callable | None = None,
        auto_save: bool = True,
    ) -> T:
        """
        Ensure a valid JSON file exists, creating a default if needed.

        1. Tries to load the file
        2. If file doesn't exist: creates default and saves (if auto_save=True)
        3. If file is corrupted: returns default but DOES NOT save over the file

        Args:
            path: Path to the JSON file
            model_type: The Pydantic model class
            default_factory: Optional callable that returns a default instance
            auto_save: Save the default to disk if the file is missing (default: True)

        Returns:
            Valid model instance (loaded or newly created)
        """
        try:
            return PydanticPersistence.load_json(path, model_type)
        except FileNotFoundError:
            logger.info(f"File not found: {path}, creating default {model_type.__name__}")

            instance = default_factory() if default_factory else model_type()

            if auto_save:
                PydanticPersistence.save_json(instance, path, backup=False)
                logger.info(f"Saved default {model_type.__name__} to {path}")

            return instance

        except ConfigurationError as e:
            logger.error(f"Failed to load {path}: {e.user_message}")
            logger.warning(
                f"Using default {model_type.__name__} "
                f"(existing file NOT overwritten - manual recovery may be possible)"
            )

            if default_factory:
                return default_factory()
            return model_type()
