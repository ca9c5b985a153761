"""
Centralized error handling utilities.

Each layer translates errors so they are more useful one level up:

```
┌──────────────────────────────────────┐
│  USER LAYER (CLI)                    │
│  - Prints error.user_message         │
│  - Shows error.recovery_hint         │
└──────────────────────────────────────┘
                  ↑ KeylightError
┌──────────────────────────────────────┐
│  ENGINE LAYER (bus, mapper, layers)  │
│  - Converts low-level exceptions     │
│  - Adds context and recovery hints   │
└──────────────────────────────────────┘
                  ↑ Exception, OSError, ...
┌──────────────────────────────────────┐
│  LOW LEVEL (drivers, psutil, I/O)    │
└──────────────────────────────────────┘
```

## Handling Patterns

| Pattern | Code |
|---------|------|
| Log and re-raise | `@handle_errors(operation_name="create profile", re_raise=True)` |
| Log and return a fallback | `@handle_errors(operation_name="poll", re_raise=False, fallback_value=NO_SIGNAL)` |
| Try many ops, collect errors | `collector = collect_errors("load profiles"); with collector.try_operation(...): ...` |
| Critical section with logging | `with ErrorContext("initialize keyboard"): ...` |

Never swallow errors silently: either log them here or let them propagate.
"""

import logging
from functools import wraps
from typing import Callable, Optional, TypeVar

from .base import KeylightError
from .config import ConfigFileInvalidError, ConfigValidationError
from .hardware import DeviceClaimError, DeviceWriteError, HardwareError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def handle_errors(
    *,
    operation_name: str,
    user_notification: Optional[Callable[[str], None]] = None,
    fallback_value: Optional[T] = None,
    re_raise: bool = True,
    log_level: int = logging.ERROR
) -> Callable:
    """
    Decorator for consistent error handling.

    Args:
        operation_name: Name of the operation for logging (e.g., "create profile")
        user_notification: Optional callback to notify the user (e.g., click.echo)
        fallback_value: Value to return if an error occurs and re_raise=False
        re_raise: Whether to re-raise the exception after handling
        log_level: Logging level for the error (default: ERROR)

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)

            except KeylightError as e:
                logger.log(log_level, f"Failed to {operation_name}: {e.technical_message}")

                if user_notification:
                    user_notification(e.get_full_message())

                if re_raise:
                    raise
                return fallback_value

            except Exception as e:
                logger.log(
                    log_level,
                    f"Unexpected error during {operation_name}: {e}",
                    exc_info=True
                )

                if user_notification:
                    user_notification(f"Error: {e}")

                if re_raise:
                    raise
                return fallback_value

        return wrapper
    return decorator


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Example:
        ```python
        with ErrorContext("initialize keyboard", re_raise=False) as ctx:
            driver.claim()

        if ctx.error:
            ...
        ```
    """

    def __init__(
        self,
        operation: str,
        logger_instance: Optional[logging.Logger] = None,
        re_raise: bool = True
    ):
        """
        Initialize error context.

        Args:
            operation: Description of the operation
            logger_instance: Logger to use (defaults to module logger)
            re_raise: Whether to re-raise exceptions
        """
        self.operation = operation
        self.logger = logger_instance or logger
        self.re_raise = re_raise
        self.error: Optional[BaseException] = None

    def __enter__(self):
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation}")
            return False

        self.error = exc_val

        if isinstance(exc_val, KeylightError):
            self.logger.error(f"Failed to {self.operation}: {exc_val.technical_message}")
        else:
            self.logger.error(f"Failed to {self.operation}: {exc_val}", exc_info=True)

        # True suppresses the exception
        return not self.re_raise


def wrap_pydantic_error(error: Exception, file_path: str) -> KeylightError:
    """
    Convert Pydantic validation errors to keylight exceptions.

    Args:
        error: The Pydantic ValidationError
        file_path: Path to the document that failed validation

    Returns:
        A ConfigurationError with appropriate type and message
    """
    from pydantic import ValidationError

    error_msg = str(error)

    if "Invalid JSON" in error_msg or "json_invalid" in error_msg:
        # Format: "Invalid JSON: <actual error> [type=json_invalid, ..."
        if "Invalid JSON:" in error_msg:
            parse_error = error_msg.split("Invalid JSON:")[1].split("[type=")[0].strip()
        else:
            parse_error = error_msg

        return ConfigFileInvalidError(file_path, parse_error)

    if isinstance(error, ValidationError):
        errors = error.errors()
        if errors:
            if len(errors) == 1:
                first_error = errors[0]
                field = ".".join(str(loc) for loc in first_error.get('loc', ('unknown',)))
                return ConfigValidationError(
                    field=field,
                    value=first_error.get('input', None),
                    error_msg=first_error.get('msg', 'validation failed'),
                    file_path=file_path
                )

            error_lines = []
            for err in errors:
                field = ".".join(str(loc) for loc in err.get('loc', ('unknown',)))
                msg = err.get('msg', 'validation failed')
                error_lines.append(f"  - {field}: {msg}")

            combined_msg = f"{len(errors)} validation errors:\n" + "\n".join(error_lines)
            return ConfigValidationError(
                field="multiple fields",
                value=None,
                error_msg=combined_msg,
                file_path=file_path
            )

    return ConfigValidationError(
        field="unknown",
        value=None,
        error_msg=error_msg,
        file_path=file_path
    )


def wrap_hardware_error(error: Exception, key: Optional[str] = None) -> HardwareError:
    """
    Convert low-level driver errors to keylight hardware exceptions.

    Args:
        error: The original exception raised by the keyboard driver
        key: The key being written when the error occurred (None during claim)

    Returns:
        A HardwareError with appropriate type and message
    """
    if isinstance(error, HardwareError):
        return error

    error_msg = str(error)
    if key is None:
        return DeviceClaimError(original_error=error_msg)
    return DeviceWriteError(key, original_error=error_msg)


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Args:
        error: The exception to format

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, KeylightError):
        return error.user_message, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None


def collect_errors(operation: str) -> "ErrorCollector":
    """
    Create an error collector for batch operations.

    Example:
        ```python
        collector = collect_errors("load profiles")

        for path in directory.glob("*.json"):
            with collector.try_operation(f"load {path.name}"):
                load_profile(path)

        if collector.has_errors:
            logger.warning(collector.get_summary())
        ```
    """
    return ErrorCollector(operation)


class ErrorCollector:
    """
    Collects multiple errors during batch operations.

    Allows operations to continue even if some fail, then
    report all failures at once.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.errors: list[tuple[str, Exception]] = []
        self.success_count = 0

    @property
    def has_errors(self) -> bool:
        """Check if any errors were collected."""
        return len(self.errors) > 0

    @property
    def error_count(self) -> int:
        """Get the number of errors collected."""
        return len(self.errors)

    def try_operation(self, sub_operation: str):
        """
        Context manager for a single operation within the batch.

        Args:
            sub_operation: Description of this specific operation
        """
        return self._OperationContext(self, sub_operation)

    def get_summary(self) -> str:
        """Get a multi-line summary of collected errors."""
        if not self.has_errors:
            return f"All operations completed successfully ({self.success_count} total)"

        summary = f"Failed {self.error_count} of {self.error_count + self.success_count} operations:\n"
        for sub_op, error in self.errors:
            if isinstance(error, KeylightError):
                summary += f"  - {sub_op}: {error.user_message}\n"
            else:
                summary += f"  - {sub_op}: {error}\n"

        return summary.rstrip()

    class _OperationContext:
        """Internal context manager for individual operations."""

        def __init__(self, collector: "ErrorCollector", sub_operation: str):
            self.collector = collector
            self.sub_operation = sub_operation

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_type is None:
                self.collector.success_count += 1
                return False

            # Stored for get_summary(); not re-raised
            self.collector.errors.append((self.sub_operation, exc_val))
            return True
