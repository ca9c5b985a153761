"""
Custom exception hierarchy for keylight.

## Exception Hierarchy

```
KeylightError (base)
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   ├── ConfigValidationError
│   ├── ExpressionError
│   └── MappingModeNotImplementedError
├── HardwareError
│   ├── DeviceClaimError
│   └── DeviceWriteError
└── PersistenceError
    └── ProfileNotFoundError
```

Configuration errors are fatal at load time. Hardware errors are recovered
locally by the reconciler. Persistence errors propagate to whoever asked for
the mutation. Incomplete handling of a closed set of variants (signal
sources, layout modes, event messages) raises a plain `TypeError`.

See `keylight.exceptions.handlers` for utilities to handle these exceptions
systematically.
"""

from .base import KeylightError
from .config import (
    ConfigFileInvalidError,
    ConfigurationError,
    ConfigValidationError,
    ExpressionError,
    MappingModeNotImplementedError,
)
from .handlers import (
    ErrorCollector,
    ErrorContext,
    collect_errors,
    format_error_for_display,
    handle_errors,
    wrap_hardware_error,
    wrap_pydantic_error,
)
from .hardware import DeviceClaimError, DeviceWriteError, HardwareError
from .persistence import PersistenceError, ProfileNotFoundError

__all__ = [
    # Base
    "KeylightError",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    "ExpressionError",
    "MappingModeNotImplementedError",
    # Hardware
    "DeviceClaimError",
    "DeviceWriteError",
    "HardwareError",
    # Persistence
    "PersistenceError",
    "ProfileNotFoundError",
    # Handlers
    "ErrorCollector",
    "ErrorContext",
    "collect_errors",
    "format_error_for_display",
    "handle_errors",
    "wrap_hardware_error",
    "wrap_pydantic_error",
]
