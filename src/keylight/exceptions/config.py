"""Configuration-related exceptions.

This module defines exceptions for configuration errors:
- ConfigurationError: Base class for configuration errors
- ConfigFileInvalidError: Config file has invalid syntax
- ConfigValidationError: Config values fail validation
- ExpressionError: An animation parameter expression is not allowed
- MappingModeNotImplementedError: A signal mapping selects an unsupported mode
"""

from typing import Any, Optional

from .base import KeylightError


class ConfigurationError(KeylightError):
    """Configuration is invalid or cannot be loaded."""
    pass


class ConfigFileInvalidError(ConfigurationError):
    """Configuration file has invalid JSON syntax."""

    def __init__(self, file_path: str, parse_error: str):
        """
        Initialize config file invalid error.

        Args:
            file_path: Path to the invalid config file
            parse_error: The parsing error message
        """
        user_msg = "Configuration file has invalid syntax"
        recovery = "Check for common JSON errors:\n"
        recovery += "  - Trailing commas (remove commas after last item)\n"
        recovery += "  - Missing quotes around strings\n"
        recovery += "  - Unclosed braces or brackets\n"
        recovery += f"  - Edit: {file_path}"

        if "trailing comma" in parse_error.lower():
            user_msg = "Configuration file has a trailing comma"
            recovery = (
                f"Remove the trailing comma from {file_path}\n"
                "JSON doesn't allow commas after the last item in an object or array"
            )
        elif "expecting" in parse_error.lower():
            user_msg = "Configuration file has a syntax error"

        super().__init__(
            user_message=user_msg,
            technical_message=f"JSON parse error in {file_path}: {parse_error}",
            recoverable=True,
            recovery_hint=recovery
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """Configuration values fail validation."""

    def __init__(self, field: str, value: Any, error_msg: str, file_path: Optional[str] = None):
        """
        Initialize config validation error.

        Args:
            field: The configuration field that failed validation
            value: The invalid value
            error_msg: Why the value is invalid
            file_path: Path to the config file (optional)
        """
        user_msg = f"Invalid configuration value for '{field}': {error_msg}"

        recovery = f"Update the '{field}' value in your configuration"
        if file_path:
            recovery += f"\nConfig file: {file_path}"

        if "signal" in field.lower():
            recovery += "\nRun 'keylight signals list' to see available signals"
        elif "profile" in field.lower():
            recovery += "\nRun 'keylight profiles list' to see saved profiles"
        elif "ranges" in field.lower():
            recovery += "\nEach range needs start <= end and a valid activatedAnimation"

        super().__init__(
            user_message=user_msg,
            technical_message=f"Config validation failed for {field}={value}: {error_msg}",
            recoverable=True,
            recovery_hint=recovery
        )
        self.field = field
        self.value = value
        self.file_path = file_path


class ExpressionError(ConfigurationError):
    """An animation parameter expression uses syntax outside the allowed grammar."""

    def __init__(self, expression: str, reason: str):
        """
        Initialize expression error.

        Args:
            expression: The offending expression source
            reason: Why the expression was rejected
        """
        super().__init__(
            user_message=f"Invalid animation expression {expression!r}: {reason}",
            recoverable=False,
            recovery_hint=(
                "Expressions may only use numbers, 'signal', + - * /, parentheses "
                "and quoted direction names such as \"inc\"."
            ),
        )
        self.expression = expression
        self.reason = reason


class MappingModeNotImplementedError(ConfigurationError):
    """A signal mapping selects a layout mode that has no implementation."""

    def __init__(self, mode: str, signal: str):
        """
        Initialize mode-not-implemented error.

        Args:
            mode: The selected layout mode
            signal: The signal whose mapping selected it
        """
        super().__init__(
            user_message=f"Mapping mode '{mode}' is not implemented (signal '{signal}')",
            recoverable=False,
            recovery_hint="Use the 'all' or 'multi' mode for this mapping.",
        )
        self.mode = mode
        self.signal = signal
