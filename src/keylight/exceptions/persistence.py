"""Profile and settings persistence exceptions.

These propagate to the caller of the mutating operation.
"""

from .base import KeylightError


class PersistenceError(KeylightError):
    """A profile or settings document could not be read or written."""
    pass


class ProfileNotFoundError(PersistenceError):
    """No profile exists with the requested identifier."""

    def __init__(self, profile_id: str):
        super().__init__(
            user_message=f"Profile '{profile_id}' not found",
            recoverable=True,
            recovery_hint="Run 'keylight profiles list' to see saved profiles",
        )
        self.profile_id = profile_id
