"""Service-level exceptions shared by the profile store and services."""
from __future__ import annotations


class RegistryError(RuntimeError):
    """Base exception for share registry service errors."""


class ProfileValidationError(RegistryError):
    """Raised when a required field is missing or a value is malformed."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ProfileNotFoundError(RegistryError):
    """Raised when a profile identifier does not exist."""


class HoldingNotFoundError(RegistryError):
    """Raised when a review targets a holding absent from the profile."""


class DuplicateProfileError(RegistryError):
    """Raised when a uniqueness constraint such as ``clientId`` is violated."""


class StoreUnavailableError(RegistryError):
    """Raised when the backing database cannot be reached."""


__all__ = [
    "DuplicateProfileError",
    "HoldingNotFoundError",
    "ProfileNotFoundError",
    "ProfileValidationError",
    "RegistryError",
    "StoreUnavailableError",
]
