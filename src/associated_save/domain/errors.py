"""Errors raised while declaring or reconciling associated saves."""

from __future__ import annotations

from associated_save.config.errors import ConfigurationError


class AssociatedSaveError(Exception):
    """Base class for failures during a reconciliation pass."""


class RecordNotFoundError(AssociatedSaveError):
    """Raised when a submitted id does not match a child of the parent."""


class RecordInvalidError(AssociatedSaveError):
    """Raised when a child cannot be created or updated with the submitted attributes."""

    def __init__(self, record_type: str, reason: str) -> None:
        super().__init__(f"{record_type} is invalid: {reason}")
        self.record_type = record_type
        self.reason = reason


class UnsavedParentError(AssociatedSaveError):
    """Raised when reconciliation runs before the parent has an identifier."""


class AssociationConfigurationError(ConfigurationError):
    """Raised when an associated save is declared for an unusable association."""
