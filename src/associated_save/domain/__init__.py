"""Domain layer: reconciliation rules independent of any ORM."""

from __future__ import annotations

from .errors import (
    AssociatedSaveError,
    AssociationConfigurationError,
    RecordInvalidError,
    RecordNotFoundError,
    UnsavedParentError,
)
from .model import (
    AssociationConfig,
    PayloadEntry,
    ReconcileResult,
    SubmittedPayload,
    default_from_attr,
    is_blank,
    is_blank_entry,
)
from .reconcile import POSITION_ATTR, reconcile
from .registry import AssociationRegistry

__all__ = [
    "POSITION_ATTR",
    "AssociatedSaveError",
    "AssociationConfig",
    "AssociationConfigurationError",
    "AssociationRegistry",
    "PayloadEntry",
    "RecordInvalidError",
    "RecordNotFoundError",
    "ReconcileResult",
    "SubmittedPayload",
    "UnsavedParentError",
    "default_from_attr",
    "is_blank",
    "is_blank_entry",
    "reconcile",
]
