"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import AssociationGateway, AssociationIntrospector, ChildAssociation
from .unit_of_work import UnitOfWork

__all__ = [
    "AssociationGateway",
    "AssociationIntrospector",
    "ChildAssociation",
    "UnitOfWork",
]
