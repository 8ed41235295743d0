"""SQLAlchemy adapter package."""

from __future__ import annotations

from associated_save.domain.registry import AssociationRegistry

from .association import (
    AssociationShape,
    SqlAlchemyAssociationGateway,
    SqlAlchemyAssociationIntrospector,
    SqlAlchemyChildAssociation,
    coerce_identifier,
    describe_association,
    primary_key_type,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)


def build_registry() -> AssociationRegistry:
    """Return an empty registry that validates declarations against the mappers."""

    return AssociationRegistry(SqlAlchemyAssociationIntrospector())


__all__ = [
    "AssociationShape",
    "SqlAlchemyAssociationGateway",
    "SqlAlchemyAssociationIntrospector",
    "SqlAlchemyChildAssociation",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_registry",
    "coerce_identifier",
    "configured_engine",
    "describe_association",
    "is_started",
    "primary_key_type",
    "shutdown",
    "startup",
]
