"""SQLAlchemy implementation of the child-association ports."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import IntegrityError, NoInspectionAvailable
from sqlalchemy.orm import ColumnProperty, RelationshipDirection

from associated_save.domain.errors import (
    AssociationConfigurationError,
    RecordInvalidError,
    RecordNotFoundError,
    UnsavedParentError,
)
from associated_save.domain.reconcile import POSITION_ATTR

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from sqlalchemy import Column
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Mapper, Session

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AssociationShape:
    """Mapped attributes involved in reconciling one relationship."""

    parent_cls: type
    name: str
    child_cls: type
    id_key: str
    id_type: type | None
    foreign_key: str
    parent_key: str
    has_position: bool


def _mapper_for(cls: type) -> Mapper[Any]:
    try:
        return cast("Mapper[Any]", inspect(cls))
    except NoInspectionAvailable as exc:
        raise AssociationConfigurationError(f"{cls.__name__} is not a mapped class") from exc


def _python_type(column: Column[Any]) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


@cache
def describe_association(parent_cls: type, name: str) -> AssociationShape:
    """Inspect ``parent_cls.name`` and return the attributes reconciliation needs."""

    mapper = _mapper_for(parent_cls)
    qualified = f"{parent_cls.__name__}.{name}"
    if name not in mapper.relationships:
        raise AssociationConfigurationError(f"{qualified} is not a mapped relationship")

    relationship = mapper.relationships[name]
    if relationship.direction is not RelationshipDirection.ONETOMANY or not relationship.uselist:
        raise AssociationConfigurationError(f"{qualified} is not a one-to-many relationship")

    child_mapper = relationship.mapper
    child_name = child_mapper.class_.__name__
    if len(child_mapper.primary_key) != 1:
        raise AssociationConfigurationError(f"{child_name} must have a single-column primary key")
    if len(relationship.local_remote_pairs) != 1:
        raise AssociationConfigurationError(f"{qualified} must join on a single foreign key")

    primary_key = child_mapper.primary_key[0]
    local_column, remote_column = relationship.local_remote_pairs[0]
    position = child_mapper.attrs.get(POSITION_ATTR)

    return AssociationShape(
        parent_cls=parent_cls,
        name=name,
        child_cls=child_mapper.class_,
        id_key=child_mapper.get_property_by_column(primary_key).key,
        id_type=_python_type(primary_key),
        foreign_key=child_mapper.get_property_by_column(remote_column).key,
        parent_key=mapper.get_property_by_column(local_column).key,
        has_position=isinstance(position, ColumnProperty),
    )


def primary_key_type(cls: type) -> type | None:
    """Return the Python type of ``cls``'s single primary-key column, if known."""

    mapper = _mapper_for(cls)
    if len(mapper.primary_key) != 1:
        return None
    return _python_type(mapper.primary_key[0])


def coerce_identifier(value: object, id_type: type | None) -> object:
    """Convert a submitted identifier into the primary key's Python type.

    Form data delivers ids as strings, so ``"7"`` must compare equal to ``7`` and a
    UUID string to its :class:`uuid.UUID`. Raises ``ValueError`` when the value
    cannot represent an identifier of ``id_type``.
    """

    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a valid identifier")
    if isinstance(value, str):
        value = value.strip()
    if id_type is None or isinstance(value, id_type):
        return value
    try:
        if id_type is uuid.UUID:
            return uuid.UUID(str(value))
        if id_type is int and isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"{value!r} is not an integer")
            return int(value)
        return id_type(value)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"{value!r} is not a valid {id_type.__name__} identifier") from exc


class SqlAlchemyAssociationIntrospector:
    """Validates declarations against the SQLAlchemy mapper configuration."""

    def validate(self, parent_cls: type, name: str) -> None:
        describe_association(parent_cls, name)


class SqlAlchemyChildAssociation:
    """The children of one parent instance reachable through ``name``."""

    def __init__(self, session: Session, parent: object, name: str) -> None:
        self.session = session
        self.parent = parent
        self.name = name
        self._shape = describe_association(type(parent), name)

    @property
    def id_key(self) -> str:
        return self._shape.id_key

    @property
    def foreign_key(self) -> str:
        return self._shape.foreign_key

    @property
    def has_position(self) -> bool:
        return self._shape.has_position

    @property
    def parent_key(self) -> object:
        value = getattr(self.parent, self._shape.parent_key)
        if value is None:
            raise UnsavedParentError(
                f"{type(self.parent).__name__} must be flushed before reconciling {self.name}"
            )
        return value

    def current_ids(self) -> set[object]:
        ids = (self.identity(child) for child in self._children())
        return {child_id for child_id in ids if child_id is not None}

    def normalize_id(self, value: object) -> object:
        try:
            return coerce_identifier(value, self._shape.id_type)
        except ValueError as exc:
            raise RecordNotFoundError(
                f"Couldn't find {self._child_name} with {self.id_key}={value!r}"
            ) from exc

    def find(self, child_id: object) -> object:
        child_cls = self._shape.child_cls
        stmt = (
            select(child_cls)
            .where(getattr(child_cls, self.id_key) == child_id)
            .where(getattr(child_cls, self.foreign_key) == self.parent_key)
        )
        child = self.session.execute(stmt).scalar_one_or_none()
        if child is None:
            raise RecordNotFoundError(
                f"Couldn't find {self._child_name} with {self.id_key}={child_id!r} "
                f"in {type(self.parent).__name__}.{self.name}"
            )
        return child

    def build(self, attributes: Mapping[str, object]) -> object:
        self._check_attributes(attributes)
        try:
            child = self._shape.child_cls(**attributes)
        except (TypeError, ValueError) as exc:
            raise RecordInvalidError(self._child_name, str(exc)) from exc
        self._children().append(child)
        self._flush()
        return child

    def update(self, child: object, attributes: Mapping[str, object]) -> bool:
        self._check_attributes(attributes)
        try:
            for key, value in attributes.items():
                setattr(child, key, value)
        except ValueError as exc:
            raise RecordInvalidError(self._child_name, str(exc)) from exc
        modified = self.session.is_modified(child)
        if modified:
            self._flush()
        return modified

    def identity(self, child: object) -> object:
        return getattr(child, self.id_key)

    def delete(self, ids: Collection[object]) -> int:
        if not ids:
            return 0
        child_cls = self._shape.child_cls
        stmt = (
            delete(child_cls)
            .where(getattr(child_cls, self.id_key).in_(list(ids)))
            .where(getattr(child_cls, self.foreign_key) == self.parent_key)
            .execution_options(synchronize_session="fetch")
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        self.session.expire(self.parent, [self.name])
        log.debug("Deleted %d %s rows from %s", result.rowcount, self._child_name, self.name)
        return result.rowcount

    @property
    def _child_name(self) -> str:
        return self._shape.child_cls.__name__

    def _children(self) -> list[Any]:
        return getattr(self.parent, self.name)

    def _check_attributes(self, attributes: Mapping[str, object]) -> None:
        mapper = _mapper_for(self._shape.child_cls)
        unknown = sorted(key for key in attributes if key not in mapper.attrs)
        if unknown:
            raise RecordInvalidError(self._child_name, f"unknown attribute(s) {', '.join(unknown)}")

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise RecordInvalidError(self._child_name, str(exc.orig)) from exc


class SqlAlchemyAssociationGateway:
    """Binds parents to :class:`SqlAlchemyChildAssociation` within one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def bind(self, parent: object, name: str) -> SqlAlchemyChildAssociation:
        return SqlAlchemyChildAssociation(self.session, parent, name)


if TYPE_CHECKING:
    from associated_save.domain.ports import (
        AssociationGateway,
        AssociationIntrospector,
        ChildAssociation,
    )

    _session_stub = cast("Session", object())
    _gateway_check: AssociationGateway = SqlAlchemyAssociationGateway(_session_stub)
    _association_check: ChildAssociation = SqlAlchemyChildAssociation(_session_stub, object(), "")
    _introspector_check: AssociationIntrospector = SqlAlchemyAssociationIntrospector()
