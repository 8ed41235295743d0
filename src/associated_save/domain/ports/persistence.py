"""Ports describing the ORM collaborators the reconciler relies on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping


@runtime_checkable
class ChildAssociation(Protocol):
    """One parent's child collection, bound for a single reconciliation pass."""

    @property
    def id_key(self) -> str: ...

    @property
    def foreign_key(self) -> str: ...

    @property
    def parent_key(self) -> object: ...

    @property
    def has_position(self) -> bool: ...

    def current_ids(self) -> set[object]: ...

    def normalize_id(self, value: object) -> object: ...

    def find(self, child_id: object) -> object: ...

    def build(self, attributes: Mapping[str, object]) -> object: ...

    def update(self, child: object, attributes: Mapping[str, object]) -> bool: ...

    def identity(self, child: object) -> object: ...

    def delete(self, ids: Collection[object]) -> int: ...


@runtime_checkable
class AssociationGateway(Protocol):
    """Factory binding a parent instance and association name to a collection."""

    def bind(self, parent: object, name: str) -> ChildAssociation: ...


@runtime_checkable
class AssociationIntrospector(Protocol):
    """Declaration-time check that an association can be reconciled."""

    def validate(self, parent_cls: type, name: str) -> None: ...
