"""In-memory stand-ins for the persistence ports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from associated_save.domain.errors import AssociationConfigurationError, RecordNotFoundError

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping


@dataclass
class FakeParent:
    id: int | None = 1


@dataclass
class FakeChild:
    id: int
    attributes: dict[str, object] = field(default_factory=dict)


@dataclass
class FakeAssociation:
    """Dictionary-backed child collection that records every call."""

    parent: FakeParent
    children: dict[int, FakeChild] = field(default_factory=dict)
    has_position: bool = True
    id_key: str = "id"
    foreign_key: str = "parent_id"
    calls: list[tuple[str, object]] = field(default_factory=list)
    next_id: int = 100

    @property
    def parent_key(self) -> object:
        return self.parent.id

    def current_ids(self) -> set[object]:
        return set(self.children)

    def normalize_id(self, value: object) -> object:
        try:
            return int(str(value).strip())
        except ValueError as exc:
            raise RecordNotFoundError(str(value)) from exc

    def find(self, child_id: object) -> object:
        self.calls.append(("find", child_id))
        if not isinstance(child_id, int) or child_id not in self.children:
            raise RecordNotFoundError(str(child_id))
        return self.children[child_id]

    def build(self, attributes: Mapping[str, object]) -> object:
        child = FakeChild(id=self.next_id, attributes=dict(attributes))
        self.next_id += 1
        self.children[child.id] = child
        self.calls.append(("build", child.id))
        return child

    def update(self, child: object, attributes: Mapping[str, object]) -> bool:
        assert isinstance(child, FakeChild)
        merged = {**child.attributes, **attributes}
        modified = merged != child.attributes
        child.attributes = merged
        self.calls.append(("update", child.id))
        return modified

    def identity(self, child: object) -> object:
        assert isinstance(child, FakeChild)
        return child.id

    def delete(self, ids: Collection[object]) -> int:
        self.calls.append(("delete", tuple(ids)))
        removed = 0
        for child_id in ids:
            if isinstance(child_id, int) and self.children.pop(child_id, None) is not None:
                removed += 1
        return removed


@dataclass
class FakeGateway:
    association: FakeAssociation
    bound: list[tuple[object, str]] = field(default_factory=list)

    def bind(self, parent: object, name: str) -> FakeAssociation:
        self.bound.append((parent, name))
        return self.association


@dataclass
class RecordingIntrospector:
    rejected: set[str] = field(default_factory=set)
    seen: list[tuple[type, str]] = field(default_factory=list)

    def validate(self, parent_cls: type, name: str) -> None:
        self.seen.append((parent_cls, name))
        if name in self.rejected:
            raise AssociationConfigurationError(f"{parent_cls.__name__}.{name} rejected")
