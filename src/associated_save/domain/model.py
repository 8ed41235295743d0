"""Value objects shared by the reconciler, the registry and the adapters."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

type PayloadEntry = Mapping[str, object]
type SubmittedPayload = Sequence[PayloadEntry | None]

CALLBACK_PREFIX: Final[str] = "save_associated_"
FROM_PREFIX: Final[str] = "_"


def default_from_attr(name: str) -> str:
    return f"{FROM_PREFIX}{name}"


def is_blank(value: object) -> bool:
    """Return whether ``value`` carries no information.

    ``None``, whitespace-only strings and empty collections are blank. Numbers and
    booleans never are, so ``0`` and ``False`` remain meaningful form values.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Collection):
        return len(value) == 0
    return False


def is_blank_entry(entry: PayloadEntry | None) -> bool:
    """Return whether a payload entry should be ignored entirely.

    Only ``None`` and an empty mapping are skipped. An entry whose values are all
    blank still reaches the child, so an unfilled form row fails validation.
    """

    return entry is None or len(entry) == 0


@dataclass(frozen=True, slots=True)
class AssociationConfig:
    """Declared options for one reconciled association."""

    name: str
    from_attr: str
    delete: bool = True

    @classmethod
    def build(
        cls,
        name: str,
        *,
        from_attr: str | None = None,
        delete: bool = True,
    ) -> AssociationConfig:
        return cls(name=name, from_attr=from_attr or default_from_attr(name), delete=delete)

    @property
    def callback(self) -> str:
        return f"{CALLBACK_PREFIX}{self.name}"


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of one reconciliation pass over a single association."""

    association: str
    created: list[object] = field(default_factory=list)
    updated: list[object] = field(default_factory=list)
    unchanged: list[object] = field(default_factory=list)
    deleted: list[object] = field(default_factory=list)
    skipped: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)

    @property
    def retained(self) -> list[object]:
        """Ids of every child referenced by the payload, in payload order."""

        return [*self.created, *self.updated, *self.unchanged]
