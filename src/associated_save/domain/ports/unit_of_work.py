"""Unit-of-work abstraction wrapping a parent save and its reconciliations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from associated_save.domain.model import ReconcileResult, SubmittedPayload


@runtime_checkable
class UnitOfWork(Protocol):
    """Transaction boundary owning the post-save reconciliation hook."""

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def get(self, parent_cls: type, parent_id: object) -> object | None: ...

    def submit(self, parent: object, name: str, payload: SubmittedPayload | None) -> None: ...

    def pending(self, parent: object, name: str) -> SubmittedPayload | None: ...

    def save(self, parent: object) -> Mapping[str, ReconcileResult]: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
