"""Application entry points used by the command line interface."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from associated_save.adapters.sqlalchemy import (
    SqlAlchemyUnitOfWork,
    build_registry,
    coerce_identifier,
    is_started,
    primary_key_type,
    startup,
)
from associated_save.domain.errors import RecordNotFoundError

if TYPE_CHECKING:
    from associated_save.domain.model import (
        AssociationConfig,
        ReconcileResult,
        SubmittedPayload,
    )
    from associated_save.domain.ports import UnitOfWork
    from associated_save.domain.registry import AssociationRegistry

type UnitOfWorkFactory = Callable[[AssociationRegistry], UnitOfWork]

log = getLogger(__name__)


def declare_association(
    parent_cls: type,
    association: str,
    *,
    from_attr: str | None = None,
    delete: bool = True,
    registry: AssociationRegistry | None = None,
) -> tuple[AssociationRegistry, AssociationConfig]:
    """Declare ``parent_cls.association`` on ``registry`` (or a fresh one)."""

    effective_registry = registry or build_registry()
    config = effective_registry.declare(
        parent_cls,
        association,
        from_attr=from_attr,
        delete=delete,
    )
    return effective_registry, config


def apply_payload(
    *,
    parent_cls: type,
    parent_id: object,
    association: str,
    payload: SubmittedPayload | None,
    from_attr: str | None = None,
    delete: bool = True,
    dry_run: bool = False,
    database_uri: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReconcileResult:
    """Load a persisted parent, reconcile one association and commit the result."""

    if unit_of_work_factory is None and not is_started():
        startup(database_uri=database_uri)
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    registry, config = declare_association(
        parent_cls,
        association,
        from_attr=from_attr,
        delete=delete,
    )
    resolved_id = coerce_identifier(parent_id, primary_key_type(parent_cls))
    log.info(
        "Applying %s payload to %s %s: entries=%s, delete=%s, dry_run=%s",
        config.name,
        parent_cls.__name__,
        resolved_id,
        None if payload is None else len(payload),
        config.delete,
        dry_run,
    )

    with effective_uow(registry) as uow:
        parent = uow.get(parent_cls, resolved_id)
        if parent is None:
            raise RecordNotFoundError(f"Couldn't find {parent_cls.__name__} with id={parent_id!r}")
        uow.submit(parent, config.name, payload)
        result = uow.save(parent)[config.name]
        if dry_run:
            uow.rollback()
        else:
            uow.commit()

    log.info(
        "Finished %s: retained=%s, created=%s, updated=%s, deleted=%s, skipped=%s%s",
        config.callback,
        result.retained,
        result.created,
        result.updated,
        result.deleted,
        result.skipped,
        " (rolled back)" if dry_run else "",
    )
    return result
