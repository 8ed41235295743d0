"""SQLAlchemy-backed unit of work running reconciliation after the parent is saved."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from associated_save.adapters.sqlalchemy.association import SqlAlchemyAssociationGateway
from associated_save.config import get_database_config
from associated_save.domain.reconcile import reconcile

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine

    from associated_save.domain.model import ReconcileResult, SubmittedPayload
    from associated_save.domain.registry import AssociationRegistry

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call associated_save.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    metadata: MetaData | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine and session factory.

    When ``metadata`` is given its tables are created if they do not exist yet.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    if metadata is not None:
        log.info("Creating %d tables", len(metadata.tables))
        metadata.create_all(resolved_engine)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """Session scope whose :meth:`save` reconciles declared associations.

    Payloads are staged with :meth:`submit` (or :meth:`submit_params` for parsed form
    data) and consumed by the next :meth:`save` of the same parent. Everything runs
    in the session transaction, so leaving the block with an exception discards the
    parent and all child writes together.
    """

    def __init__(self, registry: AssociationRegistry) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self.registry = registry
        self._session: Session | None = None
        self._staged: dict[tuple[int, str], tuple[object, SubmittedPayload | None]] = {}

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self.session_factory()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        self._staged.clear()
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session

    def get(self, parent_cls: type, parent_id: object) -> object | None:
        return self.session.get(parent_cls, parent_id)

    def submit(self, parent: object, name: str, payload: SubmittedPayload | None) -> None:
        """Stage ``payload`` for the association ``name`` of ``parent``.

        Passing ``None`` clears a previously staged payload, which opts the next
        save out of reconciling that association.
        """

        config = self.registry.reflect(type(parent), name)
        self._staged[(id(parent), config.from_attr)] = (parent, payload)

    def submit_params(self, parent: object, params: Mapping[str, object]) -> list[str]:
        """Stage every payload found in ``params`` under a declared ``from_attr`` key.

        Returns the names of the associations that received a payload.
        """

        staged: list[str] = []
        for config in self.registry.configs_for(type(parent)):
            if config.from_attr not in params:
                continue
            payload = params[config.from_attr]
            if payload is not None and not isinstance(payload, list | tuple):
                raise TypeError(
                    f"{config.from_attr} must be a sequence of attribute mappings, "
                    f"got {type(payload).__name__}"
                )
            self.submit(parent, config.name, payload)
            staged.append(config.name)
        return staged

    def pending(self, parent: object, name: str) -> SubmittedPayload | None:
        """Return the raw payload currently staged for ``parent.name``."""

        config = self.registry.reflect(type(parent), name)
        staged = self._staged.get((id(parent), config.from_attr))
        return None if staged is None else staged[1]

    def save(self, parent: object) -> dict[str, ReconcileResult]:
        """Flush ``parent`` and then reconcile each association declared for it."""

        self.session.add(parent)
        self.session.flush()

        gateway = SqlAlchemyAssociationGateway(self.session)
        results: dict[str, ReconcileResult] = {}
        for config in self.registry.configs_for(type(parent)):
            _, payload = self._staged.pop((id(parent), config.from_attr), (parent, None))
            log.debug("Running %s on %s", config.callback, type(parent).__name__)
            results[config.name] = reconcile(
                parent,
                config.name,
                payload,
                config,
                gateway=gateway,
            )
        return results


if TYPE_CHECKING:
    from associated_save.domain.ports import UnitOfWork

    _uow_check: UnitOfWork = SqlAlchemyUnitOfWork(AssociationRegistry())
