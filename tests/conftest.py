from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from associated_save.adapters.sqlalchemy import (
    SqlAlchemyUnitOfWork,
    build_registry,
    shutdown,
    startup,
)
from associated_save.domain.registry import AssociationRegistry  # noqa: TC001
from tests.helpers.library import Collection, create_all_tables, start_mappers

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def association_registry() -> AssociationRegistry:
    start_mappers()
    registry = build_registry()
    registry.declare(Collection, "items")
    registry.declare(Collection, "tags", delete=False)
    return registry


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    association_registry: AssociationRegistry,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(association_registry)

    try:
        yield factory
    finally:
        shutdown()
