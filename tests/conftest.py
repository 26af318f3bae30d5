from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from seriesgate.adapters.sqlalchemy import start_mappers
from seriesgate.adapters.sqlalchemy.migrations import upgrade_head
from seriesgate.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    create_configured_engine,
    shutdown,
    startup,
)
from seriesgate.config.catalog import default_catalog
from seriesgate.config.storage import DatabaseConfig
from seriesgate.domain.catalog_registry import CatalogRegistry
from tests.helpers.blobs import FakeBlobStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyCatalogUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyCatalogUnitOfWork:
        return SqlAlchemyCatalogUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlite_file_path(tmp_path: Path) -> Path:
    return tmp_path / "seriesgate.db"


@pytest.fixture
def sqlite_file_unit_of_work(
    sqlite_file_path: Path,
) -> Iterator[Callable[[], SqlAlchemyCatalogUnitOfWork]]:
    """Unit of work over a database file whose writers give up after 0.2s."""

    config = DatabaseConfig(
        uri=f"sqlite+pysqlite:///{sqlite_file_path}", statement_timeout_seconds=0.2
    )
    startup(engine=create_configured_engine(config), force=True)

    def factory() -> SqlAlchemyCatalogUnitOfWork:
        return SqlAlchemyCatalogUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def registry() -> CatalogRegistry:
    return CatalogRegistry(default_catalog())


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()
