"""SQLAlchemy-backed units of work for catalog, purchase and content state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from seriesgate.adapters.sqlalchemy.mappings import start_mappers
from seriesgate.adapters.sqlalchemy.migrations import upgrade_head
from seriesgate.adapters.sqlalchemy.repositories import (
    SqlAlchemyEnrollmentRepository,
    SqlAlchemyManagedSeriesRepository,
    SqlAlchemyMediaAssetRepository,
    SqlAlchemyPaperRepository,
)
from seriesgate.config.storage import get_database_config
from seriesgate.domain.errors import TransactionConflict
from seriesgate.domain.ports.unit_of_work import CatalogRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from seriesgate.config.storage import DatabaseConfig

log = getLogger(__name__)


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
                "SQLAlchemy adapter not initialised. Call seriesgate.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def engine_options(config: DatabaseConfig) -> dict[str, Any]:
    """Translate the statement deadline into driver connect arguments."""

    timeout = config.statement_timeout_seconds
    if timeout is None:
        return {}
    if config.is_sqlite:
        return {"connect_args": {"timeout": timeout}}
    if config.is_postgresql:
        milliseconds = int(timeout * 1000)
        return {"connect_args": {"options": f"-c statement_timeout={milliseconds}"}}
    return {}


def create_configured_engine(config: DatabaseConfig | None = None) -> Engine:
    resolved = config or get_database_config()
    return create_engine(resolved.uri, future=True, **engine_options(resolved))


def startup(
    *,
    engine: Engine | None = None,
    database_config: DatabaseConfig | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_configured_engine(database_config)
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine
    log.info("SQLAlchemy adapter started on %s", resolved_engine.url.render_as_string())


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        """Roll back on error; lock, deadline and constraint errors become conflicts."""

        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        if isinstance(exc_value, (IntegrityError, OperationalError)):
            log.warning("Transaction aborted: %s", exc_value.orig)
            raise TransactionConflict(str(exc_value.orig)) from exc_value
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except (IntegrityError, OperationalError) as exc:
            self.session.rollback()
            log.warning("Commit rejected: %s", exc.orig)
            raise TransactionConflict(str(exc.orig)) from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

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


class SqlAlchemyCatalogUnitOfWork(BaseSqlAlchemyUnitOfWork[CatalogRepositories]):
    """Unit of work over managed series, purchases, papers and media."""

    def _build_repositories(self, session: Session) -> CatalogRepositories:
        return CatalogRepositories(
            series=SqlAlchemyManagedSeriesRepository(session),
            enrollments=SqlAlchemyEnrollmentRepository(session),
            papers=SqlAlchemyPaperRepository(session),
            media=SqlAlchemyMediaAssetRepository(session),
        )


if TYPE_CHECKING:
    from seriesgate.domain.ports.unit_of_work import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = SqlAlchemyCatalogUnitOfWork()
