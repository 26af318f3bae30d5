"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from seriesgate.domain.ports.persistence import (
        EnrollmentRepository,
        ManagedSeriesRepository,
        MediaAssetRepository,
        PaperRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None:
        """Commit pending changes; raises ``TransactionConflict`` on lost races."""
        ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class CatalogRepositories(RepositoryCollection):
    """Repositories backing catalog, purchase and content state."""

    series: ManagedSeriesRepository
    enrollments: EnrollmentRepository
    papers: PaperRepository
    media: MediaAssetRepository


type CatalogUnitOfWork = UnitOfWork[CatalogRepositories]
type UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]
