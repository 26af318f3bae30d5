"""SQLAlchemy adapter package for seriesgate."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyEnrollmentRepository,
    SqlAlchemyManagedSeriesRepository,
    SqlAlchemyMediaAssetRepository,
    SqlAlchemyPaperRepository,
)
from .unit_of_work import SqlAlchemyCatalogUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyCatalogUnitOfWork",
    "SqlAlchemyEnrollmentRepository",
    "SqlAlchemyManagedSeriesRepository",
    "SqlAlchemyMediaAssetRepository",
    "SqlAlchemyPaperRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
