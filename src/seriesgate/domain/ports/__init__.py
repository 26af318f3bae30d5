"""Domain port definitions for adapters."""

from __future__ import annotations

from .blobs import BlobInfo, BlobStore, StoredBlob
from .persistence import (
    EnrollmentRepository,
    ManagedSeriesRepository,
    MediaAssetRepository,
    PaperRepository,
    ReferenceRewriter,
    Repository,
)
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "BlobInfo",
    "BlobStore",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "EnrollmentRepository",
    "ManagedSeriesRepository",
    "MediaAssetRepository",
    "PaperRepository",
    "ReferenceRewriter",
    "Repository",
    "RepositoryCollection",
    "StoredBlob",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
