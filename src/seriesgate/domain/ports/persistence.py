"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from seriesgate.domain.model import (
    Enrollment,
    ManagedSeries,
    MediaAsset,
    Paper,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from seriesgate.domain.model import (
        MediaKind,
        MediaStatus,
        PaperStatus,
        PaperType,
        ResourceType,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ReferenceRewriter(Protocol):
    """Rewrites stored series references from one representation to another."""

    def reassign_references(self, old_ref: str, new_ref: str) -> int: ...


@runtime_checkable
class ManagedSeriesRepository(Repository[ManagedSeries], Protocol):
    def get(self, series_id: UUID) -> ManagedSeries | None: ...

    def get_by_tier_code(self, tier_code: str) -> ManagedSeries | None: ...

    def lock(self, series_id: UUID) -> ManagedSeries | None:
        """Load the record and hold a row lock until the transaction ends."""
        ...


@runtime_checkable
class EnrollmentRepository(Repository[Enrollment], ReferenceRewriter, Protocol):
    def get(self, enrollment_id: UUID) -> Enrollment | None: ...

    def find_paid(
        self,
        *,
        user_id: str,
        resource_type: ResourceType,
        references: Collection[str],
    ) -> Sequence[Enrollment]: ...

    def find_pending(
        self,
        *,
        user_id: str,
        resource_type: ResourceType,
        reference: str,
    ) -> Enrollment | None: ...


@runtime_checkable
class PaperRepository(Repository[Paper], ReferenceRewriter, Protocol):
    def find(
        self,
        references: Collection[str],
        *,
        status: PaperStatus | None = None,
        group: str | None = None,
        subject: str | None = None,
        series_instance: str | None = None,
        paper_type: PaperType | None = None,
        subjects: Collection[str] | None = None,
    ) -> Sequence[Paper]: ...

    def referenced_blob_ids(self) -> set[str]: ...


@runtime_checkable
class MediaAssetRepository(Repository[MediaAsset], ReferenceRewriter, Protocol):
    def find(
        self,
        references: Collection[str],
        *,
        kind: MediaKind,
        status: MediaStatus | None = None,
    ) -> Sequence[MediaAsset]: ...

    def delete_archived(self, references: Collection[str], *, kind: MediaKind) -> int: ...

    def active_blob_ids(self) -> set[str]: ...
