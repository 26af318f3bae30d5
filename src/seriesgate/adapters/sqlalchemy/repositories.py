"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update

from seriesgate.adapters.sqlalchemy.mappings import (
    enrollment_table,
    managed_series_table,
    media_asset_table,
    paper_table,
)
from seriesgate.domain.model import (
    Enrollment,
    ManagedSeries,
    MediaAsset,
    MediaStatus,
    Paper,
    PaymentStatus,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from seriesgate.domain.model import MediaKind, PaperStatus, PaperType, ResourceType


class _ReferenceRewriterMixin:
    session: Session
    _table: Table
    _reference_column: str = "series_ref"

    def reassign_references(self, old_ref: str, new_ref: str) -> int:
        """Bulk-rewrite the series reference column; returns affected rows."""

        if old_ref == new_ref:
            return 0
        column = self._table.c[self._reference_column]
        stmt = update(self._table).where(column == old_ref).values({column.name: new_ref})
        result = self.session.execute(stmt)
        return result.rowcount or 0  # pyright: ignore[reportAttributeAccessIssue]


class SqlAlchemyManagedSeriesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ManagedSeries) -> None:
        self.session.add(entity)

    def get(self, series_id: UUID) -> ManagedSeries | None:
        return self.session.get(ManagedSeries, series_id)

    def get_by_tier_code(self, tier_code: str) -> ManagedSeries | None:
        stmt = select(ManagedSeries).where(managed_series_table.c.tier_code == tier_code.upper())
        return self.session.execute(stmt).scalar_one_or_none()

    def lock(self, series_id: UUID) -> ManagedSeries | None:
        # SQLite ignores FOR UPDATE; its write lock is taken at the first write.
        stmt = (
            select(ManagedSeries)
            .where(managed_series_table.c.id == series_id)
            .with_for_update()
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyEnrollmentRepository(_ReferenceRewriterMixin):
    _table = enrollment_table
    _reference_column = "resource_ref"

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Enrollment) -> None:
        self.session.add(entity)

    def get(self, enrollment_id: UUID) -> Enrollment | None:
        return self.session.get(Enrollment, enrollment_id)

    def find_paid(
        self,
        *,
        user_id: str,
        resource_type: ResourceType,
        references: Collection[str],
    ) -> Sequence[Enrollment]:
        if not references:
            return []
        stmt = (
            select(Enrollment)
            .where(enrollment_table.c.user_id == user_id)
            .where(enrollment_table.c.resource_type == resource_type)
            .where(enrollment_table.c.resource_ref.in_(list(references)))
            .where(enrollment_table.c.payment_status == PaymentStatus.PAID)
            .order_by(enrollment_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def find_pending(
        self,
        *,
        user_id: str,
        resource_type: ResourceType,
        reference: str,
    ) -> Enrollment | None:
        stmt = (
            select(Enrollment)
            .where(enrollment_table.c.user_id == user_id)
            .where(enrollment_table.c.resource_type == resource_type)
            .where(enrollment_table.c.resource_ref == reference)
            .where(enrollment_table.c.payment_status == PaymentStatus.PENDING)
            .order_by(enrollment_table.c.created_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyPaperRepository(_ReferenceRewriterMixin):
    _table = paper_table

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Paper) -> None:
        self.session.add(entity)

    def find(  # noqa: PLR0913
        self,
        references: Collection[str],
        *,
        status: PaperStatus | None = None,
        group: str | None = None,
        subject: str | None = None,
        series_instance: str | None = None,
        paper_type: PaperType | None = None,
        subjects: Collection[str] | None = None,
    ) -> Sequence[Paper]:
        if not references:
            return []
        stmt = select(Paper).where(paper_table.c.series_ref.in_(list(references)))
        if status is not None:
            stmt = stmt.where(paper_table.c.status == status)
        if group is not None:
            stmt = stmt.where(paper_table.c["group"] == group)
        if subject is not None:
            stmt = stmt.where(paper_table.c.subject == subject)
        if series_instance is not None:
            stmt = stmt.where(paper_table.c.series_instance == series_instance)
        if paper_type is not None:
            stmt = stmt.where(paper_table.c.paper_type == paper_type)
        if subjects is not None:
            stmt = stmt.where(paper_table.c.subject.in_(list(subjects)))
        stmt = stmt.order_by(
            paper_table.c.subject,
            paper_table.c.paper_type,
            paper_table.c.paper_number,
            paper_table.c.created_at,
        )
        return list(self.session.execute(stmt).scalars())

    def referenced_blob_ids(self) -> set[str]:
        stmt = select(paper_table.c.blob_id).where(paper_table.c.blob_id.is_not(None))
        return {blob_id for blob_id in self.session.execute(stmt).scalars() if blob_id}


class SqlAlchemyMediaAssetRepository(_ReferenceRewriterMixin):
    _table = media_asset_table

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: MediaAsset) -> None:
        self.session.add(entity)

    def find(
        self,
        references: Collection[str],
        *,
        kind: MediaKind,
        status: MediaStatus | None = None,
    ) -> Sequence[MediaAsset]:
        if not references:
            return []
        stmt = (
            select(MediaAsset)
            .where(media_asset_table.c.series_ref.in_(list(references)))
            .where(media_asset_table.c.kind == kind)
        )
        if status is not None:
            stmt = stmt.where(media_asset_table.c.status == status)
        stmt = stmt.order_by(media_asset_table.c.created_at.desc())
        return list(self.session.execute(stmt).scalars())

    def delete_archived(self, references: Collection[str], *, kind: MediaKind) -> int:
        if not references:
            return 0
        stmt = (
            delete(media_asset_table)
            .where(media_asset_table.c.series_ref.in_(list(references)))
            .where(media_asset_table.c.kind == kind)
            .where(media_asset_table.c.status == MediaStatus.ARCHIVED)
        )
        result = self.session.execute(stmt)
        return result.rowcount or 0  # pyright: ignore[reportAttributeAccessIssue]

    def active_blob_ids(self) -> set[str]:
        stmt = select(media_asset_table.c.blob_id).where(
            media_asset_table.c.status == MediaStatus.ACTIVE
        )
        return set(self.session.execute(stmt).scalars())
