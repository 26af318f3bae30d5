"""Media replacement keeping exactly one active asset per (series, kind).

The swap runs in one transaction that locks the managed series row. If that
transaction loses a race, a sequence of short commits is tried instead; if the
new asset cannot be inserted there, the replaced asset is reactivated so the
series never ends up without an active asset. Blob bytes are never deleted on
these paths; :meth:`MediaReconciliationService.sweep_orphaned_blobs` cleans up
afterwards.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from threading import Lock
from typing import TYPE_CHECKING

from seriesgate.domain.errors import (
    BlobStoreError,
    MediaMetadataSaveError,
    TransactionConflict,
    UnknownSeries,
)
from seriesgate.domain.model import MediaAsset, MediaStatus, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from seriesgate.domain.catalog_registry import CatalogRegistry
    from seriesgate.domain.model import Alternates, ManagedKey, MediaKind
    from seriesgate.domain.ports.blobs import BlobInfo, BlobStore, StoredBlob
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory

    type Scheduler = Callable[[Callable[[], object]], object]

log = getLogger(__name__)

DEFAULT_SWEEP_GRACE_PERIOD = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class SweepReport:
    scanned: int
    orphaned: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    dry_run: bool = False


class MediaReconciliationService:
    def __init__(
        self,
        registry: CatalogRegistry,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        schedule: Scheduler | None = None,
    ) -> None:
        self._registry = registry
        self._unit_of_work_factory = unit_of_work_factory
        self._schedule = schedule
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = Lock()

    # Public API ------------------------------------------------------------

    def attach(self, identifier: str, kind: MediaKind, blob: StoredBlob) -> MediaAsset:
        """Make ``blob`` the active ``kind`` asset of the series."""

        materialization = self._registry.ensure_persisted(identifier, self._unit_of_work_factory)
        key = materialization.key
        alternates = self._registry.alternates(key)

        try:
            asset = self._swap(key, alternates, kind, blob)
        except TransactionConflict:
            log.warning(
                "Transactional media swap for %s/%s lost a race; using fallback path",
                key.reference,
                kind,
            )
            asset = self._fallback_swap(key, alternates, kind, blob)

        log.info(
            "Attached %s blob %s to series %s (asset %s)",
            kind,
            blob.blob_id,
            key.reference,
            asset.id,
        )

        if materialization.created:
            self._schedule_migration(key)
        return asset

    def active_asset(self, identifier: str, kind: MediaKind) -> MediaAsset | None:
        key = self._registry.resolve_with(identifier, self._unit_of_work_factory)
        alternates = self._registry.alternates(key)
        with self._unit_of_work_factory() as uow:
            found = uow.repositories.media.find(
                alternates.references, kind=kind, status=MediaStatus.ACTIVE
            )
        return found[0] if found else None

    def sweep_orphaned_blobs(
        self,
        blob_store: BlobStore,
        *,
        older_than: timedelta = DEFAULT_SWEEP_GRACE_PERIOD,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> SweepReport:
        """Delete stored blobs nothing references any more.

        A blob is kept when an active media asset or any paper points at it,
        or when it is younger than ``older_than``.
        """

        cutoff = (now or utcnow()) - older_than
        blobs = blob_store.list_blobs()

        with self._unit_of_work_factory() as uow:
            referenced = (
                uow.repositories.media.active_blob_ids()
                | uow.repositories.papers.referenced_blob_ids()
            )

        orphaned = [
            info.blob_id
            for info in blobs
            if info.blob_id not in referenced and _older_than(info, cutoff)
        ]
        if dry_run:
            log.info("Sweep (dry run): %s of %s blobs are orphaned", len(orphaned), len(blobs))
            return SweepReport(scanned=len(blobs), orphaned=tuple(orphaned), dry_run=True)

        deleted: list[str] = []
        failed: list[str] = []
        for blob_id in orphaned:
            try:
                blob_store.delete(blob_id)
            except BlobStoreError as exc:
                log.warning("Could not delete orphaned blob %s: %s", blob_id, exc)
                failed.append(blob_id)
            else:
                deleted.append(blob_id)

        log.info(
            "Sweep finished: scanned=%s, orphaned=%s, deleted=%s, failed=%s",
            len(blobs),
            len(orphaned),
            len(deleted),
            len(failed),
        )
        return SweepReport(
            scanned=len(blobs),
            orphaned=tuple(orphaned),
            deleted=tuple(deleted),
            failed=tuple(failed),
        )

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # Swap paths --------------------------------------------------------------

    def _swap(
        self,
        key: ManagedKey,
        alternates: Alternates,
        kind: MediaKind,
        blob: StoredBlob,
    ) -> MediaAsset:
        references = alternates.references
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            if repositories.series.lock(key.id) is None:
                raise UnknownSeries(key.reference)

            repositories.media.delete_archived(references, kind=kind)
            replaced = _archive_all(
                repositories.media.find(references, kind=kind, status=MediaStatus.ACTIVE)
            )
            asset = _new_asset(key, kind, blob, replaced)
            repositories.media.add(asset)
            uow.commit()
        return asset

    def _fallback_swap(
        self,
        key: ManagedKey,
        alternates: Alternates,
        kind: MediaKind,
        blob: StoredBlob,
    ) -> MediaAsset:
        references = alternates.references
        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.media.delete_archived(references, kind=kind)
                uow.commit()

            with self._unit_of_work_factory() as uow:
                replaced = _archive_all(
                    uow.repositories.media.find(references, kind=kind, status=MediaStatus.ACTIVE)
                )
                uow.commit()
        except TransactionConflict as exc:
            self._report_orphan(key, kind, blob)
            raise MediaMetadataSaveError(
                f"Could not save {kind} metadata for {key.reference}", blob=blob
            ) from exc

        try:
            with self._unit_of_work_factory() as uow:
                asset = _new_asset(key, kind, blob, replaced)
                uow.repositories.media.add(asset)
                uow.commit()
        except TransactionConflict as exc:
            self._reactivate(references, kind, replaced)
            self._report_orphan(key, kind, blob)
            raise MediaMetadataSaveError(
                f"Could not save {kind} metadata for {key.reference}", blob=blob
            ) from exc
        return asset

    def _reactivate(
        self,
        references: Sequence[str],
        kind: MediaKind,
        replaced: Sequence[MediaAsset],
    ) -> None:
        if not replaced:
            return
        replaced_ids = {asset.id for asset in replaced}
        try:
            with self._unit_of_work_factory() as uow:
                archived = uow.repositories.media.find(
                    references, kind=kind, status=MediaStatus.ARCHIVED
                )
                for asset in archived:
                    if asset.id in replaced_ids:
                        asset.reactivate()
                uow.commit()
        except TransactionConflict:
            log.exception(
                "Could not reactivate previous %s asset(s) %s",
                kind,
                sorted(str(asset_id) for asset_id in replaced_ids),
            )

    def _report_orphan(self, key: ManagedKey, kind: MediaKind, blob: StoredBlob) -> None:
        log.error(
            "Orphaned blob %s (%s for series %s): metadata could not be saved; "
            "the blob is kept for the orphan sweep",
            blob.blob_id,
            kind,
            key.reference,
        )

    # Background migration ----------------------------------------------------

    def _schedule_migration(self, key: ManagedKey) -> None:
        def run() -> None:
            try:
                self._registry.migrate_shorthand(key, self._unit_of_work_factory)
            except Exception:
                log.exception("Shorthand migration for %s failed", key.reference)

        if self._schedule is not None:
            self._schedule(run)
            return
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="seriesgate-migrate"
                )
            self._executor.submit(run)


def _archive_all(assets: Sequence[MediaAsset]) -> list[MediaAsset]:
    for asset in assets:
        asset.archive()
    return list(assets)


def _new_asset(
    key: ManagedKey,
    kind: MediaKind,
    blob: StoredBlob,
    replaced: Sequence[MediaAsset],
) -> MediaAsset:
    return MediaAsset(
        series_ref=key.reference,
        kind=kind,
        blob_id=blob.blob_id,
        public_url=blob.public_url,
        file_name=blob.file_name,
        previous_blob_id=replaced[0].blob_id if replaced else None,
    )


def _older_than(info: BlobInfo, cutoff: datetime) -> bool:
    return info.created_at is not None and info.created_at <= cutoff
