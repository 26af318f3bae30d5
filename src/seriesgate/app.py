"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from seriesgate.adapters.blobstore import HttpBlobStore
from seriesgate.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from seriesgate.config import default_catalog, get_blob_store_config
from seriesgate.domain.catalog_registry import CatalogRegistry
from seriesgate.domain.entitlement import EntitlementResolver
from seriesgate.domain.errors import (
    InvalidSelection,
    MaterializationError,
    MediaMetadataSaveError,
    TransactionConflict,
    UnknownSeries,
)
from seriesgate.domain.media import DEFAULT_SWEEP_GRACE_PERIOD, MediaReconciliationService
from seriesgate.domain.model import ManagedKey, MediaKind, PaperStatus, PaperType
from seriesgate.domain.papers import register_paper as register_paper_record
from seriesgate.domain.pricing import lookup_coupon, price, validate_selection
from seriesgate.domain.purchases import PurchaseService
from seriesgate.domain.uploads import new_blob_id, validate_upload
from seriesgate.domain.visibility import (
    PaperQuery,
    group_by_subject,
    public_papers,
    visible_papers,
)
from seriesgate.domain.visibility import paper_summary as summarize_papers

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from seriesgate.domain.entitlement import Entitlement
    from seriesgate.domain.media import Scheduler, SweepReport
    from seriesgate.domain.model import (
        CatalogKey,
        Enrollment,
        FixedCatalog,
        MediaAsset,
        Paper,
        PricingConfig,
        Tier,
    )
    from seriesgate.domain.ports.blobs import BlobStore, StoredBlob
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory
    from seriesgate.domain.pricing import Quote, SelectionValidation
    from seriesgate.domain.visibility import PaperSummary

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuoteResult:
    reference: str
    tier: Tier
    validation: SelectionValidation
    quote: Quote | None = None
    coupon_code: str | None = None
    coupon_recognized: bool = True


@dataclass(frozen=True, slots=True)
class PaperListing:
    entitlement: Entitlement
    papers: list[Paper]

    @property
    def by_subject(self) -> dict[str, list[Paper]]:
        return group_by_subject(self.papers)


@dataclass(frozen=True, slots=True)
class MediaUploadResult:
    blob: StoredBlob
    asset: MediaAsset | None
    metadata_saved: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    enrollment: Enrollment
    quote: QuoteResult


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyCatalogUnitOfWork


def _registry(catalog: FixedCatalog | None) -> CatalogRegistry:
    return CatalogRegistry(catalog or default_catalog())


def _blob_store(blob_store: BlobStore | None) -> BlobStore:
    return blob_store or HttpBlobStore(config=get_blob_store_config())


def _pricing_for(
    registry: CatalogRegistry,
    key: CatalogKey,
    unit_of_work_factory: UnitOfWorkFactory,
) -> tuple[Tier, PricingConfig]:
    if isinstance(key, ManagedKey):
        with unit_of_work_factory() as uow:
            record = uow.repositories.series.get(key.id)
        if record is not None:
            return record.tier, record.pricing
    definition = registry.definition_for(key)
    if definition is None:
        raise UnknownSeries(key.reference)
    return definition.tier, definition.pricing


def quote(  # noqa: PLR0913
    identifier: str,
    *,
    series_instances: Sequence[str] = (),
    subjects: Sequence[str] = (),
    coupon_code: str | None = None,
    strict: bool = False,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> QuoteResult:
    """Validate a selection and price it against the series' current pricing.

    Managed records carry editable pricing; provisional keys fall back to the
    fixed definition. With ``strict`` an invalid selection raises
    :class:`InvalidSelection` instead of being returned.
    """

    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    registry = _registry(catalog)
    key = registry.resolve_with(identifier, effective_uow)
    tier, pricing = _pricing_for(registry, key, effective_uow)

    definition = registry.definition_for(key)

    validation = validate_selection(
        tier,
        series_instances,
        subjects,
        known_series_instances=definition.series_instances if definition else (),
    )
    if not validation.is_valid:
        if strict:
            raise InvalidSelection(validation.errors)
        return QuoteResult(reference=key.reference, tier=tier, validation=validation)

    coupon = lookup_coupon(coupon_code, definition.coupons if definition else ())
    result = price(tier, series_instances, subjects, pricing, coupon)
    log.info(
        "Quoted %s for %s: base=%s, discount=%s, final=%s, papers=%s",
        tier,
        key.reference,
        result.base_price,
        result.discount,
        result.final_price,
        result.total_papers,
    )
    return QuoteResult(
        reference=key.reference,
        tier=tier,
        validation=validation,
        quote=result,
        coupon_code=coupon.code if coupon else None,
        coupon_recognized=coupon is not None or not coupon_code,
    )


def check_entitlement(
    user_id: str,
    identifier: str,
    *,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Entitlement:
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    resolver = EntitlementResolver(_registry(catalog), effective_uow)
    return resolver.entitlement(user_id, identifier)


def list_visible_papers(
    user_id: str,
    identifier: str,
    *,
    query: PaperQuery | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PaperListing:
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    resolver = EntitlementResolver(_registry(catalog), effective_uow)
    _, alternates = resolver.resolve_key(identifier)
    entitlement = resolver.entitlement_for(user_id, alternates)
    with effective_uow() as uow:
        papers = visible_papers(uow.repositories.papers, entitlement, alternates, query)
    return PaperListing(entitlement=entitlement, papers=papers)


def list_public_papers(
    identifier: str,
    *,
    query: PaperQuery | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Paper]:
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    registry = _registry(catalog)
    alternates = registry.alternates(registry.resolve_with(identifier, effective_uow))
    with effective_uow() as uow:
        return public_papers(uow.repositories.papers, alternates, query)


def paper_summary(
    identifier: str,
    *,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PaperSummary:
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    registry = _registry(catalog)
    alternates = registry.alternates(registry.resolve_with(identifier, effective_uow))
    with effective_uow() as uow:
        return summarize_papers(uow.repositories.papers, alternates)


def register_paper(  # noqa: PLR0913
    identifier: str,
    *,
    group: str,
    subject: str,
    paper_type: PaperType = PaperType.QUESTION,
    series_instance: str | None = None,
    paper_number: int = 1,
    status: PaperStatus = PaperStatus.PUBLISHED,
    blob: StoredBlob | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Paper:
    return register_paper_record(
        _registry(catalog),
        _unit_of_work_factory(unit_of_work_factory),
        identifier,
        group=group,
        subject=subject,
        paper_type=paper_type,
        series_instance=series_instance,
        paper_number=paper_number,
        status=status,
        blob=blob,
    )


def attach_media(
    identifier: str,
    kind: MediaKind,
    blob: StoredBlob,
    *,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    schedule: Scheduler | None = None,
) -> MediaAsset:
    service = MediaReconciliationService(
        _registry(catalog),
        _unit_of_work_factory(unit_of_work_factory),
        schedule=schedule,
    )
    return service.attach(identifier, kind, blob)


def upload_media(  # noqa: PLR0913
    identifier: str,
    kind: str,
    data: bytes,
    filename: str,
    content_type: str | None,
    *,
    blob_store: BlobStore | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    schedule: Scheduler | None = None,
) -> MediaUploadResult:
    """Validate, store the bytes, then attach them as the active asset.

    Validation and blob failures raise before anything is written to the
    database. A metadata failure after a successful upload is reported in
    the result; the blob stays in storage.
    """

    parsed_kind = validate_upload(kind, content_type, len(data))
    registry = _registry(catalog)
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    # unknown identifiers must fail before bytes are uploaded
    registry.resolve_with(identifier, effective_uow)

    stored = _blob_store(blob_store).put(
        data,
        filename,
        content_type=content_type,
        blob_id=new_blob_id(parsed_kind),
    )

    service = MediaReconciliationService(registry, effective_uow, schedule=schedule)
    try:
        asset = service.attach(identifier, parsed_kind, stored)
    except MediaMetadataSaveError as exc:
        return MediaUploadResult(blob=stored, asset=None, metadata_saved=False, error=str(exc))
    except (MaterializationError, TransactionConflict) as exc:
        log.error(
            "Orphaned blob %s (%s for %s): series record unavailable: %s",
            stored.blob_id,
            parsed_kind,
            identifier,
            exc,
        )
        return MediaUploadResult(blob=stored, asset=None, metadata_saved=False, error=str(exc))
    return MediaUploadResult(blob=stored, asset=asset, metadata_saved=True)


def sweep_orphaned_blobs(
    *,
    older_than: timedelta = DEFAULT_SWEEP_GRACE_PERIOD,
    dry_run: bool = False,
    blob_store: BlobStore | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SweepReport:
    service = MediaReconciliationService(
        _registry(catalog), _unit_of_work_factory(unit_of_work_factory)
    )
    return service.sweep_orphaned_blobs(
        _blob_store(blob_store), older_than=older_than, dry_run=dry_run
    )


def purchase_tokens(tier: Tier, series_instances: Iterable[str], subjects: Iterable[str]) -> list[str]:
    """Subject tokens recorded on a purchase; multi-instance tiers scope per instance."""

    subject_list = list(subjects)
    if not tier.multi_instance:
        return subject_list
    return [f"{instance}-{subject}" for instance in series_instances for subject in subject_list]


def open_checkout(  # noqa: PLR0913
    user_id: str,
    identifier: str,
    *,
    series_instances: Sequence[str] = (),
    subjects: Sequence[str] = (),
    coupon_code: str | None = None,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CheckoutResult:
    """Price the selection strictly and open (or refresh) a pending purchase."""

    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    quoted = quote(
        identifier,
        series_instances=series_instances,
        subjects=subjects,
        coupon_code=coupon_code,
        strict=True,
        catalog=catalog,
        unit_of_work_factory=effective_uow,
    )
    if quoted.quote is None:
        raise InvalidSelection(quoted.validation.errors)
    enrollment = PurchaseService(_registry(catalog), effective_uow).open_checkout(
        user_id,
        identifier,
        amount=quoted.quote.final_price,
        purchased_subjects=purchase_tokens(quoted.tier, series_instances, subjects),
    )
    return CheckoutResult(enrollment=enrollment, quote=quoted)


def confirm_payment(
    enrollment_id: UUID,
    payment_id: str,
    purchased_subjects: Sequence[str] | None = None,
    *,
    catalog: FixedCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Enrollment:
    service = PurchaseService(_registry(catalog), _unit_of_work_factory(unit_of_work_factory))
    return service.confirm_payment(enrollment_id, payment_id, purchased_subjects)
