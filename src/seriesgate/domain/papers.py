"""Write path for uploaded papers."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from seriesgate.domain.model import Paper, PaperStatus, PaperType

if TYPE_CHECKING:
    from seriesgate.domain.catalog_registry import CatalogRegistry
    from seriesgate.domain.ports.blobs import StoredBlob
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


def register_paper(  # noqa: PLR0913
    registry: CatalogRegistry,
    unit_of_work_factory: UnitOfWorkFactory,
    identifier: str,
    *,
    group: str,
    subject: str,
    paper_type: PaperType = PaperType.QUESTION,
    series_instance: str | None = None,
    paper_number: int = 1,
    status: PaperStatus = PaperStatus.PUBLISHED,
    blob: StoredBlob | None = None,
) -> Paper:
    """Record a paper against the persisted key, materializing it if needed.

    ``series_instance`` is dropped for tiers without series instances.
    """

    materialization = registry.ensure_persisted(identifier, unit_of_work_factory)
    key = materialization.key
    definition = registry.definition_for(key)
    if definition is not None and not definition.tier.multi_instance:
        series_instance = None

    paper = Paper(
        series_ref=key.reference,
        group=group,
        subject=subject,
        paper_type=paper_type,
        series_instance=series_instance,
        paper_number=paper_number,
        status=status,
        blob_id=blob.blob_id if blob else None,
        public_url=blob.public_url if blob else None,
        file_name=blob.file_name if blob else None,
    )
    with unit_of_work_factory() as uow:
        uow.repositories.papers.add(paper)
        uow.commit()

    log.info(
        "Registered %s paper %s for %s/%s on series %s",
        paper_type,
        paper.id,
        group,
        subject,
        key.reference,
    )
    if materialization.created:
        registry.migrate_shorthand(key, unit_of_work_factory)
    return paper
