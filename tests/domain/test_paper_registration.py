from __future__ import annotations

from typing import TYPE_CHECKING

from seriesgate.domain.model import Paper, PaperStatus, PaperType
from seriesgate.domain.papers import register_paper
from tests.helpers.blobs import stored

if TYPE_CHECKING:
    from collections.abc import Callable

    from seriesgate.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from seriesgate.domain.catalog_registry import CatalogRegistry


def test_register_materializes_and_migrates_shorthand_rows(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.papers.add(
            Paper(series_ref="s1", group="Group 1", subject="AFM", paper_type=PaperType.QUESTION)
        )
        uow.commit()

    paper = register_paper(
        registry,
        sqlite_unit_of_work,
        "S1",
        group="Group 1",
        subject="FR",
        series_instance="series2",
        blob=stored("paper-1"),
    )

    key = registry.resolve_with("S1", sqlite_unit_of_work)
    assert key.persisted
    assert paper.series_ref == key.reference
    assert paper.series_instance == "series2"
    assert paper.blob_id == "paper-1"
    assert paper.public_url == "https://blobs.test/paper-1"
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.papers.find(["s1"]) == []
        assert len(uow.repositories.papers.find([key.reference])) == 2


def test_register_drops_series_instance_for_single_instance_tiers(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    paper = register_paper(
        registry,
        sqlite_unit_of_work,
        "S3",
        group="Group 2",
        subject="DT",
        paper_type=PaperType.EVALUATED,
        series_instance="series1",
        paper_number=3,
        status=PaperStatus.DRAFT,
    )

    assert paper.series_instance is None
    assert paper.paper_number == 3
    assert paper.status is PaperStatus.DRAFT
    assert not paper.is_published
    assert paper.blob_id is None
