from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from seriesgate.config.catalog import default_catalog, default_definitions
from seriesgate.domain.catalog_registry import CatalogRegistry
from seriesgate.domain.errors import MaterializationError, UnknownSeries
from seriesgate.domain.model import (
    Alternates,
    Enrollment,
    FixedCatalog,
    FixedKey,
    ManagedKey,
    MediaAsset,
    MediaKind,
    Paper,
    PaperType,
    ResourceType,
)
from tests.helpers.conflicts import CommitConflicts

if TYPE_CHECKING:
    from collections.abc import Callable

    from seriesgate.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork


def test_fixed_catalog_rejects_duplicate_codes() -> None:
    definitions = default_definitions()

    with pytest.raises(ValueError, match="Duplicate catalog code"):
        FixedCatalog((*definitions, definitions[0]))


def test_fixed_catalog_lookup_ignores_case() -> None:
    catalog = default_catalog()

    assert "s4" in catalog
    assert " S2 " in catalog
    assert "S5" not in catalog
    assert catalog.codes == ("S1", "S2", "S3", "S4")


def test_resolve_tier_code_without_record_is_provisional(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    key = registry.resolve_with("s2", sqlite_unit_of_work)

    assert key == FixedKey(code="S2")
    assert key.reference == "s2"
    assert not key.persisted
    assert registry.alternates(key) == Alternates(shorthand="s2")


@pytest.mark.parametrize("identifier", ["", "   ", "S9", "not-a-series", str(uuid4())])
def test_resolve_unknown_identifier(
    identifier: str,
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with pytest.raises(UnknownSeries):
        registry.resolve_with(identifier, sqlite_unit_of_work)


def test_materialize_then_resolve_by_code_and_key(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    materialization = registry.materialize("s1", sqlite_unit_of_work)

    assert materialization.created
    key = materialization.key
    assert key.code == "S1"

    by_code = registry.resolve_with("S1", sqlite_unit_of_work)
    by_key = registry.resolve_with(str(key.id), sqlite_unit_of_work)
    assert by_code == key
    assert by_key == key
    assert registry.alternates(key) == Alternates(shorthand="s1", persisted_key=str(key.id))
    assert registry.alternates(key).references == (str(key.id), "s1")


def test_materialize_is_idempotent(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    first = registry.materialize("S3", sqlite_unit_of_work)
    second = registry.materialize("s3", sqlite_unit_of_work)

    assert first.created
    assert not second.created
    assert first.key == second.key


def test_materialize_copies_definition_into_record(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    key = registry.materialize("S4", sqlite_unit_of_work).key

    with sqlite_unit_of_work() as uow:
        record = uow.repositories.series.get(key.id)

    assert record is not None
    assert record.tier_code == "S4"
    assert record.label == "CA Successful Specials"
    assert record.pricing.percent_cap == 16
    assert record.subjects == ["FR", "AFM", "Audit", "DT", "IDT"]


def test_materialize_retries_after_lost_race(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    conflicts = CommitConflicts(failing={1})

    materialization = registry.materialize("S2", conflicts.wrap(sqlite_unit_of_work))

    assert materialization.created
    assert conflicts.failed == 1
    assert registry.resolve_with("S2", sqlite_unit_of_work) == materialization.key


def test_materialize_gives_up_after_max_attempts(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    registry = CatalogRegistry(default_catalog(), max_materialize_attempts=2)
    conflicts = CommitConflicts(failing={1, 2})

    with pytest.raises(MaterializationError):
        registry.materialize("S2", conflicts.wrap(sqlite_unit_of_work))

    assert isinstance(registry.resolve_with("S2", sqlite_unit_of_work), FixedKey)


def test_registry_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError, match="at least 1"):
        CatalogRegistry(default_catalog(), max_materialize_attempts=0)


def test_ensure_persisted_reuses_existing_record(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    created = registry.ensure_persisted("S1", sqlite_unit_of_work)
    again = registry.ensure_persisted(str(created.key.id), sqlite_unit_of_work)

    assert created.created
    assert not again.created
    assert again.key == created.key


def test_migrate_shorthand_rewrites_every_table(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.papers.add(
            Paper(series_ref="s1", group="Group 1", subject="FR", paper_type=PaperType.QUESTION)
        )
        uow.repositories.papers.add(
            Paper(series_ref="s2", group="Group 1", subject="FR", paper_type=PaperType.QUESTION)
        )
        uow.repositories.media.add(
            MediaAsset(series_ref="s1", kind=MediaKind.VIDEO, blob_id="video-1")
        )
        uow.repositories.enrollments.add(
            Enrollment(
                user_id="user-1",
                resource_type=ResourceType.TEST_SERIES,
                resource_ref="s1",
                amount=450,
            )
        )
        uow.commit()

    key = registry.materialize("S1", sqlite_unit_of_work).key
    migration = registry.migrate_shorthand(key, sqlite_unit_of_work)

    assert migration.papers == 1
    assert migration.media == 1
    assert migration.enrollments == 1
    assert migration.total == 3

    with sqlite_unit_of_work() as uow:
        assert len(uow.repositories.papers.find([key.reference])) == 1
        assert len(uow.repositories.papers.find(["s1"])) == 0
        assert len(uow.repositories.papers.find(["s2"])) == 1

    assert registry.migrate_shorthand(key, sqlite_unit_of_work).total == 0


def test_migrate_shorthand_without_code_is_a_no_op(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    migration = registry.migrate_shorthand(ManagedKey(id=uuid4()), sqlite_unit_of_work)

    assert migration.total == 0
