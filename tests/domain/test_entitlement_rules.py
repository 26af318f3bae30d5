from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from seriesgate.domain.entitlement import (
    Entitlement,
    EntitlementResolver,
    merge_purchases,
    subject_of,
    token_matches,
)
from seriesgate.domain.model import Enrollment, PaymentStatus, ResourceType

if TYPE_CHECKING:
    from collections.abc import Callable

    from seriesgate.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from seriesgate.domain.catalog_registry import CatalogRegistry


def _enrollment(
    *subjects: str,
    user_id: str = "user-1",
    reference: str = "s1",
    status: PaymentStatus = PaymentStatus.PAID,
    resource_type: ResourceType = ResourceType.TEST_SERIES,
) -> Enrollment:
    return Enrollment(
        user_id=user_id,
        resource_type=resource_type,
        resource_ref=reference,
        amount=450,
        payment_status=status,
        purchased_subjects=list(subjects),
    )


@pytest.mark.parametrize(
    ("token", "expected"),
    [("FR", "FR"), ("series1-AFM", "AFM"), ("series-two-IDT", "IDT")],
)
def test_subject_of(token: str, expected: str) -> None:
    assert subject_of(token) == expected


def test_token_matches_plain_and_scoped_tokens() -> None:
    assert token_matches("AFM", "AFM")
    assert token_matches("series3-AFM", "AFM")
    assert not token_matches("series3-AFM", "FR")


def test_merge_without_records_denies_access() -> None:
    decision = merge_purchases([])

    assert not decision.has_access
    assert not decision.allows("FR")
    assert decision.subject_filter() == frozenset()


def test_merge_unions_subjects_across_records() -> None:
    decision = merge_purchases([_enrollment("FR"), _enrollment("series1-AFM")])

    assert decision.has_access
    assert decision.record_count == 2
    assert decision.subjects == frozenset({"FR", "series1-AFM"})
    assert decision.allows("AFM")
    assert decision.allows("FR")
    assert not decision.allows("DT")
    assert decision.subject_filter() == frozenset({"FR", "AFM"})


def test_merge_with_empty_subject_lists_is_unscoped() -> None:
    decision = merge_purchases([_enrollment(), _enrollment()])

    assert decision.unscoped
    assert decision.allows("IDT")
    assert decision.subject_filter() is None


def test_entitlement_none_is_not_unscoped() -> None:
    assert not Entitlement.none().unscoped


def _store(
    unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork], *records: Enrollment
) -> None:
    with unit_of_work() as uow:
        for record in records:
            uow.repositories.enrollments.add(record)
        uow.commit()


def test_resolver_counts_only_paid_test_series_records(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    _store(
        sqlite_unit_of_work,
        _enrollment("FR"),
        _enrollment("AFM", status=PaymentStatus.PENDING),
        _enrollment("DT", status=PaymentStatus.REFUNDED),
        _enrollment("IDT", resource_type=ResourceType.COURSE),
        _enrollment("Audit", user_id="someone-else"),
    )
    resolver = EntitlementResolver(registry, sqlite_unit_of_work)

    decision = resolver.entitlement("user-1", "S1")

    assert decision.has_access
    assert decision.subjects == frozenset({"FR"})
    assert decision.record_count == 1


def test_resolver_reads_both_reference_forms(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    key = registry.materialize("S1", sqlite_unit_of_work).key
    _store(
        sqlite_unit_of_work,
        _enrollment("FR", reference="s1"),
        _enrollment("series2-AFM", reference=key.reference),
    )
    resolver = EntitlementResolver(registry, sqlite_unit_of_work)

    by_code = resolver.entitlement("user-1", "s1")
    by_key = resolver.entitlement("user-1", str(key.id))

    assert by_code == by_key
    assert by_code.record_count == 2
    assert by_code.allows("FR")
    assert by_code.allows("AFM")
    assert not by_code.allows("Audit")


def test_resolver_without_purchases_denies(
    registry: CatalogRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    resolver = EntitlementResolver(registry, sqlite_unit_of_work)

    assert resolver.entitlement("nobody", "S3") == Entitlement.none()
