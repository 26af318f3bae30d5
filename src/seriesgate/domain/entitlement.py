"""Subject-level access decisions derived from paid purchase records."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from seriesgate.domain.model import ResourceType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from seriesgate.domain.catalog_registry import CatalogRegistry
    from seriesgate.domain.model import Alternates, CatalogKey, Enrollment
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)

INSTANCE_SEPARATOR = "-"


def subject_of(token: str) -> str:
    """Return the plain subject a purchased token refers to.

    ``series1-AFM`` scopes ``AFM`` to one series instance; a token without the
    separator is already a plain subject.
    """

    _, separator, subject = token.rpartition(INSTANCE_SEPARATOR)
    return subject if separator else token


def token_matches(token: str, subject: str) -> bool:
    return token == subject or subject_of(token) == subject


@dataclass(frozen=True, slots=True)
class Entitlement:
    """Access decision for one user and one series.

    ``subjects`` is ``None`` for unscoped access (every subject).
    """

    has_access: bool
    subjects: frozenset[str] | None = None
    record_count: int = 0

    @classmethod
    def none(cls) -> Entitlement:
        return cls(has_access=False, subjects=frozenset())

    @property
    def unscoped(self) -> bool:
        return self.has_access and self.subjects is None

    def allows(self, subject: str) -> bool:
        if not self.has_access:
            return False
        if self.subjects is None:
            return True
        return any(token_matches(token, subject) for token in self.subjects)

    def subject_filter(self) -> frozenset[str] | None:
        """Plain subjects usable in a content query; ``None`` means no filter."""

        if not self.has_access:
            return frozenset()
        if self.subjects is None:
            return None
        return frozenset(subject_of(token) for token in self.subjects)


def merge_purchases(enrollments: Iterable[Enrollment]) -> Entitlement:
    records = list(enrollments)
    if not records:
        return Entitlement.none()

    union: set[str] = set()
    for record in records:
        union.update(record.purchased_subjects)

    if not union:
        return Entitlement(has_access=True, subjects=None, record_count=len(records))
    return Entitlement(has_access=True, subjects=frozenset(union), record_count=len(records))


class EntitlementResolver:
    def __init__(self, registry: CatalogRegistry, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._registry = registry
        self._unit_of_work_factory = unit_of_work_factory

    def resolve_key(self, identifier: str) -> tuple[CatalogKey, Alternates]:
        key = self._registry.resolve_with(identifier, self._unit_of_work_factory)
        return key, self._registry.alternates(key)

    def entitlement(self, user_id: str, identifier: str) -> Entitlement:
        _, alternates = self.resolve_key(identifier)
        return self.entitlement_for(user_id, alternates)

    def entitlement_for(self, user_id: str, alternates: Alternates) -> Entitlement:
        with self._unit_of_work_factory() as uow:
            records = uow.repositories.enrollments.find_paid(
                user_id=user_id,
                resource_type=ResourceType.TEST_SERIES,
                references=alternates.references,
            )
            decision = merge_purchases(records)

        log.debug(
            "Entitlement for user %s on %s: access=%s, records=%s, subjects=%s",
            user_id,
            alternates.references,
            decision.has_access,
            decision.record_count,
            "all" if decision.subjects is None else sorted(decision.subjects),
        )
        return decision
