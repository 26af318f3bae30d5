"""Identity resolution between shorthand tier codes and managed records.

A series can be referenced two ways: by a fixed tier code (``s1`` ... ``s4``),
which is always available, or by the UUID of its managed record, which only
exists once something had to be persisted for that tier. Historical rows were
written under either form, so every downstream query goes through
:meth:`CatalogRegistry.alternates` instead of trusting a single string.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from seriesgate.domain.errors import MaterializationError, TransactionConflict, UnknownSeries
from seriesgate.domain.model import Alternates, FixedKey, ManagedKey, ManagedSeries

if TYPE_CHECKING:
    from seriesgate.domain.model import CatalogKey, FixedCatalog, FixedDefinition
    from seriesgate.domain.ports.persistence import ManagedSeriesRepository
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)

DEFAULT_MATERIALIZE_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class Materialization:
    key: ManagedKey
    created: bool


@dataclass(frozen=True, slots=True)
class ReferenceMigration:
    """Rows moved from the shorthand form to the persisted key."""

    papers: int = 0
    media: int = 0
    enrollments: int = 0

    @property
    def total(self) -> int:
        return self.papers + self.media + self.enrollments


def parse_persisted_key(identifier: str) -> UUID | None:
    try:
        return UUID(identifier)
    except ValueError:
        return None


class CatalogRegistry:
    """Resolves series identifiers against an injected fixed catalog."""

    def __init__(
        self,
        catalog: FixedCatalog,
        *,
        max_materialize_attempts: int = DEFAULT_MATERIALIZE_ATTEMPTS,
    ) -> None:
        if max_materialize_attempts < 1:
            raise ValueError("max_materialize_attempts must be at least 1")
        self._catalog = catalog
        self._max_materialize_attempts = max_materialize_attempts

    @property
    def catalog(self) -> FixedCatalog:
        return self._catalog

    def is_tier_code(self, identifier: str) -> bool:
        return identifier in self._catalog

    def resolve(self, identifier: str, series: ManagedSeriesRepository) -> CatalogKey:
        """Return the canonical key for ``identifier``.

        Order: persisted key, then tier code with a managed record, then a
        provisional fixed key for a known tier code. Anything else is unknown.
        """

        raw = identifier.strip()
        if not raw:
            raise UnknownSeries(identifier)

        series_id = parse_persisted_key(raw)
        if series_id is not None:
            record = series.get(series_id)
            if record is not None:
                return record.key

        definition = self._catalog.get(raw)
        if definition is None:
            raise UnknownSeries(identifier)

        code = definition.code.upper()
        record = series.get_by_tier_code(code)
        if record is not None:
            return record.key
        return FixedKey(code=code)

    def resolve_with(self, identifier: str, unit_of_work_factory: UnitOfWorkFactory) -> CatalogKey:
        with unit_of_work_factory() as uow:
            return self.resolve(identifier, uow.repositories.series)

    def alternates(self, key: CatalogKey) -> Alternates:
        match key:
            case FixedKey(code=code):
                return Alternates(shorthand=code.lower())
            case ManagedKey(id=series_id, code=code):
                return Alternates(
                    shorthand=code.lower() if code else None,
                    persisted_key=str(series_id),
                )

    def definition_for(self, key: CatalogKey) -> FixedDefinition | None:
        if key.code is None:
            return None
        return self._catalog.get(key.code)

    def materialize(self, code: str, unit_of_work_factory: UnitOfWorkFactory) -> Materialization:
        """Create the managed record for ``code`` unless one already exists.

        Tier codes are unique in storage, so a concurrent creator makes our
        commit fail; we then re-read and adopt the winner's record.
        """

        definition = self._catalog.get(code)
        if definition is None:
            raise UnknownSeries(code)
        tier_code = definition.code.upper()

        for attempt in range(1, self._max_materialize_attempts + 1):
            try:
                with unit_of_work_factory() as uow:
                    repository = uow.repositories.series
                    existing = repository.get_by_tier_code(tier_code)
                    if existing is not None:
                        return Materialization(key=existing.key, created=False)

                    record = ManagedSeries.from_definition(definition)
                    repository.add(record)
                    uow.commit()
            except TransactionConflict:
                log.warning(
                    "Materialization of %s lost a race (attempt %s/%s)",
                    tier_code,
                    attempt,
                    self._max_materialize_attempts,
                )
                continue

            log.info("Materialized managed series %s for tier code %s", record.id, tier_code)
            return Materialization(key=record.key, created=True)

        raise MaterializationError(
            f"Could not materialize a managed record for {tier_code} "
            f"after {self._max_materialize_attempts} attempts"
        )

    def ensure_persisted(
        self,
        identifier: str,
        unit_of_work_factory: UnitOfWorkFactory,
    ) -> Materialization:
        """Resolve for a write path, materializing a provisional key."""

        key = self.resolve_with(identifier, unit_of_work_factory)
        match key:
            case ManagedKey():
                return Materialization(key=key, created=False)
            case FixedKey(code=code):
                return self.materialize(code, unit_of_work_factory)

    def migrate_shorthand(
        self,
        key: ManagedKey,
        unit_of_work_factory: UnitOfWorkFactory,
    ) -> ReferenceMigration:
        """Point rows stored under the shorthand code at the persisted key."""

        if key.code is None:
            return ReferenceMigration()
        shorthand = key.code.lower()
        persisted = key.reference

        with unit_of_work_factory() as uow:
            repositories = uow.repositories
            migration = ReferenceMigration(
                papers=repositories.papers.reassign_references(shorthand, persisted),
                media=repositories.media.reassign_references(shorthand, persisted),
                enrollments=repositories.enrollments.reassign_references(shorthand, persisted),
            )
            uow.commit()

        log.info(
            "Migrated shorthand %s to %s: papers=%s, media=%s, enrollments=%s",
            shorthand,
            persisted,
            migration.papers,
            migration.media,
            migration.enrollments,
        )
        return migration
