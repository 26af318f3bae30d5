"""Catalog entries: fixed definitions, managed records and their keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID

from seriesgate.domain.model.entity import Entity
from seriesgate.domain.model.enums import CouponType, PublishStatus, Tier

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


@dataclass(frozen=True, slots=True)
class PricingConfig:
    """Editable price points for one tier.

    ``all_series_all_subjects_price`` is informational: the engine never
    special-cases it.
    """

    subject_price: int = 450
    combo_price: int = 1200
    combo_size: int = 3
    all_subjects_price: int = 2000
    all_series_all_subjects_price: int = 6000
    catalog_subject_count: int = 5
    percent_cap: int | None = None

    def __composite_values__(
        self,
    ) -> tuple[int, int, int, int, int, int, int | None]:
        """For SQLAlchemy composite columns (adapter-side convenience)."""
        return (
            self.subject_price,
            self.combo_price,
            self.combo_size,
            self.all_subjects_price,
            self.all_series_all_subjects_price,
            self.catalog_subject_count,
            self.percent_cap,
        )


@dataclass(frozen=True, slots=True)
class Coupon:
    code: str
    type: CouponType
    value: int
    label: str | None = None


@dataclass(frozen=True, slots=True)
class FixedDefinition:
    """Code-defined tier entry; always available without a database."""

    code: str
    tier: Tier
    title: str
    description: str = ""
    subjects: tuple[str, ...] = ()
    groups: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    series_instances: tuple[str, ...] = ()
    pricing: PricingConfig = field(default_factory=PricingConfig)
    coupons: tuple[Coupon, ...] = ()

    @property
    def label(self) -> str:
        return self.tier.label

    @property
    def shorthand(self) -> str:
        return self.code.lower()


class FixedCatalog:
    """Immutable table of fixed definitions keyed by upper-case code."""

    def __init__(self, definitions: Iterable[FixedDefinition]) -> None:
        table: dict[str, FixedDefinition] = {}
        for definition in definitions:
            code = definition.code.upper()
            if code in table:
                raise ValueError(f"Duplicate catalog code: {code}")
            table[code] = definition
        self._table: Mapping[str, FixedDefinition] = MappingProxyType(table)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._table

    def __iter__(self) -> Iterator[FixedDefinition]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(self._table)

    def get(self, code: str) -> FixedDefinition | None:
        return self._table.get(code.strip().upper())

    def require(self, code: str) -> FixedDefinition:
        definition = self.get(code)
        if definition is None:
            raise KeyError(code)
        return definition


@dataclass(eq=False, kw_only=True)
class ManagedSeries(Entity):
    """Persisted, editable counterpart of a fixed definition."""

    DEFAULT_TITLE_PREFIX: ClassVar[str] = "Test Series"

    tier_code: str
    tier: Tier
    title: str
    label: str
    subjects: list[str] = field(default_factory=list[str])
    pricing: PricingConfig = field(default_factory=PricingConfig)
    publish_status: PublishStatus = PublishStatus.DRAFT
    is_active: bool = True

    @classmethod
    def from_definition(cls, definition: FixedDefinition) -> ManagedSeries:
        return cls(
            tier_code=definition.code.upper(),
            tier=definition.tier,
            title=definition.title or f"{cls.DEFAULT_TITLE_PREFIX} {definition.code.upper()}",
            label=definition.label,
            subjects=list(definition.subjects),
            pricing=definition.pricing,
            publish_status=PublishStatus.PUBLISHED,
        )

    @property
    def key(self) -> ManagedKey:
        return ManagedKey(id=self.id, code=self.tier_code)


# Catalog keys ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FixedKey:
    """Provisional key: a known tier code with no managed record yet."""

    code: str

    @property
    def reference(self) -> str:
        return self.code.lower()

    @property
    def persisted(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ManagedKey:
    id: UUID
    code: str | None = None

    @property
    def reference(self) -> str:
        return str(self.id)

    @property
    def persisted(self) -> bool:
        return True


type CatalogKey = FixedKey | ManagedKey


@dataclass(frozen=True, slots=True)
class Alternates:
    """Every stored form a series may have been written under."""

    shorthand: str | None = None
    persisted_key: str | None = None

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(ref for ref in (self.persisted_key, self.shorthand) if ref is not None)

    def __contains__(self, reference: object) -> bool:
        return reference in self.references
