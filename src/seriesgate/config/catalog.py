"""Fixed catalog table: the four tier definitions and their coupons."""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

from seriesgate.domain.model import (
    Coupon,
    CouponType,
    FixedCatalog,
    FixedDefinition,
    PricingConfig,
    Tier,
)

SUBJECTS: Final[tuple[str, ...]] = ("FR", "AFM", "Audit", "DT", "IDT")
GROUPS: Final = MappingProxyType(
    {
        "Group 1": ("FR", "AFM", "Audit"),
        "Group 2": ("DT", "IDT"),
    }
)
SERIES_INSTANCES: Final[tuple[str, ...]] = ("series1", "series2", "series3")

SPECIALS_PERCENT_CAP: Final[int] = 16

DEFAULT_COUPONS: Final[tuple[Coupon, ...]] = (
    Coupon(code="CA2026", type=CouponType.FLAT, value=100, label="CA2026 - 100 off"),
    Coupon(code="CA10", type=CouponType.PERCENT, value=10, label="CA10 - 10% off"),
)

STANDARD_PRICING: Final = PricingConfig(
    subject_price=450,
    combo_price=1200,
    all_subjects_price=2000,
    all_series_all_subjects_price=6000,
)
SPECIALS_PRICING: Final = PricingConfig(
    subject_price=1200,
    combo_price=3600,
    all_subjects_price=6000,
    all_series_all_subjects_price=6000,
    percent_cap=SPECIALS_PERCENT_CAP,
)


def default_definitions() -> tuple[FixedDefinition, ...]:
    return (
        FixedDefinition(
            code="S1",
            tier=Tier.FULL_SYLLABUS,
            title="Full Syllabus Test Series",
            description="Full-length papers in Series 1, 2 and 3; one paper per subject per series.",
            subjects=SUBJECTS,
            groups=GROUPS,
            series_instances=SERIES_INSTANCES,
            pricing=STANDARD_PRICING,
            coupons=DEFAULT_COUPONS,
        ),
        FixedDefinition(
            code="S2",
            tier=Tier.HALF_SYLLABUS,
            title="50% Syllabus Test Series",
            description="Two papers per subject covering the syllabus in two halves.",
            subjects=SUBJECTS,
            groups=GROUPS,
            pricing=STANDARD_PRICING,
            coupons=DEFAULT_COUPONS,
        ),
        FixedDefinition(
            code="S3",
            tier=Tier.THIRTY_PERCENT,
            title="30% Syllabus Test Series",
            description="Three papers per subject covering the syllabus in thirds.",
            subjects=SUBJECTS,
            groups=GROUPS,
            pricing=STANDARD_PRICING,
            coupons=DEFAULT_COUPONS,
        ),
        FixedDefinition(
            code="S4",
            tier=Tier.SPECIALS,
            title="CA Successful Specials",
            description="Six papers per subject: one full, two half and three part syllabus papers.",
            subjects=SUBJECTS,
            groups=GROUPS,
            pricing=SPECIALS_PRICING,
            coupons=DEFAULT_COUPONS,
        ),
    )


def default_catalog() -> FixedCatalog:
    return FixedCatalog(default_definitions())
