from __future__ import annotations

import pytest

from seriesgate.config.catalog import (
    DEFAULT_COUPONS,
    SPECIALS_PRICING,
    STANDARD_PRICING,
    SERIES_INSTANCES,
    SUBJECTS,
)
from seriesgate.domain.model import Coupon, CouponType, Tier
from seriesgate.domain.pricing import (
    coupon_discount,
    lookup_coupon,
    paper_count,
    price,
    validate_selection,
)


def test_full_syllabus_multiplies_subjects_by_series_instances() -> None:
    quote = price(
        Tier.FULL_SYLLABUS,
        ["series1", "series2", "series3"],
        list(SUBJECTS),
        STANDARD_PRICING,
    )

    assert quote.base_price == 6750
    assert quote.discount == 0
    assert quote.final_price == 6750
    assert quote.total_papers == 15
    assert quote.breakdown.series_instance_count == 3
    assert quote.breakdown.coupon_code is None


@pytest.mark.parametrize(
    ("tier", "subjects", "expected_price", "expected_papers"),
    [
        (Tier.HALF_SYLLABUS, ["FR", "AFM"], 900, 4),
        (Tier.THIRTY_PERCENT, ["FR"], 450, 3),
        (Tier.THIRTY_PERCENT, ["FR", "AFM", "Audit", "DT"], 1800, 12),
    ],
)
def test_single_instance_tiers_price_per_subject(
    tier: Tier, subjects: list[str], expected_price: int, expected_papers: int
) -> None:
    quote = price(tier, [], subjects, STANDARD_PRICING)

    assert quote.base_price == expected_price
    assert quote.total_papers == expected_papers


@pytest.mark.parametrize(
    ("subjects", "expected_price", "rule_fragment"),
    [
        (["FR"], 1200, "individual"),
        (["FR", "AFM"], 2400, "individual"),
        (["FR", "AFM", "Audit"], 3600, "combo"),
        (["FR", "AFM", "Audit", "DT"], 4800, "individual"),
        (list(SUBJECTS), 6000, "all 5 subjects"),
    ],
)
def test_specials_bundle_rules(
    subjects: list[str], expected_price: int, rule_fragment: str
) -> None:
    quote = price(Tier.SPECIALS, [], subjects, SPECIALS_PRICING)

    assert quote.base_price == expected_price
    assert quote.total_papers == 6 * len(subjects)
    assert rule_fragment in quote.breakdown.applied_rule


def test_repeated_selections_are_counted_once() -> None:
    specials = price(Tier.SPECIALS, [], ["FR", "FR", "AFM"], SPECIALS_PRICING)
    full = price(Tier.FULL_SYLLABUS, ["series1", "series1"], ["FR"], STANDARD_PRICING)

    assert specials.base_price == 2400
    assert specials.total_papers == 12
    assert specials.breakdown.subject_count == 2
    assert "individual" in specials.breakdown.applied_rule
    assert full.base_price == 450
    assert full.breakdown.series_instance_count == 1


def test_specials_percent_coupon_is_capped() -> None:
    coupon = Coupon(code="BIG20", type=CouponType.PERCENT, value=20)

    quote = price(Tier.SPECIALS, [], ["FR", "AFM", "Audit"], SPECIALS_PRICING, coupon)

    assert quote.base_price == 3600
    assert quote.discount == 576
    assert quote.final_price == 3024
    assert quote.total_papers == 18
    assert quote.breakdown.coupon_code == "BIG20"
    assert quote.breakdown.percent_cap == 16


def test_percent_coupon_uncapped_for_standard_tiers() -> None:
    coupon = lookup_coupon("CA10", DEFAULT_COUPONS)
    assert coupon is not None

    quote = price(Tier.FULL_SYLLABUS, ["series1"], ["FR", "AFM"], STANDARD_PRICING, coupon)

    assert quote.base_price == 900
    assert quote.discount == 90
    assert quote.final_price == 810


def test_flat_coupon_never_exceeds_base_price() -> None:
    coupon = Coupon(code="HUGE", type=CouponType.FLAT, value=1000)

    assert coupon_discount(450, coupon, percent_cap=None) == 450
    quote = price(Tier.HALF_SYLLABUS, [], ["FR"], STANDARD_PRICING, coupon)
    assert quote.final_price == 0


def test_percent_discount_rounds_down() -> None:
    coupon = Coupon(code="P7", type=CouponType.PERCENT, value=7)

    assert coupon_discount(450, coupon, percent_cap=None) == 31


def test_coupon_ignored_without_subjects() -> None:
    coupon = Coupon(code="CA2026", type=CouponType.FLAT, value=100)

    quote = price(Tier.HALF_SYLLABUS, [], [], STANDARD_PRICING, coupon)

    assert quote.base_price == 0
    assert quote.discount == 0
    assert quote.total_papers == 0
    assert quote.breakdown.coupon_code is None


def test_paper_count_is_zero_without_subjects() -> None:
    assert paper_count(Tier.SPECIALS, 0, 0) == 0
    assert paper_count(Tier.FULL_SYLLABUS, 2, 3) == 6


def test_validate_requires_series_instance_for_full_syllabus() -> None:
    result = validate_selection(
        Tier.FULL_SYLLABUS, [], ["FR"], known_series_instances=SERIES_INSTANCES
    )

    assert not result.is_valid
    assert result.errors == ("Series selection is required for S1 Full Syllabus",)


def test_validate_rejects_unknown_series_instance() -> None:
    result = validate_selection(
        Tier.FULL_SYLLABUS, ["series1", "series9"], ["FR"], known_series_instances=SERIES_INSTANCES
    )

    assert not result.is_valid
    assert result.errors == ("Invalid series: series9",)


def test_validate_rejects_series_selection_for_half_syllabus() -> None:
    result = validate_selection(
        Tier.HALF_SYLLABUS, ["series1"], ["FR"], known_series_instances=SERIES_INSTANCES
    )

    assert not result.is_valid
    assert len(result.errors) == 1
    assert "S2" in result.errors[0]
    assert "does not support series selection" in result.errors[0]


def test_validate_collects_every_error() -> None:
    result = validate_selection(
        Tier.SPECIALS, ["series1"], [], known_series_instances=SERIES_INSTANCES
    )

    assert result.errors == (
        "S4 CA Successful Specials does not support series selection",
        "At least one subject must be selected",
    )


def test_validate_accepts_complete_selection() -> None:
    result = validate_selection(
        Tier.FULL_SYLLABUS, ["series2"], ["IDT"], known_series_instances=SERIES_INSTANCES
    )

    assert result.is_valid
    assert result.errors == ()


def test_lookup_coupon_is_case_insensitive() -> None:
    coupon = lookup_coupon("  ca2026 ", DEFAULT_COUPONS)

    assert coupon is not None
    assert coupon.code == "CA2026"
    assert lookup_coupon("NOPE", DEFAULT_COUPONS) is None
    assert lookup_coupon(None, DEFAULT_COUPONS) is None
    assert lookup_coupon("   ", DEFAULT_COUPONS) is None
