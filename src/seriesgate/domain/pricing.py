"""Deterministic pricing and paper-count rules for the four tiers.

Everything here is pure: no repositories, no logging side effects. Validation
returns error strings; callers decide how to frame them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from seriesgate.domain.model import CouponType, Tier

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from seriesgate.domain.model import Coupon, PricingConfig


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    tier: Tier
    series_instance_count: int
    subject_count: int
    papers_per_subject: int
    applied_rule: str
    coupon_code: str | None = None
    percent_cap: int | None = None


@dataclass(frozen=True, slots=True)
class Quote:
    base_price: int
    discount: int
    final_price: int
    total_papers: int
    breakdown: PriceBreakdown


@dataclass(frozen=True, slots=True)
class SelectionValidation:
    is_valid: bool
    errors: tuple[str, ...] = ()


def distinct(values: Iterable[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""

    return list(dict.fromkeys(values))


def paper_count(tier: Tier, series_instance_count: int, subject_count: int) -> int:
    if subject_count <= 0:
        return 0
    if tier.multi_instance:
        return subject_count * tier.papers_per_subject * series_instance_count
    return subject_count * tier.papers_per_subject


def _base_price(
    tier: Tier,
    series_instance_count: int,
    subject_count: int,
    pricing: PricingConfig,
) -> tuple[int, str]:
    if subject_count <= 0:
        return 0, f"{tier}: no subjects selected"

    match tier:
        case Tier.FULL_SYLLABUS:
            multiplier = max(1, series_instance_count)
            return (
                pricing.subject_price * subject_count * multiplier,
                f"{tier}: {subject_count} subject(s) x {multiplier} series",
            )
        case Tier.HALF_SYLLABUS | Tier.THIRTY_PERCENT:
            return (
                pricing.subject_price * subject_count,
                f"{tier}: {subject_count} subject(s)",
            )
        case Tier.SPECIALS:
            if subject_count == pricing.combo_size:
                return pricing.combo_price, f"{tier}: combo of {subject_count} subjects"
            if subject_count == pricing.catalog_subject_count:
                return pricing.all_subjects_price, f"{tier}: all {subject_count} subjects"
            return (
                pricing.subject_price * subject_count,
                f"{tier}: {subject_count} individual subject(s)",
            )


def coupon_discount(base_price: int, coupon: Coupon, *, percent_cap: int | None) -> int:
    if coupon.type is CouponType.FLAT:
        return max(0, min(coupon.value, base_price))
    percent = coupon.value if percent_cap is None else min(coupon.value, percent_cap)
    return max(0, (base_price * percent) // 100)


def price(
    tier: Tier,
    selected_series_instances: Sequence[str],
    selected_subjects: Sequence[str],
    pricing: PricingConfig,
    coupon: Coupon | None = None,
) -> Quote:
    """Compute base price, coupon discount and paper count for a selection.

    Repeated series instances or subjects count once.
    """

    series_instance_count = len(distinct(selected_series_instances))
    subject_count = len(distinct(selected_subjects))

    base, rule = _base_price(tier, series_instance_count, subject_count, pricing)
    total_papers = paper_count(tier, series_instance_count, subject_count)

    discount = 0
    coupon_code: str | None = None
    if coupon is not None and total_papers > 0:
        discount = coupon_discount(base, coupon, percent_cap=pricing.percent_cap)
        coupon_code = coupon.code

    return Quote(
        base_price=base,
        discount=discount,
        final_price=max(0, base - discount),
        total_papers=total_papers,
        breakdown=PriceBreakdown(
            tier=tier,
            series_instance_count=series_instance_count,
            subject_count=subject_count,
            papers_per_subject=tier.papers_per_subject,
            applied_rule=rule,
            coupon_code=coupon_code,
            percent_cap=pricing.percent_cap,
        ),
    )


def validate_selection(
    tier: Tier,
    selected_series_instances: Sequence[str] | None,
    selected_subjects: Sequence[str] | None,
    *,
    known_series_instances: Iterable[str],
) -> SelectionValidation:
    errors: list[str] = []
    instances = list(selected_series_instances or ())
    subjects = list(selected_subjects or ())

    if tier.multi_instance:
        if not instances:
            errors.append(f"Series selection is required for {tier} {tier.label}")
        known = set(known_series_instances)
        invalid = [instance for instance in instances if instance not in known]
        if invalid:
            errors.append(f"Invalid series: {', '.join(invalid)}")
    elif instances:
        errors.append(f"{tier} {tier.label} does not support series selection")

    if not subjects:
        errors.append("At least one subject must be selected")

    return SelectionValidation(is_valid=not errors, errors=tuple(errors))


def lookup_coupon(code: str | None, coupons: Iterable[Coupon]) -> Coupon | None:
    """Find a coupon by code, ignoring case and surrounding whitespace."""

    if code is None or not code.strip():
        return None
    wanted = code.strip().upper()
    for coupon in coupons:
        if coupon.code.strip().upper() == wanted:
            return coupon
    return None
