"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Tier(StrEnum):
    """Test-series product tiers, keyed by their catalog code."""

    FULL_SYLLABUS = "S1"
    HALF_SYLLABUS = "S2"
    THIRTY_PERCENT = "S3"
    SPECIALS = "S4"

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]

    @property
    def papers_per_subject(self) -> int:
        return _PAPERS_PER_SUBJECT[self]

    @property
    def multi_instance(self) -> bool:
        return self is Tier.FULL_SYLLABUS


_TIER_LABELS: dict[Tier, str] = {
    Tier.FULL_SYLLABUS: "Full Syllabus",
    Tier.HALF_SYLLABUS: "50% Syllabus",
    Tier.THIRTY_PERCENT: "30% Syllabus",
    Tier.SPECIALS: "CA Successful Specials",
}

_PAPERS_PER_SUBJECT: dict[Tier, int] = {
    Tier.FULL_SYLLABUS: 1,
    Tier.HALF_SYLLABUS: 2,
    Tier.THIRTY_PERCENT: 3,
    Tier.SPECIALS: 6,
}


class ResourceType(StrEnum):
    COURSE = "course"
    BOOK = "book"
    TEST_SERIES = "test_series"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PublishStatus(StrEnum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


class PaperStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class PaperType(StrEnum):
    QUESTION = "question"
    SUGGESTED = "suggested"
    EVALUATED = "evaluated"


class MediaKind(StrEnum):
    THUMBNAIL = "thumbnail"
    VIDEO = "video"

    @classmethod
    def parse(cls, value: str) -> MediaKind:
        """Parse a kind, accepting the legacy ``image`` alias for thumbnails."""

        normalized = value.strip().lower()
        if normalized == "image":
            return cls.THUMBNAIL
        return cls(normalized)


class MediaStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class CouponType(StrEnum):
    FLAT = "flat"
    PERCENT = "percent"
