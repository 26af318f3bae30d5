"""Public domain model surface."""

from __future__ import annotations

from seriesgate.domain.model.catalog import (
    Alternates,
    CatalogKey,
    Coupon,
    FixedCatalog,
    FixedDefinition,
    FixedKey,
    ManagedKey,
    ManagedSeries,
    PricingConfig,
)
from seriesgate.domain.model.content import MediaAsset, Paper
from seriesgate.domain.model.entity import Entity, new_id, utcnow
from seriesgate.domain.model.enums import (
    CouponType,
    MediaKind,
    MediaStatus,
    PaperStatus,
    PaperType,
    PaymentStatus,
    PublishStatus,
    ResourceType,
    Tier,
)
from seriesgate.domain.model.purchase import Enrollment, normalize_tokens

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    "utcnow",
    # catalog
    "Alternates",
    "CatalogKey",
    "Coupon",
    "FixedCatalog",
    "FixedDefinition",
    "FixedKey",
    "ManagedKey",
    "ManagedSeries",
    "PricingConfig",
    # content
    "MediaAsset",
    "Paper",
    # purchases
    "Enrollment",
    "normalize_tokens",
    # enums
    "CouponType",
    "MediaKind",
    "MediaStatus",
    "PaperStatus",
    "PaperType",
    "PaymentStatus",
    "PublishStatus",
    "ResourceType",
    "Tier",
]
