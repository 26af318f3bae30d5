"""SQLAlchemy mapping metadata for the seriesgate domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import composite, configure_mappers

from seriesgate.domain.model import (
    Enrollment,
    ManagedSeries,
    MediaAsset,
    MediaKind,
    MediaStatus,
    Paper,
    PaperStatus,
    PaperType,
    PaymentStatus,
    PricingConfig,
    PublishStatus,
    ResourceType,
    Tier,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class TokenListType(TypeDecorator[list[str]]):
    """Ordered list of string tokens stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(list(value or []))

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Enum columns store member names, e.g. ``ACTIVE``.
ACTIVE_MEDIA_CLAUSE = text(f"status = '{MediaStatus.ACTIVE.name}'")

# Tables ----------------------------------------------------------------------

managed_series_table = Table(
    "managed_series",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("tier_code", String(8), nullable=False),
    Column("tier", Enum(Tier, native_enum=False), nullable=False),
    Column("title", String, nullable=False),
    Column("label", String, nullable=False),
    Column("subjects", TokenListType, nullable=False),
    Column("subject_price", Integer, nullable=False),
    Column("combo_price", Integer, nullable=False),
    Column("combo_size", Integer, nullable=False),
    Column("all_subjects_price", Integer, nullable=False),
    Column("all_series_all_subjects_price", Integer, nullable=False),
    Column("catalog_subject_count", Integer, nullable=False),
    Column("percent_cap", Integer, nullable=True),
    Column("publish_status", Enum(PublishStatus, native_enum=False), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("tier_code"),
)

enrollment_table = Table(
    "enrollment",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", String, nullable=False),
    Column("resource_type", Enum(ResourceType, native_enum=False), nullable=False),
    Column("resource_ref", String, nullable=False),
    Column("amount", Integer, nullable=False),
    Column("payment_status", Enum(PaymentStatus, native_enum=False), nullable=False),
    Column("purchased_subjects", TokenListType, nullable=False),
    Column("payment_id", String, nullable=True),
    Column("transaction_date", UTCDateTime(), nullable=True),
    Column("expiry_date", UTCDateTime(), nullable=True),
    Column("progress", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_enrollment_user_resource", "user_id", "resource_type", "resource_ref"),
)

paper_table = Table(
    "paper",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("series_ref", String, nullable=False, index=True),
    Column("group", String, nullable=False),
    Column("subject", String, nullable=False),
    Column("paper_type", Enum(PaperType, native_enum=False), nullable=False),
    Column("series_instance", String, nullable=True),
    Column("paper_number", Integer, nullable=False, default=1),
    Column("status", Enum(PaperStatus, native_enum=False), nullable=False),
    Column("blob_id", String, nullable=True),
    Column("public_url", String, nullable=True),
    Column("file_name", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)

media_asset_table = Table(
    "media_asset",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("series_ref", String, nullable=False),
    Column("kind", Enum(MediaKind, native_enum=False), nullable=False),
    Column("blob_id", String, nullable=False),
    Column("public_url", String, nullable=True),
    Column("file_name", String, nullable=True),
    Column("status", Enum(MediaStatus, native_enum=False), nullable=False),
    Column("previous_blob_id", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_media_asset_series_kind", "series_ref", "kind"),
    Index(
        "uq_media_asset_active_series_kind",
        "series_ref",
        "kind",
        unique=True,
        sqlite_where=ACTIVE_MEDIA_CLAUSE,
        postgresql_where=ACTIVE_MEDIA_CLAUSE,
    ),
)


# Mapper configuration -------------------------------------------------------


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        ManagedSeries,
        managed_series_table,
        properties={
            "pricing": composite(
                PricingConfig,
                managed_series_table.c.subject_price,
                managed_series_table.c.combo_price,
                managed_series_table.c.combo_size,
                managed_series_table.c.all_subjects_price,
                managed_series_table.c.all_series_all_subjects_price,
                managed_series_table.c.catalog_subject_count,
                managed_series_table.c.percent_cap,
            ),
        },
    )
    mapper_registry.map_imperatively(Enrollment, enrollment_table)
    mapper_registry.map_imperatively(Paper, paper_table)
    mapper_registry.map_imperatively(MediaAsset, media_asset_table)

    configure_mappers()
    return mapper_registry
