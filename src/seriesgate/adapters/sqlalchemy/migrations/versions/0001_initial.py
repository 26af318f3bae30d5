"""Initial schema: managed series, enrollments, papers and media assets.

Revision ID: 0001_initial
Revises:
Create Date: 2026-09-28 10:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_ONLY = sa.text("status = 'ACTIVE'")


def _timestamps() -> tuple[sa.Column[object], sa.Column[object]]:
    return (
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def upgrade() -> None:
    op.create_table(
        "managed_series",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tier_code", sa.String(length=8), nullable=False),
        sa.Column(
            "tier",
            sa.Enum(
                "FULL_SYLLABUS",
                "HALF_SYLLABUS",
                "THIRTY_PERCENT",
                "SPECIALS",
                name="tier",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("subjects", sa.Text(), nullable=False),
        sa.Column("subject_price", sa.Integer(), nullable=False),
        sa.Column("combo_price", sa.Integer(), nullable=False),
        sa.Column("combo_size", sa.Integer(), nullable=False),
        sa.Column("all_subjects_price", sa.Integer(), nullable=False),
        sa.Column("all_series_all_subjects_price", sa.Integer(), nullable=False),
        sa.Column("catalog_subject_count", sa.Integer(), nullable=False),
        sa.Column("percent_cap", sa.Integer(), nullable=True),
        sa.Column(
            "publish_status",
            sa.Enum(
                "DRAFT", "PENDING", "PUBLISHED", "REJECTED", name="publishstatus", native_enum=False
            ),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_managed_series"),
        sa.UniqueConstraint("tier_code", name="uq_managed_series_tier_code"),
    )

    op.create_table(
        "enrollment",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "resource_type",
            sa.Enum("COURSE", "BOOK", "TEST_SERIES", name="resourcetype", native_enum=False),
            nullable=False,
        ),
        sa.Column("resource_ref", sa.String(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column(
            "payment_status",
            sa.Enum(
                "PENDING", "PAID", "FAILED", "REFUNDED", name="paymentstatus", native_enum=False
            ),
            nullable=False,
        ),
        sa.Column("purchased_subjects", sa.Text(), nullable=False),
        sa.Column("payment_id", sa.String(), nullable=True),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_enrollment"),
    )
    op.create_index(
        "ix_enrollment_user_resource",
        "enrollment",
        ["user_id", "resource_type", "resource_ref"],
    )

    op.create_table(
        "paper",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("series_ref", sa.String(), nullable=False),
        sa.Column("group", sa.String(), nullable=False),
        sa.Column("subject", sa.String(), nullable=False),
        sa.Column(
            "paper_type",
            sa.Enum("QUESTION", "SUGGESTED", "EVALUATED", name="papertype", native_enum=False),
            nullable=False,
        ),
        sa.Column("series_instance", sa.String(), nullable=True),
        sa.Column("paper_number", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "PUBLISHED", "ARCHIVED", name="paperstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("blob_id", sa.String(), nullable=True),
        sa.Column("public_url", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_paper"),
    )
    op.create_index("ix_paper_series_ref", "paper", ["series_ref"])

    op.create_table(
        "media_asset",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("series_ref", sa.String(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("THUMBNAIL", "VIDEO", name="mediakind", native_enum=False),
            nullable=False,
        ),
        sa.Column("blob_id", sa.String(), nullable=False),
        sa.Column("public_url", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "ARCHIVED", name="mediastatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("previous_blob_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_media_asset"),
    )
    op.create_index("ix_media_asset_series_kind", "media_asset", ["series_ref", "kind"])
    op.create_index(
        "uq_media_asset_active_series_kind",
        "media_asset",
        ["series_ref", "kind"],
        unique=True,
        sqlite_where=ACTIVE_ONLY,
        postgresql_where=ACTIVE_ONLY,
    )


def downgrade() -> None:
    op.drop_index("uq_media_asset_active_series_kind", table_name="media_asset")
    op.drop_index("ix_media_asset_series_kind", table_name="media_asset")
    op.drop_table("media_asset")
    op.drop_index("ix_paper_series_ref", table_name="paper")
    op.drop_table("paper")
    op.drop_index("ix_enrollment_user_resource", table_name="enrollment")
    op.drop_table("enrollment")
    op.drop_table("managed_series")
