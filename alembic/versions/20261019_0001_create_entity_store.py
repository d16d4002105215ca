"""create entities, field_metadata, validation_rules, quality tables, file_metadata, lineage_records

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _jsonb() -> postgresql.JSONB:
    return postgresql.JSONB(astext_type=sa.Text())


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # ---------------------------------------------------------------------------
    # entities
    # Driving-field value is unique across active and inactive rows.
    # ---------------------------------------------------------------------------
    op.create_table(
        "entities",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("driving_field_value", sa.String(length=512), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("attributes", _jsonb(), nullable=False),
        sa.Column("source_file_id", sa.String(length=36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("driving_field_value", name="uq_entities_driving_field_value"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_entities_entity_type", "entities", ["entity_type"])
    op.create_index("ix_entities_source_file_id", "entities", ["source_file_id"])

    # ---------------------------------------------------------------------------
    # field_metadata
    # ---------------------------------------------------------------------------
    op.create_table(
        "field_metadata",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("field_name", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column(
            "field_type",
            sa.String(length=32),
            nullable=False,
            comment="string, integer, decimal, date, boolean, json",
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("is_driving_field", sa.Boolean(), nullable=False),
        sa.Column("default_value", sa.Text(), nullable=True),
        sa.Column("format_pattern", sa.Text(), nullable=True),
        sa.Column("min_value", sa.Float(), nullable=True),
        sa.Column("max_value", sa.Float(), nullable=True),
        sa.Column("max_length", sa.Integer(), nullable=True),
        sa.Column("allowed_values", _jsonb(), nullable=False),
        sa.Column("business_rules", _jsonb(), nullable=False),
        sa.Column("quality_weight", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("field_name", name="uq_field_metadata_field_name"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_field_metadata_is_active", "field_metadata", ["is_active"])

    # ---------------------------------------------------------------------------
    # validation_rules
    # field_id holds a field id or name; no FK so entity-level rules fit.
    # ---------------------------------------------------------------------------
    op.create_table(
        "validation_rules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("rule_name", sa.String(length=255), nullable=False),
        sa.Column(
            "rule_type",
            sa.String(length=32),
            nullable=False,
            comment="format, range, reference, custom, consistency",
        ),
        sa.Column("field_id", sa.String(length=255), nullable=True),
        sa.Column("rule_expression", sa.Text(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_validation_rules_field_id", "validation_rules", ["field_id"])
    op.create_index("ix_validation_rules_is_active", "validation_rules", ["is_active"])

    # ---------------------------------------------------------------------------
    # quality_scores
    # Append-only history; latest calculated_at per entity is current.
    # ---------------------------------------------------------------------------
    op.create_table(
        "quality_scores",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("completeness_score", sa.Float(), nullable=False),
        sa.Column("accuracy_score", sa.Float(), nullable=False),
        sa.Column("consistency_score", sa.Float(), nullable=False),
        sa.Column("timeliness_score", sa.Float(), nullable=False),
        sa.Column("uniqueness_score", sa.Float(), nullable=False),
        sa.Column("validity_score", sa.Float(), nullable=False),
        sa.Column("overall_score", sa.Float(), nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_quality_scores_entity_id_calculated_at",
        "quality_scores",
        ["entity_id", "calculated_at"],
    )

    # ---------------------------------------------------------------------------
    # validation_results
    # ---------------------------------------------------------------------------
    op.create_table(
        "validation_results",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("rule_id", sa.String(length=255), nullable=False),
        sa.Column("rule_name", sa.String(length=255), nullable=False),
        sa.Column("passed", sa.Boolean(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("actual_value", _jsonb(), nullable=True),
        sa.Column("expected_value", _jsonb(), nullable=True),
        sa.Column("error_details", sa.Text(), nullable=True),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_validation_results_entity_id_position",
        "validation_results",
        ["entity_id", "position"],
    )

    # ---------------------------------------------------------------------------
    # file_metadata
    # ---------------------------------------------------------------------------
    op.create_table(
        "file_metadata",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False),
        sa.Column(
            "file_format",
            sa.String(length=16),
            nullable=False,
            comment="xlsx, xls, csv, json, xml, parquet",
        ),
        sa.Column("upload_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "processing_status",
            sa.String(length=32),
            nullable=False,
            comment="pending, processing, completed, failed",
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("checksum", sa.String(length=64), nullable=True, comment="SHA-256"),
        sa.Column("additional_metadata", _jsonb(), nullable=False),
        sa.Column(
            "status_history",
            _jsonb(),
            nullable=False,
            comment="Ordered [{status, at}] transitions",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_file_metadata_processing_status", "file_metadata", ["processing_status"]
    )
    op.create_index(
        "ix_file_metadata_upload_timestamp", "file_metadata", ["upload_timestamp"]
    )

    # ---------------------------------------------------------------------------
    # lineage_records
    # ---------------------------------------------------------------------------
    op.create_table(
        "lineage_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("source_file_id", sa.String(length=36), nullable=True),
        sa.Column("transformation_step", sa.String(length=100), nullable=False),
        sa.Column("transformation_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("transformation_details", _jsonb(), nullable=False),
        sa.Column("performed_by", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lineage_records_entity_id", "lineage_records", ["entity_id"])
    op.create_index(
        "ix_lineage_records_source_file_id", "lineage_records", ["source_file_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_lineage_records_source_file_id", table_name="lineage_records")
    op.drop_index("ix_lineage_records_entity_id", table_name="lineage_records")
    op.drop_table("lineage_records")

    op.drop_index("ix_file_metadata_upload_timestamp", table_name="file_metadata")
    op.drop_index("ix_file_metadata_processing_status", table_name="file_metadata")
    op.drop_table("file_metadata")

    op.drop_index("ix_validation_results_entity_id_position", table_name="validation_results")
    op.drop_table("validation_results")

    op.drop_index("ix_quality_scores_entity_id_calculated_at", table_name="quality_scores")
    op.drop_table("quality_scores")

    op.drop_index("ix_validation_rules_is_active", table_name="validation_rules")
    op.drop_index("ix_validation_rules_field_id", table_name="validation_rules")
    op.drop_table("validation_rules")

    op.drop_index("ix_field_metadata_is_active", table_name="field_metadata")
    op.drop_table("field_metadata")

    op.drop_index("ix_entities_source_file_id", table_name="entities")
    op.drop_index("ix_entities_entity_type", table_name="entities")
    op.drop_table("entities")
