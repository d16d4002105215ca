"""
db/models/field_metadata.py

Field metadata and validation rule definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class FieldMetadataRecord(Base, TimestampMixin):
    __tablename__ = "field_metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    field_name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="string, integer, decimal, date, boolean, json",
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_driving_field: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    default_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    format_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    min_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_length: Mapped[int | None] = mapped_column(Integer, nullable=True)
    allowed_values: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    business_rules: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    quality_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="system")

    __table_args__ = (
        UniqueConstraint("field_name", name="uq_field_metadata_field_name"),
        Index("ix_field_metadata_is_active", "is_active"),
    )


class ValidationRuleRecord(Base):
    __tablename__ = "validation_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    rule_name: Mapped[str] = mapped_column(String(255), nullable=False)
    rule_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="format, range, reference, custom, consistency",
    )
    field_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Target field id or name; NULL for entity-level rules",
    )
    rule_expression: Mapped[str] = mapped_column(Text, nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="error")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_validation_rules_field_id", "field_id"),
        Index("ix_validation_rules_is_active", "is_active"),
    )
