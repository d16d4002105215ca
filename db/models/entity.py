"""
db/models/entity.py

Normalized entity storage keyed by driving-field value.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class EntityRecord(Base, TimestampMixin):
    __tablename__ = "entities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    driving_field_value: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Natural key; unique across the store, including inactive rows",
    )
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    attributes: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Typed attribute bag; date/datetime/decimal values are tagged",
    )
    source_file_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("driving_field_value", name="uq_entities_driving_field_value"),
        Index("ix_entities_entity_type", "entity_type"),
        Index("ix_entities_source_file_id", "source_file_id"),
    )
