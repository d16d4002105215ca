"""
db/models/lineage.py

Data lineage entries: which file and step produced or changed an entity.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType


class LineageEntryRecord(Base):
    __tablename__ = "lineage_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source_file_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    transformation_step: Mapped[str] = mapped_column(String(100), nullable=False)
    transformation_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    transformation_details: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        Index("ix_lineage_records_entity_id", "entity_id"),
        Index("ix_lineage_records_source_file_id", "source_file_id"),
    )
