"""
db/models/file_metadata.py

Uploaded file tracking with processing status.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class FileMetadataRecord(Base, TimestampMixin):
    __tablename__ = "file_metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_format: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="xlsx, xls, csv, json, xml, parquet",
    )
    upload_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    processing_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="pending",
        comment="pending, processing, completed, failed",
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    checksum: Mapped[str | None] = mapped_column(String(64), nullable=True, comment="SHA-256")
    additional_metadata: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Ordered [{status, at}] transitions",
    )

    __table_args__ = (
        Index("ix_file_metadata_processing_status", "processing_status"),
        Index("ix_file_metadata_upload_timestamp", "upload_timestamp"),
    )
