"""
Repository for data lineage entries.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.attributes import encode_attributes
from app.domain.lineage import LineageRecord
from db.base import ensure_utc
from db.models.lineage import LineageEntryRecord
from db.repositories.errors import RepositoryError


def _to_domain(record: LineageEntryRecord) -> LineageRecord:
    return LineageRecord(
        lineage_id=record.id,
        entity_id=record.entity_id,
        source_file_id=record.source_file_id,
        transformation_step=record.transformation_step,
        transformation_timestamp=ensure_utc(record.transformation_timestamp),
        transformation_details=dict(record.transformation_details or {}),
        performed_by=record.performed_by,
    )


class SQLLineageRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def record_lineage(self, record: LineageRecord) -> None:
        entry = LineageEntryRecord(
            id=record.lineage_id,
            entity_id=record.entity_id,
            source_file_id=record.source_file_id,
            transformation_step=record.transformation_step,
            transformation_timestamp=record.transformation_timestamp,
            transformation_details=encode_attributes(record.transformation_details),
            performed_by=record.performed_by,
        )
        try:
            with self._session.begin_nested():
                self._session.add(entry)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to record lineage for {record.entity_id}.") from exc

    def get_lineage(self, entity_id: str) -> list[LineageRecord]:
        stmt = (
            select(LineageEntryRecord)
            .where(LineageEntryRecord.entity_id == entity_id)
            .order_by(LineageEntryRecord.transformation_timestamp)
        )
        return [_to_domain(record) for record in self._session.scalars(stmt).all()]

    def get_source_lineage(self, source_file_id: str) -> list[LineageRecord]:
        stmt = (
            select(LineageEntryRecord)
            .where(LineageEntryRecord.source_file_id == source_file_id)
            .order_by(LineageEntryRecord.transformation_timestamp)
        )
        return [_to_domain(record) for record in self._session.scalars(stmt).all()]
