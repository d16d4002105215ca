"""
Repository for normalized entity persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.attributes import decode_attributes, encode_attributes
from app.domain.entity import Entity
from app.domain.errors import DuplicateError, NotFoundError
from db.base import ensure_utc
from db.models.entity import EntityRecord
from db.repositories.errors import RepositoryError


def _to_domain(record: EntityRecord) -> Entity:
    return Entity(
        entity_id=record.id,
        driving_field_value=record.driving_field_value,
        entity_type=record.entity_type,
        attributes=decode_attributes(record.attributes),
        source_file_id=record.source_file_id,
        created_at=ensure_utc(record.created_at) or datetime.now(timezone.utc),
        updated_at=ensure_utc(record.updated_at) or datetime.now(timezone.utc),
        is_active=record.is_active,
    )


def _apply(record: EntityRecord, entity: Entity) -> None:
    record.driving_field_value = entity.driving_field_value
    record.entity_type = entity.entity_type
    record.attributes = encode_attributes(entity.attributes)
    record.source_file_id = entity.source_file_id
    record.is_active = entity.is_active
    record.created_at = entity.created_at
    record.updated_at = entity.updated_at


class SQLEntityRepository:
    """
    Entity store backed by the ``entities`` table.

    Writes run inside a SAVEPOINT so a failed write leaves the caller's
    transaction usable. The caller owns commit and rollback.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, entity: Entity) -> None:
        record = EntityRecord(id=entity.entity_id)
        _apply(record, entity)
        try:
            with self._session.begin_nested():
                self._session.add(record)
        except IntegrityError as exc:
            raise DuplicateError(
                entity.entity_type,
                "driving_field_value",
                entity.driving_field_value,
            ) from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save entity {entity.entity_id}.") from exc

    def get_by_id(self, entity_id: str) -> Entity | None:
        record = self._session.get(EntityRecord, entity_id)
        return _to_domain(record) if record is not None else None

    def get_by_driving_field(self, driving_field_value: str) -> Entity | None:
        record = self._record_by_driving_field(driving_field_value)
        return _to_domain(record) if record is not None else None

    def list_by_type(self, entity_type: str, limit: int = 100, offset: int = 0) -> list[Entity]:
        stmt: Select[tuple[EntityRecord]] = (
            select(EntityRecord)
            .where(EntityRecord.entity_type == entity_type, EntityRecord.is_active.is_(True))
            .order_by(EntityRecord.created_at, EntityRecord.id)
            .offset(max(0, offset))
            .limit(max(1, limit))
        )
        return [_to_domain(record) for record in self._session.scalars(stmt).all()]

    def update(self, entity: Entity) -> None:
        record = self._session.get(EntityRecord, entity.entity_id)
        if record is None:
            raise NotFoundError("entity", entity.entity_id)
        try:
            with self._session.begin_nested():
                _apply(record, entity)
        except IntegrityError as exc:
            raise DuplicateError(
                entity.entity_type,
                "driving_field_value",
                entity.driving_field_value,
            ) from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to update entity {entity.entity_id}.") from exc

    def delete(self, entity_id: str) -> None:
        record = self._session.get(EntityRecord, entity_id)
        if record is None:
            raise NotFoundError("entity", entity_id)
        try:
            with self._session.begin_nested():
                record.is_active = False
                record.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to deactivate entity {entity_id}.") from exc

    def exists(self, driving_field_value: str) -> bool:
        stmt = select(EntityRecord.id).where(
            EntityRecord.driving_field_value == driving_field_value
        )
        return self._session.scalars(stmt.limit(1)).first() is not None

    def _record_by_driving_field(self, driving_field_value: str) -> EntityRecord | None:
        stmt = select(EntityRecord).where(EntityRecord.driving_field_value == driving_field_value)
        return self._session.scalars(stmt).first()
