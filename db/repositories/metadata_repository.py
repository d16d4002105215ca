"""
Repository for field metadata and validation rule persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import DuplicateError
from app.domain.field_metadata import FieldMetadata
from app.domain.validation import ValidationRule
from db.base import ensure_utc
from db.models.field_metadata import FieldMetadataRecord, ValidationRuleRecord
from db.repositories.errors import RepositoryError


def _field_to_domain(record: FieldMetadataRecord) -> FieldMetadata:
    now = datetime.now(timezone.utc)
    return FieldMetadata(
        field_id=record.id,
        field_name=record.field_name,
        display_name=record.display_name,
        field_type=record.field_type,
        description=record.description or "",
        is_required=record.is_required,
        is_driving_field=record.is_driving_field,
        default_value=record.default_value,
        format_pattern=record.format_pattern,
        min_value=record.min_value,
        max_value=record.max_value,
        max_length=record.max_length,
        allowed_values=list(record.allowed_values or []),
        business_rules=dict(record.business_rules or {}),
        quality_weight=record.quality_weight,
        is_active=record.is_active,
        created_by=record.created_by,
        created_at=ensure_utc(record.created_at) or now,
        updated_at=ensure_utc(record.updated_at) or now,
    )


def _rule_to_domain(record: ValidationRuleRecord) -> ValidationRule:
    return ValidationRule(
        rule_id=record.id,
        rule_name=record.rule_name,
        rule_type=record.rule_type,
        field_id=record.field_id,
        rule_expression=record.rule_expression,
        error_message=record.error_message,
        severity=record.severity,
        is_active=record.is_active,
        created_at=ensure_utc(record.created_at),
    )


class SQLMetadataRepository:
    """
    Metadata store backed by ``field_metadata`` and ``validation_rules``.

    Saves are upserts keyed by id.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_field_metadata(self, field_name: str) -> FieldMetadata | None:
        stmt = select(FieldMetadataRecord).where(FieldMetadataRecord.field_name == field_name)
        record = self._session.scalars(stmt).first()
        return _field_to_domain(record) if record is not None else None

    def get_all_field_metadata(self) -> list[FieldMetadata]:
        stmt: Select[tuple[FieldMetadataRecord]] = (
            select(FieldMetadataRecord)
            .where(FieldMetadataRecord.is_active.is_(True))
            .order_by(FieldMetadataRecord.field_name)
        )
        return [_field_to_domain(record) for record in self._session.scalars(stmt).all()]

    def get_driving_field(self) -> FieldMetadata | None:
        stmt = (
            select(FieldMetadataRecord)
            .where(
                FieldMetadataRecord.is_driving_field.is_(True),
                FieldMetadataRecord.is_active.is_(True),
            )
            .order_by(FieldMetadataRecord.field_name)
        )
        record = self._session.scalars(stmt).first()
        return _field_to_domain(record) if record is not None else None

    def save_field_metadata(self, metadata: FieldMetadata) -> None:
        metadata.validate()
        try:
            with self._session.begin_nested():
                record = self._session.get(FieldMetadataRecord, metadata.field_id)
                if record is None:
                    record = FieldMetadataRecord(id=metadata.field_id, created_at=metadata.created_at)
                    self._session.add(record)
                record.field_name = metadata.field_name
                record.display_name = metadata.display_name
                record.field_type = metadata.field_type
                record.description = metadata.description
                record.is_required = metadata.is_required
                record.is_driving_field = metadata.is_driving_field
                record.default_value = metadata.default_value
                record.format_pattern = metadata.format_pattern
                record.min_value = metadata.min_value
                record.max_value = metadata.max_value
                record.max_length = metadata.max_length
                record.allowed_values = list(metadata.allowed_values)
                record.business_rules = dict(metadata.business_rules)
                record.quality_weight = metadata.quality_weight
                record.is_active = metadata.is_active
                record.created_by = metadata.created_by
                record.updated_at = metadata.updated_at
        except IntegrityError as exc:
            raise DuplicateError("field_metadata", "field_name", metadata.field_name) from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save field metadata {metadata.field_name}.") from exc

    def get_validation_rules(self, field_id: str) -> list[ValidationRule]:
        stmt = (
            select(ValidationRuleRecord)
            .where(
                ValidationRuleRecord.field_id == field_id,
                ValidationRuleRecord.is_active.is_(True),
            )
            .order_by(ValidationRuleRecord.created_at, ValidationRuleRecord.id)
        )
        return [_rule_to_domain(record) for record in self._session.scalars(stmt).all()]

    def get_all_validation_rules(self) -> list[ValidationRule]:
        stmt = (
            select(ValidationRuleRecord)
            .where(ValidationRuleRecord.is_active.is_(True))
            .order_by(ValidationRuleRecord.created_at, ValidationRuleRecord.id)
        )
        return [_rule_to_domain(record) for record in self._session.scalars(stmt).all()]

    def save_validation_rule(self, rule: ValidationRule) -> None:
        rule.validate()
        try:
            with self._session.begin_nested():
                record = self._session.get(ValidationRuleRecord, rule.rule_id)
                if record is None:
                    record = ValidationRuleRecord(id=rule.rule_id, created_at=rule.created_at)
                    self._session.add(record)
                record.rule_name = rule.rule_name
                record.rule_type = rule.rule_type
                record.field_id = rule.field_id
                record.rule_expression = rule.rule_expression
                record.error_message = rule.error_message
                record.severity = rule.severity
                record.is_active = rule.is_active
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save validation rule {rule.rule_name}.") from exc
