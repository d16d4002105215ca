"""
app/domain/field_metadata.py

Schema definition for one entity attribute.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.domain.errors import DomainValidationError


class FieldType:
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    BOOLEAN = "boolean"
    JSON = "json"


ALLOWED_FIELD_TYPES = frozenset(
    {
        FieldType.STRING,
        FieldType.INTEGER,
        FieldType.DECIMAL,
        FieldType.DATE,
        FieldType.BOOLEAN,
        FieldType.JSON,
    }
)

NUMERIC_FIELD_TYPES = frozenset({FieldType.INTEGER, FieldType.DECIMAL})


@dataclass
class FieldMetadata:
    """
    Declares type, constraints, and quality weight of one field.
    """

    field_name: str
    display_name: str
    field_type: str
    description: str = ""
    is_required: bool = False
    is_driving_field: bool = False
    default_value: str | None = None
    format_pattern: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    max_length: int | None = None
    allowed_values: list[str] = field(default_factory=list)
    business_rules: dict[str, Any] = field(default_factory=dict)
    quality_weight: float = 0.0
    is_active: bool = True
    created_by: str = "system"
    field_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def validate(self) -> None:
        if not self.field_name or not self.field_name.strip():
            raise DomainValidationError("field name cannot be empty", field="field_name")
        if not self.display_name or not self.display_name.strip():
            raise DomainValidationError("display name cannot be empty", field="display_name")
        if self.field_type not in ALLOWED_FIELD_TYPES:
            raise DomainValidationError(
                f"invalid field type: {self.field_type}",
                field="field_type",
            )
        if self.quality_weight < 0 or self.quality_weight > 100:
            raise DomainValidationError(
                "quality weight must be between 0 and 100",
                field="quality_weight",
            )

    def has_enum_values(self) -> bool:
        return len(self.allowed_values) > 0

    def has_range_validation(self) -> bool:
        return self.min_value is not None or self.max_value is not None

    def has_length_validation(self) -> bool:
        return self.max_length is not None
