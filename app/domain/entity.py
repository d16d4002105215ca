"""
app/domain/entity.py

Generic business record keyed by a driving field.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from app.domain.attributes import AttributeValue, ensure_supported_value
from app.domain.errors import DomainValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Entity:
    """
    Normalized business record with an open, typed attribute bag.

    The driving-field value is the natural key of the record. Entities are
    never physically removed by the pipeline; ``deactivate`` is the delete.
    """

    driving_field_value: str
    entity_type: str
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    source_file_id: str | None = None
    entity_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    is_active: bool = True

    def __post_init__(self) -> None:
        self.validate()
        for key, value in self.attributes.items():
            ensure_supported_value(key, value)

    def validate(self) -> None:
        if not self.driving_field_value or not str(self.driving_field_value).strip():
            raise DomainValidationError(
                "driving field value cannot be empty",
                field="driving_field_value",
            )
        if not self.entity_type or not self.entity_type.strip():
            raise DomainValidationError("entity type cannot be empty", field="entity_type")

    def is_complete(self, required_fields: Iterable[str]) -> bool:
        """
        Return True when every required field is present and non-null.
        """

        return all(self.attributes.get(name) is not None for name in required_fields)

    def get_attribute(self, key: str) -> tuple[AttributeValue, bool]:
        if key in self.attributes:
            return self.attributes[key], True
        return None, False

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = ensure_supported_value(key, value)
        self.mark_updated()

    def merge_attributes(self, other: "Entity") -> None:
        """
        Overwrite attributes with other's values; keys only on self are kept.
        """

        for key, value in other.attributes.items():
            self.attributes[key] = ensure_supported_value(key, value)
        self.mark_updated()

    def attribute_count(self) -> int:
        return len(self.attributes)

    def mark_updated(self) -> None:
        self.updated_at = _utcnow()

    def deactivate(self) -> None:
        self.is_active = False
        self.mark_updated()

    def activate(self) -> None:
        self.is_active = True
        self.mark_updated()
