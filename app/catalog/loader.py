"""
app/catalog/loader.py

JSON metadata catalog loader for field metadata and validation rules.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from pydantic import ValidationError

from app.config import get_metadata_catalog_path
from app.domain.field_metadata import FieldMetadata
from app.domain.interfaces import MetadataRepository
from app.domain.validation import ValidationRule
from app.schemas.metadata_catalog import MetadataCatalogDocument

logger = logging.getLogger(__name__)


class CatalogLoadError(ValueError):
    """
    Raised when a metadata catalog cannot be read or is invalid.
    """


@dataclass
class MetadataCatalog:
    fields: list[FieldMetadata] = field(default_factory=list)
    rules: list[ValidationRule] = field(default_factory=list)


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_catalog_path(raw_path: str | Path) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


def build_catalog(document: MetadataCatalogDocument, *, created_by: str = "catalog") -> MetadataCatalog:
    """
    Convert a validated catalog document into domain objects.

    Rules reference fields by name; the resulting rules carry the field_id of
    the generated FieldMetadata.
    """

    fields: list[FieldMetadata] = []
    for item in document.fields:
        fields.append(
            FieldMetadata(
                field_name=item.field_name,
                display_name=item.display_name or item.field_name,
                field_type=item.field_type,
                description=item.description,
                is_required=item.is_required,
                is_driving_field=item.is_driving_field,
                default_value=item.default_value,
                format_pattern=item.format_pattern,
                min_value=item.min_value,
                max_value=item.max_value,
                max_length=item.max_length,
                allowed_values=list(item.allowed_values),
                business_rules=dict(item.business_rules),
                quality_weight=item.quality_weight,
                is_active=item.is_active,
                created_by=created_by,
            )
        )

    field_ids = {item.field_name: item.field_id for item in fields}
    rules = [
        ValidationRule(
            rule_name=rule.rule_name,
            rule_type=rule.rule_type,
            rule_expression=rule.rule_expression,
            error_message=rule.error_message,
            severity=rule.severity,
            field_id=field_ids[rule.field] if rule.field is not None else None,
            is_active=rule.is_active,
        )
        for rule in document.rules
    ]
    return MetadataCatalog(fields=fields, rules=rules)


def load_metadata_catalog(path: str | Path | None = None) -> MetadataCatalog:
    """
    Read and validate a catalog file of the form {"fields": [...], "rules": [...]}.

    Defaults to the METADATA_CATALOG_PATH setting; relative paths resolve
    against the project root.
    """

    catalog_path = _resolve_catalog_path(path or get_metadata_catalog_path())
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogLoadError(f"Cannot read metadata catalog '{catalog_path}'.") from exc
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"Metadata catalog '{catalog_path}' is not valid JSON.") from exc

    try:
        document = MetadataCatalogDocument.model_validate(raw)
    except ValidationError as exc:
        raise CatalogLoadError(f"Metadata catalog '{catalog_path}' is invalid: {exc}") from exc

    catalog = build_catalog(document)
    logger.info(
        "Loaded metadata catalog %s with %s fields and %s rules.",
        catalog_path,
        len(catalog.fields),
        len(catalog.rules),
    )
    return catalog


def seed_metadata_repository(
    repository: MetadataRepository,
    catalog: MetadataCatalog,
) -> tuple[int, int]:
    """
    Save every catalog field and rule. Returns (fields_saved, rules_saved).

    Seeding is an upsert: fields already stored under the same name and
    active rules with the same name keep their ids, and rules are repointed
    at the stored field ids.
    """

    field_ids: dict[str, str] = {}
    for item in catalog.fields:
        stored = repository.get_field_metadata(item.field_name)
        target = item
        if stored is not None:
            target = replace(item, field_id=stored.field_id, created_at=stored.created_at)
        repository.save_field_metadata(target)
        field_ids[item.field_id] = target.field_id

    stored_rules = {rule.rule_name: rule for rule in repository.get_all_validation_rules()}
    for rule in catalog.rules:
        target = replace(rule, field_id=field_ids.get(rule.field_id, rule.field_id) if rule.field_id else None)
        stored_rule = stored_rules.get(rule.rule_name)
        if stored_rule is not None:
            target = replace(target, rule_id=stored_rule.rule_id, created_at=stored_rule.created_at)
        repository.save_validation_rule(target)

    logger.info(
        "Seeded metadata catalog with %s fields and %s rules.",
        len(catalog.fields),
        len(catalog.rules),
    )
    return len(catalog.fields), len(catalog.rules)
