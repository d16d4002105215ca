"""
app/schemas/metadata_catalog.py

Schema for JSON metadata catalogs that seed field metadata and rules.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CatalogField(BaseModel):
    """
    One field declaration in a metadata catalog.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    field_name: str = Field(min_length=1)
    display_name: str | None = None
    field_type: Literal["string", "integer", "decimal", "date", "boolean", "json"]
    description: str = ""
    is_required: bool = False
    is_driving_field: bool = False
    default_value: str | None = None
    format_pattern: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    max_length: int | None = Field(default=None, ge=1)
    allowed_values: list[str] = Field(default_factory=list)
    business_rules: dict[str, Any] = Field(default_factory=dict)
    quality_weight: float = Field(default=0.0, ge=0.0, le=100.0)
    is_active: bool = True

    @model_validator(mode="after")
    def check_bounds(self) -> "CatalogField":
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(f"min_value exceeds max_value for field '{self.field_name}'.")
        return self


class CatalogRule(BaseModel):
    """
    One validation rule. ``field`` names the target field, or is omitted
    for entity-level consistency rules.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    rule_name: str = Field(min_length=1)
    rule_type: Literal["format", "range", "reference", "custom", "consistency"]
    field: str | None = None
    rule_expression: str = Field(min_length=1)
    error_message: str = Field(min_length=1)
    severity: Literal["error", "warning", "info"] = "error"
    is_active: bool = True


class MetadataCatalogDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fields: list[CatalogField] = Field(default_factory=list)
    rules: list[CatalogRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "MetadataCatalogDocument":
        names = [item.field_name for item in self.fields]
        if len(names) != len(set(names)):
            raise ValueError("Catalog declares the same field more than once.")
        drivers = [item.field_name for item in self.fields if item.is_driving_field]
        if len(drivers) > 1:
            raise ValueError(f"Catalog declares more than one driving field: {drivers}.")
        known = set(names)
        for rule in self.rules:
            if rule.field is not None and rule.field not in known:
                raise ValueError(
                    f"Rule '{rule.rule_name}' references unknown field '{rule.field}'."
                )
        return self
