"""
app/domain/quality.py

Six-dimension quality scores, weights, and classification thresholds.

Overall score formula:
    overall = sum(weight_i * dimension_i) / 100

Quality levels:
    >= 90 excellent, >= 70 good, >= 50 poor, otherwise critical.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from app.domain.errors import BusinessRuleError, DomainValidationError
from app.domain.field_metadata import FieldMetadata
from app.domain.validation import ValidationRule, ValidationSummary

if TYPE_CHECKING:
    from app.domain.entity import Entity

# Fixed order used for iteration and for breaking ties in lowest_dimension.
DIMENSION_ORDER: tuple[str, ...] = (
    "completeness",
    "accuracy",
    "consistency",
    "timeliness",
    "uniqueness",
    "validity",
)

REVIEW_THRESHOLD = 70.0

# Ordered high-to-low; first match wins.
_QUALITY_THRESHOLDS: list[tuple[float, str]] = [
    (90.0, "excellent"),
    (70.0, "good"),
    (50.0, "poor"),
]


class QualityLevel:
    EXCELLENT = "excellent"
    GOOD = "good"
    POOR = "poor"
    CRITICAL = "critical"


def _classify(overall: float) -> str:
    for threshold, label in _QUALITY_THRESHOLDS:
        if overall >= threshold:
            return label
    return QualityLevel.CRITICAL


@dataclass(frozen=True)
class QualityWeights:
    """
    Immutable per-dimension weights. A usable set sums to exactly 100.
    """

    completeness: float
    accuracy: float
    consistency: float
    timeliness: float
    uniqueness: float
    validity: float

    def __post_init__(self) -> None:
        for name in DIMENSION_ORDER:
            if getattr(self, name) < 0:
                raise DomainValidationError(
                    f"quality weight {name} cannot be negative",
                    field=name,
                )

    def total(self) -> float:
        return math.fsum(getattr(self, name) for name in DIMENSION_ORDER)

    def validate(self) -> None:
        if self.total() != 100.0:
            raise BusinessRuleError(
                "quality weights must sum to 100",
                rule="quality_weights_sum",
            )

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in DIMENSION_ORDER}


def default_quality_weights() -> QualityWeights:
    return QualityWeights(
        completeness=20.0,
        accuracy=25.0,
        consistency=20.0,
        timeliness=10.0,
        uniqueness=15.0,
        validity=10.0,
    )


@dataclass
class QualityScore:
    entity_id: str
    completeness_score: float = 0.0
    accuracy_score: float = 0.0
    consistency_score: float = 0.0
    timeliness_score: float = 0.0
    uniqueness_score: float = 0.0
    validity_score: float = 0.0
    overall_score: float = 0.0
    score_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def dimensions(self) -> dict[str, float]:
        return {name: getattr(self, f"{name}_score") for name in DIMENSION_ORDER}

    def calculate_overall(self, weights: QualityWeights) -> float:
        dimensions = self.dimensions()
        self.overall_score = (
            math.fsum(getattr(weights, name) * dimensions[name] for name in DIMENSION_ORDER)
            / 100.0
        )
        return self.overall_score

    def quality_level(self) -> str:
        return _classify(self.overall_score)

    def requires_review(self) -> bool:
        return self.overall_score < REVIEW_THRESHOLD

    def is_acceptable(self) -> bool:
        return self.overall_score >= REVIEW_THRESHOLD

    def lowest_dimension(self) -> tuple[str, float]:
        lowest_name = DIMENSION_ORDER[0]
        lowest_value = self.completeness_score
        for name, value in self.dimensions().items():
            if value < lowest_value:
                lowest_name, lowest_value = name, value
        return lowest_name, lowest_value

    def validate(self) -> None:
        scores = self.dimensions()
        scores["overall"] = self.overall_score
        for name, value in scores.items():
            if value < 0 or value > 100:
                raise DomainValidationError(
                    f"quality score {name} must be between 0 and 100",
                    field=name,
                )


@dataclass
class QualityContext:
    """
    Inputs a scorer needs beyond the entity itself.
    """

    metadata: list[FieldMetadata] = field(default_factory=list)
    validation_rules: list[ValidationRule] = field(default_factory=list)
    related_entities: list["Entity"] = field(default_factory=list)
    existing_entities: list["Entity"] = field(default_factory=list)
    weights: QualityWeights = field(default_factory=default_quality_weights)
    validation_summary: ValidationSummary | None = None
