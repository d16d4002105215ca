"""
app/schemas/quality_report.py

Read model returned by the quality report operation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain.quality import QualityScore
from app.domain.validation import ValidationResult


class ValidationResultReport(BaseModel):
    """
    One stored validation result.
    """

    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    passed: bool
    severity: Literal["error", "warning", "info"]
    actual_value: Any = None
    expected_value: Any = None
    error_details: str | None = None
    checked_at: datetime

    @classmethod
    def from_domain(cls, result: ValidationResult) -> "ValidationResultReport":
        return cls(
            rule_id=result.rule_id,
            rule_name=result.rule_name,
            passed=result.passed,
            severity=result.severity,
            actual_value=result.actual_value,
            expected_value=result.expected_value,
            error_details=result.error_details,
            checked_at=result.checked_at,
        )


class WeakestDimension(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    score: float = Field(..., ge=0.0, le=100.0)


class QualityReport(BaseModel):
    """
    Latest quality score of one entity with its validation evidence.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    entity_id: str = Field(min_length=1)
    overall_score: float = Field(..., ge=0.0, le=100.0)
    quality_level: Literal["excellent", "good", "poor", "critical"]
    requires_review: bool
    calculated_at: datetime
    dimensions: dict[str, float]
    weakest_dimension: WeakestDimension
    validation_results: list[ValidationResultReport] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        score: QualityScore,
        validation_results: list[ValidationResult],
    ) -> "QualityReport":
        lowest_name, lowest_score = score.lowest_dimension()
        return cls(
            entity_id=score.entity_id,
            overall_score=score.overall_score,
            quality_level=score.quality_level(),
            requires_review=score.requires_review(),
            calculated_at=score.calculated_at,
            dimensions=score.dimensions(),
            weakest_dimension=WeakestDimension(name=lowest_name, score=lowest_score),
            validation_results=[
                ValidationResultReport.from_domain(result) for result in validation_results
            ],
        )
