"""
app/domain/validation.py

Validation rules, per-rule results, and per-entity summaries.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from app.domain.errors import DomainValidationError


class RuleType:
    FORMAT = "format"
    RANGE = "range"
    REFERENCE = "reference"
    CUSTOM = "custom"
    CONSISTENCY = "consistency"


ALLOWED_RULE_TYPES = frozenset(
    {
        RuleType.FORMAT,
        RuleType.RANGE,
        RuleType.REFERENCE,
        RuleType.CUSTOM,
        RuleType.CONSISTENCY,
    }
)


class Severity:
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


ALLOWED_SEVERITIES = frozenset({Severity.ERROR, Severity.WARNING, Severity.INFO})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ValidationRule:
    """
    Named rule applied to a field (or to the whole entity when field_id is None).
    """

    rule_name: str
    rule_type: str
    rule_expression: str
    error_message: str
    severity: str = Severity.ERROR
    field_id: str | None = None
    is_active: bool = True
    rule_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def validate(self) -> None:
        if not self.rule_name or not self.rule_name.strip():
            raise DomainValidationError("rule name cannot be empty", field="rule_name")
        if not self.rule_expression or not self.rule_expression.strip():
            raise DomainValidationError("rule expression cannot be empty", field="rule_expression")
        if not self.error_message or not self.error_message.strip():
            raise DomainValidationError("error message cannot be empty", field="error_message")
        if self.rule_type not in ALLOWED_RULE_TYPES:
            raise DomainValidationError("invalid rule type", field="rule_type")
        if self.severity not in ALLOWED_SEVERITIES:
            raise DomainValidationError("invalid severity", field="severity")

    def is_blocking_error(self) -> bool:
        return self.severity == Severity.ERROR


@dataclass
class ValidationResult:
    """
    Outcome of applying one rule (or one metadata check) to one value.
    """

    rule_id: str
    rule_name: str
    passed: bool
    severity: str = Severity.ERROR
    actual_value: Any = None
    expected_value: Any = None
    error_details: str | None = None
    checked_at: datetime = field(default_factory=_utcnow)

    def with_error(self, message: str) -> "ValidationResult":
        self.error_details = message
        return self

    def with_values(self, actual: Any, expected: Any) -> "ValidationResult":
        self.actual_value = actual
        self.expected_value = expected
        return self


@dataclass
class ValidationSummary:
    """
    Aggregated pass/fail statistics for one entity.

    Only error-severity failures make an entity invalid; warnings and
    info results are counted but never block.
    """

    entity_id: str
    total_rules: int = 0
    passed_rules: int = 0
    failed_rules: int = 0
    warning_count: int = 0
    error_count: int = 0
    validation_rate: float = 0.0
    results: list[ValidationResult] = field(default_factory=list)
    validated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_results(
        cls,
        entity_id: str,
        results: Sequence[ValidationResult],
    ) -> "ValidationSummary":
        summary = cls(entity_id=entity_id, total_rules=len(results), results=list(results))
        for result in results:
            if result.passed:
                summary.passed_rules += 1
                continue
            summary.failed_rules += 1
            if result.severity == Severity.ERROR:
                summary.error_count += 1
            elif result.severity == Severity.WARNING:
                summary.warning_count += 1

        if summary.total_rules > 0:
            summary.validation_rate = summary.passed_rules / summary.total_rules * 100.0
        return summary

    def is_valid(self) -> bool:
        return self.error_count == 0

    def has_warnings(self) -> bool:
        return self.warning_count > 0
