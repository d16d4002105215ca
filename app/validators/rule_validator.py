"""
app/validators/rule_validator.py

Metadata- and rule-driven validation of normalized entities.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Sequence

from app.domain.attributes import is_blank
from app.domain.entity import Entity
from app.domain.errors import DomainValidationError
from app.domain.field_metadata import FieldMetadata, FieldType, NUMERIC_FIELD_TYPES
from app.domain.interfaces import MetadataRepository
from app.domain.validation import (
    RuleType,
    Severity,
    ValidationResult,
    ValidationRule,
    ValidationSummary,
)
from app.logging_utils import log_event
from app.validators.rule_expressions import (
    RuleExpressionError,
    evaluate_consistency,
    evaluate_format,
    evaluate_value_rule,
)
from app.validators.type_checks import conforms_to_type, to_number

logger = logging.getLogger(__name__)


def _check_id(metadata: FieldMetadata, check: str) -> str:
    return f"{metadata.field_id}:{check}"


def _check_result(metadata: FieldMetadata, check: str, passed: bool) -> ValidationResult:
    return ValidationResult(
        rule_id=_check_id(metadata, check),
        rule_name=f"{metadata.field_name}.{check}",
        passed=passed,
        severity=Severity.ERROR,
    )


def _rule_targets(rule: ValidationRule, metadata: FieldMetadata) -> bool:
    return rule.field_id in {metadata.field_id, metadata.field_name}


class RuleValidator:
    """
    Validates entity attributes against field metadata and validation rules.

    Malformed rules and unknown field references never abort a run; they are
    reported as failing error results so they surface in the summary.
    """

    def __init__(self, metadata_repository: MetadataRepository | None = None) -> None:
        self._metadata_repository = metadata_repository

    def validate_field(
        self,
        field_name: str,
        value: Any,
        metadata: FieldMetadata,
        rules: Sequence[ValidationRule],
    ) -> list[ValidationResult]:
        if is_blank(value):
            if not metadata.is_required:
                return []
            return [
                _check_result(metadata, "required", False)
                .with_values(value, "non-empty value")
                .with_error(f"Field '{field_name}' is required.")
            ]

        results = self._metadata_checks(field_name, value, metadata)
        for rule in rules:
            if not rule.is_active or rule.rule_type == RuleType.CONSISTENCY:
                continue
            if not _rule_targets(rule, metadata):
                continue
            results.append(
                self._apply_rule(
                    rule,
                    actual=value,
                    evaluate=lambda rule=rule: evaluate_value_rule(
                        rule.rule_type, rule.rule_expression, value
                    ),
                )
            )
        return results

    def validate_entity(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
        rules: Sequence[ValidationRule],
    ) -> ValidationSummary:
        results: list[ValidationResult] = []
        for field_metadata in metadata:
            if not field_metadata.is_active:
                continue
            value = entity.attributes.get(field_metadata.field_name)
            results.extend(
                self.validate_field(field_metadata.field_name, value, field_metadata, rules)
            )

        known_fields = {item.field_id for item in metadata} | {item.field_name for item in metadata}
        for rule in rules:
            if not rule.is_active:
                continue
            if rule.field_id is not None and rule.field_id not in known_fields:
                results.append(
                    self._failed_rule(rule, f"Rule references unknown field '{rule.field_id}'.")
                )
                continue
            if rule.rule_type == RuleType.CONSISTENCY:
                results.append(
                    self._apply_rule(
                        rule,
                        actual=None,
                        evaluate=lambda rule=rule: evaluate_consistency(
                            rule.rule_expression, entity.attributes
                        ),
                    )
                )
            elif rule.field_id is None:
                results.append(
                    self._failed_rule(rule, f"Rule type '{rule.rule_type}' requires a target field.")
                )

        return ValidationSummary.from_results(entity.entity_id, results)

    def validate_batch(
        self,
        entities: Sequence[Entity],
        metadata: Sequence[FieldMetadata] | None = None,
        rules: Sequence[ValidationRule] | None = None,
    ) -> list[ValidationSummary]:
        if metadata is None:
            metadata = (
                self._metadata_repository.get_all_field_metadata()
                if self._metadata_repository is not None
                else []
            )
        if rules is None:
            rules = (
                self._metadata_repository.get_all_validation_rules()
                if self._metadata_repository is not None
                else []
            )

        summaries: list[ValidationSummary] = []
        for entity in entities:
            try:
                summaries.append(self.validate_entity(entity, metadata, rules))
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.ERROR,
                    "entity_validation_failed",
                    exc=exc,
                    entity_id=entity.entity_id,
                )
                failure = ValidationResult(
                    rule_id="entity",
                    rule_name="entity_validation",
                    passed=False,
                    severity=Severity.ERROR,
                ).with_error(f"Validation aborted: {exc}")
                summaries.append(ValidationSummary.from_results(entity.entity_id, [failure]))
        return summaries

    # ------------------------------------------------------------------
    # Metadata checks
    # ------------------------------------------------------------------

    def _metadata_checks(
        self,
        field_name: str,
        value: Any,
        metadata: FieldMetadata,
    ) -> list[ValidationResult]:
        results: list[ValidationResult] = []

        type_ok = conforms_to_type(value, metadata.field_type)
        type_result = _check_result(metadata, "type", type_ok).with_values(value, metadata.field_type)
        if not type_ok:
            type_result.with_error(
                f"Field '{field_name}' is not a valid {metadata.field_type}."
            )
        results.append(type_result)

        if metadata.has_enum_values():
            allowed = [str(item) for item in metadata.allowed_values]
            enum_ok = str(value) in allowed
            enum_result = _check_result(metadata, "allowed_values", enum_ok).with_values(value, allowed)
            if not enum_ok:
                enum_result.with_error(
                    f"Field '{field_name}' must be one of: {', '.join(allowed)}."
                )
            results.append(enum_result)

        if metadata.has_length_validation() and metadata.field_type == FieldType.STRING:
            length = len(str(value))
            length_ok = length <= metadata.max_length
            length_result = _check_result(metadata, "max_length", length_ok).with_values(
                length, metadata.max_length
            )
            if not length_ok:
                length_result.with_error(
                    f"Field '{field_name}' exceeds max length {metadata.max_length}."
                )
            results.append(length_result)

        if metadata.has_range_validation() and metadata.field_type in NUMERIC_FIELD_TYPES:
            number = to_number(value)
            if number is not None:
                results.append(self._range_check(field_name, number, metadata))

        if metadata.format_pattern:
            results.append(self._format_check(field_name, value, metadata))

        return results

    def _range_check(
        self,
        field_name: str,
        number: Decimal,
        metadata: FieldMetadata,
    ) -> ValidationResult:
        low = Decimal(str(metadata.min_value)) if metadata.min_value is not None else None
        high = Decimal(str(metadata.max_value)) if metadata.max_value is not None else None
        in_range = (low is None or number >= low) and (high is None or number <= high)
        expected = f"{'' if low is None else low}..{'' if high is None else high}"
        result = _check_result(metadata, "range", in_range).with_values(number, expected)
        if not in_range:
            result.with_error(f"Field '{field_name}' is outside range {expected}.")
        return result

    def _format_check(
        self,
        field_name: str,
        value: Any,
        metadata: FieldMetadata,
    ) -> ValidationResult:
        result = _check_result(metadata, "format", False).with_values(value, metadata.format_pattern)
        try:
            result.passed = evaluate_format(metadata.format_pattern, value)
        except RuleExpressionError as exc:
            return result.with_error(f"Field '{field_name}' has an invalid format pattern: {exc}")
        if not result.passed:
            result.with_error(f"Field '{field_name}' does not match the expected format.")
        return result

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------

    def _apply_rule(
        self,
        rule: ValidationRule,
        *,
        actual: Any,
        evaluate: Callable[[], bool],
    ) -> ValidationResult:
        try:
            rule.validate()
        except DomainValidationError as exc:
            return self._failed_rule(rule, f"Malformed rule: {exc.message}")

        try:
            passed = evaluate()
        except RuleExpressionError as exc:
            return self._failed_rule(rule, f"Malformed rule expression: {exc}")

        result = ValidationResult(
            rule_id=rule.rule_id,
            rule_name=rule.rule_name,
            passed=passed,
            severity=rule.severity,
        ).with_values(actual, rule.rule_expression)
        if not passed:
            result.with_error(rule.error_message)
        return result

    @staticmethod
    def _failed_rule(rule: ValidationRule, message: str) -> ValidationResult:
        log_event(
            logger,
            logging.WARNING,
            "validation_rule_rejected",
            rule_id=rule.rule_id,
            rule_name=rule.rule_name,
            reason=message,
        )
        return ValidationResult(
            rule_id=rule.rule_id,
            rule_name=rule.rule_name,
            passed=False,
            severity=Severity.ERROR,
        ).with_error(message)
