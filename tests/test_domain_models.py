"""
tests/test_domain_models.py

Pytest unit tests for validation summaries, file status tracking, parsed
data, field metadata and rule definitions.
"""

from __future__ import annotations

import pytest

from app.domain.errors import (
    BusinessRuleError,
    DomainValidationError,
    DuplicateError,
    NotFoundError,
)
from app.domain.field_metadata import FieldMetadata
from app.domain.file_metadata import FileMetadata, ParsedData, ProcessingStatus
from app.domain.validation import ValidationResult, ValidationRule, ValidationSummary


def _result(passed: bool, severity: str = "error") -> ValidationResult:
    return ValidationResult(rule_id="r", rule_name="rule", passed=passed, severity=severity)


def _file() -> FileMetadata:
    return FileMetadata(
        file_name="accounts.csv",
        file_path="uploads/accounts.csv",
        file_size_bytes=128,
        file_format="csv",
    )


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_not_found_message(self) -> None:
        error = NotFoundError("file", "f-1")
        assert error.message == "file with ID f-1 not found"
        assert str(error) == "[NOT_FOUND] file with ID f-1 not found"

    def test_duplicate_carries_fields(self) -> None:
        error = DuplicateError("account", "driving_field_value", "A-1")
        assert error.value == "A-1"
        assert error.code == "DUPLICATE"


# ---------------------------------------------------------------------------
# ValidationSummary
# ---------------------------------------------------------------------------


class TestValidationSummary:
    def test_no_results_gives_zero_rate_and_valid(self) -> None:
        summary = ValidationSummary.from_results("e-1", [])
        assert summary.total_rules == 0
        assert summary.validation_rate == 0.0
        assert summary.is_valid() is True

    def test_counts_by_severity(self) -> None:
        summary = ValidationSummary.from_results(
            "e-1",
            [_result(True), _result(False, "warning"), _result(False, "error"), _result(False, "info")],
        )
        assert summary.total_rules == 4
        assert summary.passed_rules == 1
        assert summary.failed_rules == 3
        assert summary.error_count == 1
        assert summary.warning_count == 1
        assert summary.validation_rate == pytest.approx(25.0)

    def test_warnings_do_not_invalidate(self) -> None:
        summary = ValidationSummary.from_results("e-1", [_result(True), _result(False, "warning")])
        assert summary.is_valid() is True
        assert summary.has_warnings() is True
        assert summary.validation_rate == pytest.approx(50.0)

    def test_error_failure_invalidates(self) -> None:
        summary = ValidationSummary.from_results("e-1", [_result(False, "error")])
        assert summary.is_valid() is False
        assert summary.has_warnings() is False


# ---------------------------------------------------------------------------
# FileMetadata
# ---------------------------------------------------------------------------


class TestFileMetadata:
    def test_happy_path(self) -> None:
        metadata = _file()
        metadata.mark_processing()
        assert metadata.is_processing()

        metadata.mark_completed(3)
        assert metadata.is_completed()
        assert metadata.record_count == 3
        assert metadata.processed_at is not None
        assert [item.status for item in metadata.status_history] == ["processing", "completed"]

    def test_failed_records_message(self) -> None:
        metadata = _file()
        metadata.mark_processing()
        metadata.mark_failed("boom")
        assert metadata.is_failed()
        assert metadata.error_message == "boom"
        assert metadata.processed_at is not None

    @pytest.mark.parametrize("terminal", ["completed", "failed"])
    def test_terminal_states_reject_further_transitions(self, terminal: str) -> None:
        metadata = _file()
        metadata.mark_processing()
        if terminal == ProcessingStatus.COMPLETED:
            metadata.mark_completed(1)
        else:
            metadata.mark_failed("boom")

        with pytest.raises(BusinessRuleError):
            metadata.mark_processing()
        with pytest.raises(BusinessRuleError):
            metadata.mark_completed(2)
        with pytest.raises(BusinessRuleError):
            metadata.mark_failed("again")
        assert metadata.processing_status == terminal

    def test_cannot_reenter_processing(self) -> None:
        metadata = _file()
        metadata.mark_processing()
        with pytest.raises(BusinessRuleError) as exc_info:
            metadata.mark_processing()
        assert exc_info.value.rule == "file_status_transition"

    def test_validate_rejects_unknown_format(self) -> None:
        metadata = _file()
        metadata.file_format = "txt"
        with pytest.raises(DomainValidationError):
            metadata.validate()

    def test_validate_rejects_empty_file(self) -> None:
        metadata = _file()
        metadata.file_size_bytes = 0
        with pytest.raises(DomainValidationError) as exc_info:
            metadata.validate()
        assert exc_info.value.field == "file_size_bytes"


# ---------------------------------------------------------------------------
# ParsedData
# ---------------------------------------------------------------------------


class TestParsedData:
    def test_record_count_tracks_records(self) -> None:
        parsed = ParsedData(file_metadata=None, headers=["id"])
        parsed.add_record({"id": "1"})
        parsed.add_record({"id": "2"})
        assert parsed.record_count == 2

    def test_errors(self) -> None:
        parsed = ParsedData(file_metadata=None)
        assert parsed.has_errors() is False
        parsed.add_error(4, "amount", "not a number")
        assert parsed.has_errors() is True
        assert parsed.error_count() == 1
        assert parsed.errors[0].row == 4


# ---------------------------------------------------------------------------
# FieldMetadata and ValidationRule
# ---------------------------------------------------------------------------


class TestFieldMetadata:
    def test_valid_definition(self) -> None:
        metadata = FieldMetadata(
            field_name="annual_revenue",
            display_name="Annual revenue",
            field_type="decimal",
            min_value=0,
            allowed_values=[],
        )
        metadata.validate()
        assert metadata.has_range_validation()
        assert not metadata.has_enum_values()
        assert not metadata.has_length_validation()

    def test_unknown_type(self) -> None:
        with pytest.raises(DomainValidationError):
            FieldMetadata(field_name="x", display_name="X", field_type="money").validate()

    def test_weight_out_of_range(self) -> None:
        with pytest.raises(DomainValidationError):
            FieldMetadata(
                field_name="x",
                display_name="X",
                field_type="string",
                quality_weight=101,
            ).validate()


class TestValidationRule:
    def test_valid_rule(self) -> None:
        rule = ValidationRule(
            rule_name="revenue_range",
            rule_type="range",
            rule_expression="0..",
            error_message="negative revenue",
        )
        rule.validate()
        assert rule.is_blocking_error()

    def test_warning_is_not_blocking(self) -> None:
        rule = ValidationRule(
            rule_name="r",
            rule_type="custom",
            rule_expression="not_blank",
            error_message="m",
            severity="warning",
        )
        assert not rule.is_blocking_error()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"rule_name": ""},
            {"rule_type": "lookup"},
            {"severity": "fatal"},
            {"rule_expression": " "},
            {"error_message": ""},
        ],
    )
    def test_invalid_rules(self, overrides: dict[str, str]) -> None:
        values = {
            "rule_name": "r",
            "rule_type": "custom",
            "rule_expression": "not_blank",
            "error_message": "m",
        }
        values.update(overrides)
        with pytest.raises(DomainValidationError):
            ValidationRule(**values).validate()
