"""
tests/test_dimension_scorer.py

Pytest unit tests for DimensionQualityScorer and ScoreNormalizer.

All tests use a fixed clock so timeliness is deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.entity import Entity
from app.domain.field_metadata import FieldMetadata
from app.domain.quality import QualityContext
from app.domain.validation import ValidationResult, ValidationRule, ValidationSummary
from quality.normalizer import ScoreNormalizer
from quality.scoring import DimensionQualityScorer

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _field(name: str, field_type: str = "string", **kwargs: object) -> FieldMetadata:
    return FieldMetadata(field_name=name, display_name=name, field_type=field_type, **kwargs)


def _entity(value: str = "A-1", **attributes: object) -> Entity:
    return Entity(driving_field_value=value, entity_type="account", attributes=dict(attributes))


@pytest.fixture()
def scorer() -> DimensionQualityScorer:
    return DimensionQualityScorer(fresh_after_days=30, stale_after_days=130, clock=lambda: NOW)


# ---------------------------------------------------------------------------
# ScoreNormalizer
# ---------------------------------------------------------------------------


class TestScoreNormalizer:
    def test_ratio(self) -> None:
        n = ScoreNormalizer()
        assert n.ratio_to_score(1, 4) == 25.0
        assert n.ratio_to_score(0, 0) == 100.0
        assert n.ratio_to_score(0, 0, empty_default=0.0) == 0.0
        assert n.ratio_to_score(5, 4) == 100.0

    def test_linear_decay(self) -> None:
        n = ScoreNormalizer()
        assert n.linear_decay(10, 30, 130) == 100.0
        assert n.linear_decay(80, 30, 130) == pytest.approx(50.0)
        assert n.linear_decay(500, 30, 130) == 0.0


# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------


class TestCompleteness:
    def test_share_of_metadata_fields_present(self, scorer: DimensionQualityScorer) -> None:
        metadata = [_field("a"), _field("b"), _field("c"), _field("d")]
        entity = _entity(a="x", b="y", c="  ")
        assert scorer.calculate_completeness(entity, metadata) == 50.0

    def test_quality_weights_bias_completeness(self, scorer: DimensionQualityScorer) -> None:
        metadata = [_field("a", quality_weight=3), _field("b", quality_weight=1)]
        assert scorer.calculate_completeness(_entity(a="x"), metadata) == 75.0

    def test_without_metadata_uses_attribute_bag(self, scorer: DimensionQualityScorer) -> None:
        assert scorer.calculate_completeness(_entity(a="x", b=None), []) == 50.0

    def test_empty_entity_without_metadata_scores_zero(self, scorer: DimensionQualityScorer) -> None:
        assert scorer.calculate_completeness(_entity(), []) == 0.0


class TestAccuracyAndConsistency:
    def test_accuracy_is_validation_rate(self, scorer: DimensionQualityScorer) -> None:
        summary = ValidationSummary.from_results(
            "e",
            [
                ValidationResult(rule_id="1", rule_name="1", passed=True),
                ValidationResult(rule_id="2", rule_name="2", passed=True),
                ValidationResult(rule_id="3", rule_name="3", passed=False),
            ],
        )
        assert scorer.calculate_accuracy(_entity(), summary) == pytest.approx(66.67)

    def test_accuracy_without_rules_is_perfect(self, scorer: DimensionQualityScorer) -> None:
        assert scorer.calculate_accuracy(_entity(), None) == 100.0
        assert scorer.calculate_accuracy(_entity(), ValidationSummary.from_results("e", [])) == 100.0

    def test_consistency_counts_only_consistency_rules(self, scorer: DimensionQualityScorer) -> None:
        rule = ValidationRule(
            rule_name="dates",
            rule_type="consistency",
            rule_expression="end >= start",
            error_message="bad dates",
        )
        summary = ValidationSummary.from_results(
            "e",
            [
                ValidationResult(rule_id=rule.rule_id, rule_name="dates", passed=False),
                ValidationResult(rule_id="other", rule_name="other", passed=True),
            ],
        )
        context = QualityContext(validation_rules=[rule], validation_summary=summary)
        assert scorer.calculate_consistency(_entity(), context) == 0.0

    def test_consistency_without_rules_is_perfect(self, scorer: DimensionQualityScorer) -> None:
        assert scorer.calculate_consistency(_entity(), QualityContext()) == 100.0


class TestTimeliness:
    def test_newest_date_attribute_decides(self, scorer: DimensionQualityScorer) -> None:
        metadata = [_field("signup", "date"), _field("renewal", "date")]
        entity = _entity(
            signup=(NOW - timedelta(days=400)).date().isoformat(),
            renewal=(NOW - timedelta(days=80)).date().isoformat(),
        )
        assert scorer.calculate_timeliness(entity, metadata) == pytest.approx(50.0)

    def test_falls_back_to_updated_at(self, scorer: DimensionQualityScorer) -> None:
        entity = _entity()
        entity.updated_at = NOW - timedelta(days=1)
        assert scorer.calculate_timeliness(entity, []) == 100.0

        entity.updated_at = NOW - timedelta(days=365)
        assert scorer.calculate_timeliness(entity, []) == 0.0


class TestUniquenessAndValidity:
    def test_unique_entity(self, scorer: DimensionQualityScorer) -> None:
        entity = _entity("A-1")
        context = QualityContext(related_entities=[_entity("A-2")])
        assert scorer.calculate_uniqueness(entity, context) == 100.0

    def test_duplicates_lower_uniqueness(self, scorer: DimensionQualityScorer) -> None:
        entity = _entity("A-1")
        context = QualityContext(
            related_entities=[_entity("A-1")],
            existing_entities=[_entity("A-1"), entity],
        )
        assert scorer.calculate_uniqueness(entity, context) == pytest.approx(33.33)

    def test_validity_counts_type_conformance(self, scorer: DimensionQualityScorer) -> None:
        metadata = [_field("age", "integer"), _field("name"), _field("joined", "date"), _field("x", "decimal")]
        entity = _entity(age="forty", name="Alice", joined="2024-01-01")
        assert scorer.calculate_validity(entity, metadata) == pytest.approx(66.67)


# ---------------------------------------------------------------------------
# Whole score
# ---------------------------------------------------------------------------


class TestCalculateScore:
    def test_perfect_entity(self, scorer: DimensionQualityScorer) -> None:
        metadata = [_field("name"), _field("joined", "date")]
        entity = _entity(name="Alice", joined=NOW.date().isoformat())

        score = scorer.calculate_score(entity, QualityContext(metadata=metadata))

        assert score.dimensions() == {
            "completeness": 100.0,
            "accuracy": 100.0,
            "consistency": 100.0,
            "timeliness": 100.0,
            "uniqueness": 100.0,
            "validity": 100.0,
        }
        assert score.overall_score == pytest.approx(100.0)

    def test_batch_scores_see_each_other_as_duplicates(self, scorer: DimensionQualityScorer) -> None:
        first, second = _entity("A-1"), _entity("A-1")

        scores = scorer.calculate_batch_scores([first, second], QualityContext())

        assert [score.uniqueness_score for score in scores] == [50.0, 50.0]
        assert [score.entity_id for score in scores] == [first.entity_id, second.entity_id]
