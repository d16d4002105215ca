"""
quality/scoring.py

Six-dimension quality scorer implementing BaseQualityScorer.
Computes per-dimension scores on a 0-100 scale from field metadata,
validation results, and neighbouring entities.
"""

from datetime import datetime, timezone
from typing import Callable, Sequence

from app.domain.attributes import is_blank
from app.domain.entity import Entity
from app.domain.field_metadata import FieldMetadata, FieldType
from app.domain.quality import QualityContext, QualityScore
from app.domain.validation import RuleType, ValidationSummary
from app.validators.type_checks import conforms_to_type, to_datetime
from quality.base import BaseQualityScorer
from quality.normalizer import ScoreNormalizer

_SECONDS_PER_DAY = 86400.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DimensionQualityScorer(BaseQualityScorer):
    """Rule-of-thumb quality scorer for attribute-bag entities.

    Dimension definitions:
        - completeness: share of active metadata fields that carry a value,
          weighted by each field's quality_weight when any weight is set.
        - accuracy: validation rate of the entity's validation summary.
        - consistency: pass rate of consistency-rule results.
        - timeliness: freshness of the newest date attribute (or of the
          entity's last update), decaying linearly between the fresh and
          stale thresholds.
        - uniqueness: 100 when no other known entity shares the driving
          value, otherwise 100 / (1 + duplicates).
        - validity: share of present metadata fields whose value conforms
          to the declared type.

    Dimensions with nothing to measure score 100, except completeness of an
    entity with neither metadata nor attributes, which scores 0.
    """

    def __init__(
        self,
        *,
        fresh_after_days: int = 30,
        stale_after_days: int = 365,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._normalizer = ScoreNormalizer()
        self._fresh_after_days = fresh_after_days
        self._stale_after_days = stale_after_days
        self._clock = clock

    def calculate_score(self, entity: Entity, context: QualityContext) -> QualityScore:
        score = QualityScore(
            entity_id=entity.entity_id,
            completeness_score=self.calculate_completeness(entity, context.metadata),
            accuracy_score=self.calculate_accuracy(entity, context.validation_summary),
            consistency_score=self.calculate_consistency(entity, context),
            timeliness_score=self.calculate_timeliness(entity, context.metadata),
            uniqueness_score=self.calculate_uniqueness(entity, context),
            validity_score=self.calculate_validity(entity, context.metadata),
        )
        score.calculate_overall(context.weights)
        return score

    def calculate_completeness(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> float:
        n = self._normalizer
        fields = [item for item in metadata if item.is_active]
        if not fields:
            if not entity.attributes:
                return 0.0
            present = sum(1 for value in entity.attributes.values() if not is_blank(value))
            return round(n.ratio_to_score(present, len(entity.attributes)), 2)

        use_weights = any(item.quality_weight > 0 for item in fields)
        total = 0.0
        present = 0.0
        for item in fields:
            weight = item.quality_weight if use_weights else 1.0
            total += weight
            if not is_blank(entity.attributes.get(item.field_name)):
                present += weight
        return round(n.ratio_to_score(present, total), 2)

    def calculate_accuracy(
        self,
        entity: Entity,
        validation_summary: ValidationSummary | None,
    ) -> float:
        if validation_summary is None or validation_summary.total_rules == 0:
            return 100.0
        return round(self._normalizer.clamp(validation_summary.validation_rate, 0.0, 100.0), 2)

    def calculate_consistency(self, entity: Entity, context: QualityContext) -> float:
        summary = context.validation_summary
        if summary is None:
            return 100.0
        consistency_rule_ids = {
            rule.rule_id
            for rule in context.validation_rules
            if rule.rule_type == RuleType.CONSISTENCY
        }
        relevant = [result for result in summary.results if result.rule_id in consistency_rule_ids]
        passed = sum(1 for result in relevant if result.passed)
        return round(self._normalizer.ratio_to_score(passed, len(relevant)), 2)

    def calculate_timeliness(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> float:
        reference = self._reference_timestamp(entity, metadata)
        age_days = (self._clock() - reference).total_seconds() / _SECONDS_PER_DAY
        return round(
            self._normalizer.linear_decay(
                age_days,
                float(self._fresh_after_days),
                float(self._stale_after_days),
            ),
            2,
        )

    def calculate_uniqueness(self, entity: Entity, context: QualityContext) -> float:
        duplicates = {
            other.entity_id
            for other in (*context.existing_entities, *context.related_entities)
            if other.entity_id != entity.entity_id
            and other.driving_field_value == entity.driving_field_value
        }
        return round(100.0 / (1 + len(duplicates)), 2)

    def calculate_validity(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> float:
        checked = 0
        conforming = 0
        for item in metadata:
            if not item.is_active:
                continue
            value = entity.attributes.get(item.field_name)
            if is_blank(value):
                continue
            checked += 1
            if conforms_to_type(value, item.field_type):
                conforming += 1
        return round(self._normalizer.ratio_to_score(conforming, checked), 2)

    def _reference_timestamp(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> datetime:
        candidates = []
        for item in metadata:
            if not item.is_active or item.field_type != FieldType.DATE:
                continue
            parsed = to_datetime(entity.attributes.get(item.field_name))
            if parsed is not None:
                candidates.append(parsed)
        if candidates:
            return max(candidates)
        updated_at = entity.updated_at
        return updated_at if updated_at.tzinfo else updated_at.replace(tzinfo=timezone.utc)
