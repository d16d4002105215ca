"""
app/services/quality_scoring_service.py

Service layer for entity quality scoring, batch scoring, and reporting.

Scoring steps per entity:

    1. Fetch active field metadata and validation rules (hard failure).
    2. Resolve weights; invalid custom weights fall back to the defaults.
    3. Validate the entity when no summary was supplied, then store the
       summary results so the report reflects this run.
    4. Compute the six dimensions, apply the weighted formula, and reject
       any score outside [0, 100] (scores are never clamped).
    5. Persist, classify, and notify reviewers when the score is too low.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.orm import Session

from app.config import get_quality_scoring_settings
from app.domain.entity import Entity
from app.domain.errors import BusinessRuleError, DomainError, NotFoundError
from app.domain.interfaces import (
    DataValidator,
    MetadataRepository,
    Notifier,
    QualityRepository,
    QualityScorer,
)
from app.domain.notification import Notification, NotificationType
from app.domain.quality import QualityContext, QualityScore, QualityWeights, default_quality_weights
from app.domain.validation import ValidationSummary
from app.logging_utils import log_event
from app.schemas.quality_report import QualityReport
from app.services.notifications import LoggingNotifier
from app.validators.rule_validator import RuleValidator
from db.repositories.metadata_repository import SQLMetadataRepository
from db.repositories.quality_repository import SQLQualityRepository
from quality.scoring import DimensionQualityScorer

logger = logging.getLogger(__name__)

AGGREGATION_LEVELS = frozenset({"all", "entity_type", "source_file"})


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class QualityScoringResult:
    entity_id: str
    score: QualityScore | None = None
    quality_level: str | None = None
    requires_review: bool = False
    validation_summary: ValidationSummary | None = None
    success: bool = False
    error: str | None = None


@dataclass
class BatchScoreResult:
    total_count: int = 0
    success_count: int = 0
    fail_count: int = 0
    results: list[QualityScoringResult] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class QualityScoringService:
    """
    Computes, persists, and reports entity quality scores.
    """

    def __init__(
        self,
        *,
        scorer: QualityScorer,
        validator: DataValidator,
        metadata_repository: MetadataRepository,
        quality_repository: QualityRepository,
        weights: QualityWeights | None = None,
        notifier: Notifier | None = None,
        review_recipients: Sequence[str] = (),
        review_notification_type: str = NotificationType.EMAIL,
    ) -> None:
        self._scorer = scorer
        self._validator = validator
        self._metadata_repository = metadata_repository
        self._quality_repository = quality_repository
        self._weights = weights or default_quality_weights()
        self._notifier = notifier
        self._review_recipients = tuple(review_recipients)
        self._review_notification_type = review_notification_type

    def execute(
        self,
        entity: Entity,
        validation_summary: ValidationSummary | None = None,
        custom_weights: QualityWeights | None = None,
        related_entities: Sequence[Entity] = (),
    ) -> QualityScoringResult:
        entity_id = entity.entity_id
        log_event(logger, logging.INFO, "quality_scoring_started", entity_id=entity_id)

        try:
            metadata = self._metadata_repository.get_all_field_metadata()
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "field_metadata_fetch_failed", exc=exc)
            return QualityScoringResult(entity_id=entity_id, error=f"failed to get metadata: {exc}")

        try:
            rules = self._metadata_repository.get_all_validation_rules()
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "validation_rules_fetch_failed", exc=exc)
            return QualityScoringResult(entity_id=entity_id, error=f"failed to get rules: {exc}")

        weights = self._resolve_weights(custom_weights)

        summary = validation_summary
        try:
            if summary is None:
                summary = self._validator.validate_entity(entity, metadata, rules)
            self._quality_repository.save_validation_results(entity_id, summary.results)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "entity_validation_failed", exc=exc, entity_id=entity_id)
            return QualityScoringResult(entity_id=entity_id, error=f"validation failed: {exc}")

        context = QualityContext(
            metadata=metadata,
            validation_rules=rules,
            related_entities=[item for item in related_entities if item.entity_id != entity_id],
            weights=weights,
            validation_summary=summary,
        )

        try:
            score = self._scorer.calculate_score(entity, context)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "quality_scoring_failed", exc=exc, entity_id=entity_id)
            return QualityScoringResult(
                entity_id=entity_id,
                validation_summary=summary,
                error=f"scoring failed: {exc}",
            )

        score.calculate_overall(weights)
        try:
            score.validate()
        except DomainError as exc:
            log_event(logger, logging.ERROR, "quality_scores_invalid", exc=exc, entity_id=entity_id)
            return QualityScoringResult(
                entity_id=entity_id,
                validation_summary=summary,
                error=f"invalid scores: {exc}",
            )

        try:
            self._quality_repository.save_quality_score(score)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "quality_score_save_failed", exc=exc, entity_id=entity_id)
            return QualityScoringResult(
                entity_id=entity_id,
                validation_summary=summary,
                error=f"failed to save score: {exc}",
            )

        quality_level = score.quality_level()
        requires_review = score.requires_review()
        if requires_review:
            log_event(
                logger,
                logging.WARNING,
                "entity_requires_quality_review",
                entity_id=entity_id,
                overall_score=score.overall_score,
            )
            self._notify_review(entity, score)

        lowest_dimension, lowest_score = score.lowest_dimension()
        log_event(
            logger,
            logging.INFO,
            "quality_scoring_completed",
            entity_id=entity_id,
            overall_score=score.overall_score,
            quality_level=quality_level,
            requires_review=requires_review,
            lowest_dimension=lowest_dimension,
            lowest_score=lowest_score,
        )
        return QualityScoringResult(
            entity_id=entity_id,
            score=score,
            quality_level=quality_level,
            requires_review=requires_review,
            validation_summary=summary,
            success=True,
        )

    def score_batch(self, entities: Sequence[Entity]) -> BatchScoreResult:
        log_event(logger, logging.INFO, "batch_quality_scoring_started", entity_count=len(entities))

        batch = BatchScoreResult(total_count=len(entities))
        for entity in entities:
            try:
                result = self.execute(entity, related_entities=entities)
            except Exception as exc:  # noqa: BLE001
                log_event(logger, logging.ERROR, "entity_scoring_aborted", exc=exc, entity_id=entity.entity_id)
                result = QualityScoringResult(entity_id=entity.entity_id, error=str(exc))

            if result.success:
                batch.success_count += 1
            else:
                batch.fail_count += 1
            batch.results.append(result)

        log_event(
            logger,
            logging.INFO,
            "batch_quality_scoring_completed",
            total_count=batch.total_count,
            success_count=batch.success_count,
            fail_count=batch.fail_count,
        )
        return batch

    def get_quality_report(self, entity_id: str) -> QualityReport:
        score = self._quality_repository.get_quality_score(entity_id)
        if score is None:
            raise NotFoundError("quality score", entity_id)
        validation_results = self._quality_repository.get_validation_results(entity_id)
        return QualityReport.build(score, validation_results)

    def get_quality_metrics(
        self,
        aggregation_level: str = "all",
        aggregation_key: str | None = None,
    ) -> dict[str, float]:
        """
        Average the latest stored scores per dimension.

        ``aggregation_level`` is "all", "entity_type" or "source_file"; the
        latter two need an ``aggregation_key``.
        """

        if aggregation_level not in AGGREGATION_LEVELS:
            raise BusinessRuleError(
                f"unsupported aggregation level: {aggregation_level}",
                rule="quality_metrics_aggregation",
            )
        if aggregation_level != "all" and not aggregation_key:
            raise BusinessRuleError(
                f"aggregation level {aggregation_level} requires a key",
                rule="quality_metrics_aggregation",
            )
        return self._quality_repository.get_quality_metrics(aggregation_level, aggregation_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_weights(self, custom_weights: QualityWeights | None) -> QualityWeights:
        if custom_weights is None:
            return self._weights
        try:
            custom_weights.validate()
        except BusinessRuleError as exc:
            log_event(logger, logging.WARNING, "custom_weights_rejected", error=str(exc))
            return self._weights
        return custom_weights

    def _notify_review(self, entity: Entity, score: QualityScore) -> None:
        if self._notifier is None or not self._review_recipients:
            return
        lowest_dimension, lowest_score = score.lowest_dimension()
        notification = Notification(
            notification_type=self._review_notification_type,
            subject=f"Quality review required for {entity.entity_type} {entity.driving_field_value}",
            message=(
                f"Overall quality score {score.overall_score:.2f} is below the review threshold; "
                f"weakest dimension is {lowest_dimension} ({lowest_score:.2f})."
            ),
            recipients=self._review_recipients,
            data={
                "entity_id": entity.entity_id,
                "overall_score": score.overall_score,
                "quality_level": score.quality_level(),
            },
        )
        try:
            self._notifier.notify(notification)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "review_notification_failed",
                exc=exc,
                entity_id=entity.entity_id,
            )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_quality_scoring_service(
    session: Session,
    notifier: Notifier | None = None,
) -> QualityScoringService:
    """
    Wire the service to SQL repositories sharing the caller's session.
    """

    settings = get_quality_scoring_settings()
    metadata_repository = SQLMetadataRepository(session)
    return QualityScoringService(
        scorer=DimensionQualityScorer(
            fresh_after_days=settings.fresh_after_days,
            stale_after_days=settings.stale_after_days,
        ),
        validator=RuleValidator(metadata_repository),
        metadata_repository=metadata_repository,
        quality_repository=SQLQualityRepository(session),
        weights=settings.weights,
        notifier=notifier or LoggingNotifier(),
        review_recipients=settings.review_recipients,
        review_notification_type=settings.review_notification_type,
    )
