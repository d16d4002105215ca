"""
Repository for quality scores, stored validation results, and metrics.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.attributes import from_json_value, to_json_value
from app.domain.quality import DIMENSION_ORDER, QualityScore
from app.domain.validation import ValidationResult
from db.base import ensure_utc
from db.models.entity import EntityRecord
from db.models.quality import QualityScoreRecord, ValidationResultRecord
from db.repositories.errors import RepositoryError


def _score_to_domain(record: QualityScoreRecord) -> QualityScore:
    return QualityScore(
        score_id=record.id,
        entity_id=record.entity_id,
        completeness_score=record.completeness_score,
        accuracy_score=record.accuracy_score,
        consistency_score=record.consistency_score,
        timeliness_score=record.timeliness_score,
        uniqueness_score=record.uniqueness_score,
        validity_score=record.validity_score,
        overall_score=record.overall_score,
        calculated_at=ensure_utc(record.calculated_at),
    )


def _result_to_domain(record: ValidationResultRecord) -> ValidationResult:
    return ValidationResult(
        rule_id=record.rule_id,
        rule_name=record.rule_name,
        passed=record.passed,
        severity=record.severity,
        actual_value=from_json_value(record.actual_value),
        expected_value=from_json_value(record.expected_value),
        error_details=record.error_details,
        checked_at=ensure_utc(record.checked_at),
    )


class SQLQualityRepository:
    """
    Quality store. Scores are append-only history; the latest per entity
    wins. Validation results are replaced wholesale per entity.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_quality_score(self, score: QualityScore) -> None:
        record = QualityScoreRecord(
            id=score.score_id,
            entity_id=score.entity_id,
            completeness_score=score.completeness_score,
            accuracy_score=score.accuracy_score,
            consistency_score=score.consistency_score,
            timeliness_score=score.timeliness_score,
            uniqueness_score=score.uniqueness_score,
            validity_score=score.validity_score,
            overall_score=score.overall_score,
            calculated_at=score.calculated_at,
        )
        try:
            with self._session.begin_nested():
                self._session.add(record)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save quality score for {score.entity_id}.") from exc

    def get_quality_score(self, entity_id: str) -> QualityScore | None:
        stmt = (
            select(QualityScoreRecord)
            .where(QualityScoreRecord.entity_id == entity_id)
            .order_by(QualityScoreRecord.calculated_at.desc())
            .limit(1)
        )
        record = self._session.scalars(stmt).first()
        return _score_to_domain(record) if record is not None else None

    def save_validation_results(
        self,
        entity_id: str,
        results: Sequence[ValidationResult],
    ) -> None:
        try:
            with self._session.begin_nested():
                self._session.execute(
                    delete(ValidationResultRecord).where(ValidationResultRecord.entity_id == entity_id)
                )
                self._session.add_all(
                    [
                        ValidationResultRecord(
                            entity_id=entity_id,
                            position=position,
                            rule_id=result.rule_id,
                            rule_name=result.rule_name,
                            passed=result.passed,
                            severity=result.severity,
                            actual_value=to_json_value(result.actual_value),
                            expected_value=to_json_value(result.expected_value),
                            error_details=result.error_details,
                            checked_at=result.checked_at,
                        )
                        for position, result in enumerate(results)
                    ]
                )
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save validation results for {entity_id}.") from exc

    def get_validation_results(self, entity_id: str) -> list[ValidationResult]:
        stmt = (
            select(ValidationResultRecord)
            .where(ValidationResultRecord.entity_id == entity_id)
            .order_by(ValidationResultRecord.position)
        )
        return [_result_to_domain(record) for record in self._session.scalars(stmt).all()]

    def get_quality_metrics(
        self,
        aggregation_level: str,
        aggregation_key: str | None = None,
    ) -> dict[str, float]:
        """
        Average each dimension over the latest score of every matching entity.

        Returns ``{"<dimension>": avg, ..., "overall": avg, "entity_count": n}``.
        """

        latest = (
            select(
                QualityScoreRecord.entity_id.label("entity_id"),
                func.max(QualityScoreRecord.calculated_at).label("calculated_at"),
            )
            .group_by(QualityScoreRecord.entity_id)
            .subquery()
        )
        columns = [
            func.avg(getattr(QualityScoreRecord, f"{name}_score")).label(name)
            for name in DIMENSION_ORDER
        ]
        stmt = select(
            *columns,
            func.avg(QualityScoreRecord.overall_score).label("overall"),
            func.count(func.distinct(QualityScoreRecord.entity_id)).label("entity_count"),
        ).join(
            latest,
            (QualityScoreRecord.entity_id == latest.c.entity_id)
            & (QualityScoreRecord.calculated_at == latest.c.calculated_at),
        )

        if aggregation_level == "entity_type":
            stmt = stmt.join(EntityRecord, EntityRecord.id == QualityScoreRecord.entity_id).where(
                EntityRecord.entity_type == aggregation_key
            )
        elif aggregation_level == "source_file":
            stmt = stmt.join(EntityRecord, EntityRecord.id == QualityScoreRecord.entity_id).where(
                EntityRecord.source_file_id == aggregation_key
            )

        try:
            row = self._session.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise RepositoryError("Failed to aggregate quality metrics.") from exc

        metrics = {name: float(getattr(row, name) or 0.0) for name in DIMENSION_ORDER}
        metrics["overall"] = float(row.overall or 0.0)
        metrics["entity_count"] = float(row.entity_count or 0)
        return metrics
