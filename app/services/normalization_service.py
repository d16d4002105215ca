"""
app/services/normalization_service.py

Service layer turning parsed file data into stored entities.

``execute`` is all-or-nothing: any detection, normalization, or batch
validation failure returns an unsuccessful result and persists nothing.
``normalize_and_merge`` is partial-success: each entity is written
independently and repository failures are counted, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.config import get_lineage_settings, get_normalization_settings
from app.domain.entity import Entity
from app.domain.errors import DomainError, DuplicateError
from app.domain.file_metadata import ParsedData
from app.domain.interfaces import (
    DataNormalizer,
    EntityRepository,
    LineageRepository,
    MetadataRepository,
)
from app.domain.lineage import LineageAction, LineageRecord, LineageStep
from app.logging_utils import log_event
from app.mappers.entity_normalizer import RecordNormalizer
from db.repositories.entity_repository import SQLEntityRepository
from db.repositories.lineage_repository import SQLLineageRepository
from db.repositories.metadata_repository import SQLMetadataRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class NormalizationResult:
    entities: list[Entity] = field(default_factory=list)
    driving_field_name: str | None = None
    normalized_count: int = 0
    success: bool = False
    error: str | None = None


@dataclass
class MergeResult:
    """
    Outcome of normalize-and-merge.

    ``persisted_entities`` holds the stored version of every entity that was
    created or merged, in input order.
    """

    normalization: NormalizationResult
    merged_count: int = 0
    new_count: int = 0
    failed_count: int = 0
    persisted_entities: list[Entity] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.normalization.success


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class NormalizationService:
    """
    Resolves the driving field, normalizes records, and merges entities.
    """

    def __init__(
        self,
        *,
        normalizer: DataNormalizer,
        metadata_repository: MetadataRepository,
        entity_repository: EntityRepository,
        lineage_repository: LineageRepository | None = None,
        performed_by: str = "ingestion-pipeline",
    ) -> None:
        self._normalizer = normalizer
        self._metadata_repository = metadata_repository
        self._entity_repository = entity_repository
        self._lineage_repository = lineage_repository
        self._performed_by = performed_by

    def execute(
        self,
        parsed_data: ParsedData,
        driving_field_name: str | None = None,
    ) -> NormalizationResult:
        log_event(
            logger,
            logging.INFO,
            "normalization_started",
            record_count=parsed_data.record_count,
            driving_field_name=driving_field_name,
        )

        resolved_name = driving_field_name.strip() if driving_field_name else ""
        if not resolved_name:
            resolved_name = self._configured_driving_field() or ""
        if not resolved_name:
            try:
                resolved_name = self._normalizer.detect_driving_field(parsed_data)
            except DomainError as exc:
                log_event(logger, logging.ERROR, "driving_field_detection_failed", exc=exc)
                return NormalizationResult(
                    success=False,
                    error=f"no driving field specified and detection failed: {exc}",
                )
            log_event(logger, logging.INFO, "driving_field_detected", field_name=resolved_name)

        try:
            resolved_name = self._normalizer.resolve_driving_field(parsed_data, resolved_name)
            entities = self._normalizer.normalize(parsed_data, resolved_name)
        except (DomainError, TypeError) as exc:
            log_event(
                logger,
                logging.ERROR,
                "normalization_failed",
                exc=exc,
                driving_field=resolved_name,
            )
            return NormalizationResult(
                driving_field_name=resolved_name,
                success=False,
                error=f"normalization failed: {exc}",
            )

        try:
            self._normalizer.validate_normalization(entities)
        except DomainError as exc:
            log_event(logger, logging.ERROR, "normalization_validation_failed", exc=exc)
            return NormalizationResult(
                driving_field_name=resolved_name,
                success=False,
                error=f"normalization validation failed: {exc}",
            )

        log_event(
            logger,
            logging.INFO,
            "normalization_completed",
            entity_count=len(entities),
            driving_field=resolved_name,
        )
        return NormalizationResult(
            entities=entities,
            driving_field_name=resolved_name,
            normalized_count=len(entities),
            success=True,
        )

    def normalize_and_merge(
        self,
        parsed_data: ParsedData,
        driving_field_name: str | None = None,
    ) -> MergeResult:
        normalization = self.execute(parsed_data, driving_field_name)
        result = MergeResult(normalization=normalization)
        if not normalization.success:
            return result

        for entity in normalization.entities:
            try:
                persisted, action = self._persist(entity)
            except Exception as exc:  # noqa: BLE001
                result.failed_count += 1
                log_event(
                    logger,
                    logging.ERROR,
                    "entity_merge_failed",
                    exc=exc,
                    driving_field_value=entity.driving_field_value,
                )
                continue

            if action == LineageAction.MERGED:
                result.merged_count += 1
            else:
                result.new_count += 1
            result.persisted_entities.append(persisted)
            self._record_lineage(persisted, entity, action, normalization.driving_field_name)

        log_event(
            logger,
            logging.INFO,
            "normalization_merge_completed",
            merged_count=result.merged_count,
            new_count=result.new_count,
            failed_count=result.failed_count,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _configured_driving_field(self) -> str | None:
        try:
            driving_field = self._metadata_repository.get_driving_field()
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "driving_field_lookup_failed", exc=exc)
            return None
        return driving_field.field_name if driving_field is not None else None

    def _persist(self, entity: Entity) -> tuple[Entity, str]:
        if self._entity_repository.exists(entity.driving_field_value):
            return self._merge_into_existing(entity), LineageAction.MERGED

        try:
            self._entity_repository.save(entity)
        except DuplicateError:
            # A concurrent writer stored the same driving value first.
            log_event(
                logger,
                logging.INFO,
                "entity_insert_raced",
                driving_field_value=entity.driving_field_value,
            )
            return self._merge_into_existing(entity), LineageAction.MERGED
        return entity, LineageAction.CREATED

    def _merge_into_existing(self, entity: Entity) -> Entity:
        existing = self._entity_repository.get_by_driving_field(entity.driving_field_value)
        if existing is None:
            raise DomainError(
                f"entity {entity.driving_field_value} disappeared before it could be merged"
            )
        existing.merge_attributes(entity)
        self._entity_repository.update(existing)
        return existing

    def _record_lineage(
        self,
        persisted: Entity,
        incoming: Entity,
        action: str,
        driving_field_name: str | None,
    ) -> None:
        if self._lineage_repository is None:
            return
        record = LineageRecord(
            entity_id=persisted.entity_id,
            source_file_id=incoming.source_file_id,
            transformation_step=LineageStep.NORMALIZE_MERGE,
            transformation_details={
                "action": action,
                "driving_field": driving_field_name,
                "driving_field_value": persisted.driving_field_value,
                "attribute_keys": sorted(incoming.attributes),
            },
            performed_by=self._performed_by,
        )
        try:
            self._lineage_repository.record_lineage(record)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "lineage_record_failed",
                exc=exc,
                entity_id=persisted.entity_id,
            )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_normalization_service(session: Session) -> NormalizationService:
    """
    Wire the service to SQL repositories sharing the caller's session.
    """

    settings = get_normalization_settings()
    metadata_repository = SQLMetadataRepository(session)
    return NormalizationService(
        normalizer=RecordNormalizer(
            entity_type=settings.entity_type,
            driving_field_aliases=settings.driving_field_aliases,
            metadata_repository=metadata_repository,
        ),
        metadata_repository=metadata_repository,
        entity_repository=SQLEntityRepository(session),
        lineage_repository=SQLLineageRepository(session),
        performed_by=get_lineage_settings().performed_by,
    )
