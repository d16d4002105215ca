"""
app/domain/interfaces.py

Collaborator contracts consumed by the ingestion use cases.

Use cases hold references to these protocols only; concrete adapters live in
``db.repositories``, ``app.validators``, ``app.mappers``, ``quality`` and
``app.services.notifications``.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, Sequence

from app.domain.entity import Entity
from app.domain.field_metadata import FieldMetadata
from app.domain.file_metadata import FileMetadata, ParsedData
from app.domain.lineage import LineageRecord
from app.domain.notification import Notification
from app.domain.quality import QualityContext, QualityScore
from app.domain.validation import ValidationResult, ValidationRule, ValidationSummary


class Storage(Protocol):
    def upload(self, path: str, data: BinaryIO) -> None:
        ...

    def download(self, path: str) -> BinaryIO:
        """
        Return a readable binary stream. The caller closes it.
        """
        ...

    def delete(self, path: str) -> None:
        ...

    def exists(self, path: str) -> bool:
        ...

    def get_url(self, path: str, expiration_minutes: int) -> str:
        ...


class FileParser(Protocol):
    def parse(self, stream: BinaryIO, file_metadata: FileMetadata) -> ParsedData:
        ...

    def validate(self, stream: BinaryIO) -> None:
        """
        Raise when the stream is not structurally valid for this parser.
        """
        ...

    def get_metadata(self, stream: BinaryIO) -> FileMetadata:
        ...

    def supports_format(self, file_format: str) -> bool:
        ...


class DataNormalizer(Protocol):
    def normalize(self, parsed_data: ParsedData, driving_field_name: str) -> list[Entity]:
        ...

    def validate_normalization(self, entities: Sequence[Entity]) -> None:
        ...

    def detect_driving_field(self, parsed_data: ParsedData) -> str:
        ...

    def resolve_driving_field(self, parsed_data: ParsedData, driving_field_name: str) -> str:
        ...


class DataValidator(Protocol):
    def validate_entity(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
        rules: Sequence[ValidationRule],
    ) -> ValidationSummary:
        ...

    def validate_batch(
        self,
        entities: Sequence[Entity],
        metadata: Sequence[FieldMetadata] | None = None,
        rules: Sequence[ValidationRule] | None = None,
    ) -> list[ValidationSummary]:
        ...

    def validate_field(
        self,
        field_name: str,
        value: object,
        metadata: FieldMetadata,
        rules: Sequence[ValidationRule],
    ) -> list[ValidationResult]:
        ...


class QualityScorer(Protocol):
    def calculate_score(self, entity: Entity, context: QualityContext) -> QualityScore:
        ...

    def calculate_batch_scores(
        self,
        entities: Sequence[Entity],
        context: QualityContext,
    ) -> list[QualityScore]:
        ...

    def calculate_completeness(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> float:
        ...

    def calculate_accuracy(
        self,
        entity: Entity,
        validation_summary: ValidationSummary | None,
    ) -> float:
        ...


class EntityRepository(Protocol):
    def save(self, entity: Entity) -> None:
        ...

    def get_by_id(self, entity_id: str) -> Entity | None:
        ...

    def get_by_driving_field(self, driving_field_value: str) -> Entity | None:
        ...

    def list_by_type(self, entity_type: str, limit: int, offset: int) -> list[Entity]:
        ...

    def update(self, entity: Entity) -> None:
        ...

    def delete(self, entity_id: str) -> None:
        """
        Soft delete: the row is kept and flagged inactive.
        """
        ...

    def exists(self, driving_field_value: str) -> bool:
        ...


class MetadataRepository(Protocol):
    def get_field_metadata(self, field_name: str) -> FieldMetadata | None:
        ...

    def get_all_field_metadata(self) -> list[FieldMetadata]:
        ...

    def get_driving_field(self) -> FieldMetadata | None:
        ...

    def save_field_metadata(self, metadata: FieldMetadata) -> None:
        ...

    def get_validation_rules(self, field_id: str) -> list[ValidationRule]:
        ...

    def get_all_validation_rules(self) -> list[ValidationRule]:
        ...

    def save_validation_rule(self, rule: ValidationRule) -> None:
        ...


class QualityRepository(Protocol):
    def save_quality_score(self, score: QualityScore) -> None:
        ...

    def get_quality_score(self, entity_id: str) -> QualityScore | None:
        """
        Return the most recently calculated score for the entity.
        """
        ...

    def save_validation_results(
        self,
        entity_id: str,
        results: Sequence[ValidationResult],
    ) -> None:
        ...

    def get_validation_results(self, entity_id: str) -> list[ValidationResult]:
        ...

    def get_quality_metrics(
        self,
        aggregation_level: str,
        aggregation_key: str | None = None,
    ) -> dict[str, float]:
        ...


class FileRepository(Protocol):
    def save_file_metadata(self, metadata: FileMetadata) -> None:
        ...

    def get_file_metadata(self, file_id: str) -> FileMetadata | None:
        ...

    def update_file_status(
        self,
        file_id: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        ...

    def get_pending_files(self, limit: int) -> list[FileMetadata]:
        ...


class LineageRepository(Protocol):
    def record_lineage(self, record: LineageRecord) -> None:
        ...

    def get_lineage(self, entity_id: str) -> list[LineageRecord]:
        ...

    def get_source_lineage(self, source_file_id: str) -> list[LineageRecord]:
        ...


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None:
        ...
