"""
tests/fakes.py

In-memory collaborators for service-level tests. No database, no disk.
"""

from __future__ import annotations

import copy
import csv
import io
from typing import BinaryIO, Sequence

from app.domain.entity import Entity
from app.domain.errors import DuplicateError, NotFoundError
from app.domain.field_metadata import FieldMetadata
from app.domain.file_metadata import FileMetadata, ParsedData, ProcessingStatus
from app.domain.lineage import LineageRecord
from app.domain.notification import Notification
from app.domain.quality import QualityScore
from app.domain.validation import ValidationResult, ValidationRule


class InMemoryEntityRepository:
    def __init__(self) -> None:
        self.rows: dict[str, Entity] = {}
        self.save_error: Exception | None = None

    def save(self, entity: Entity) -> None:
        if self.save_error is not None:
            raise self.save_error
        if self.exists(entity.driving_field_value):
            raise DuplicateError(entity.entity_type, "driving_field_value", entity.driving_field_value)
        self.rows[entity.entity_id] = copy.deepcopy(entity)

    def get_by_id(self, entity_id: str) -> Entity | None:
        entity = self.rows.get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    def get_by_driving_field(self, driving_field_value: str) -> Entity | None:
        for entity in self.rows.values():
            if entity.driving_field_value == driving_field_value:
                return copy.deepcopy(entity)
        return None

    def list_by_type(self, entity_type: str, limit: int = 100, offset: int = 0) -> list[Entity]:
        matches = [
            copy.deepcopy(entity)
            for entity in self.rows.values()
            if entity.entity_type == entity_type and entity.is_active
        ]
        return matches[offset : offset + limit]

    def update(self, entity: Entity) -> None:
        if entity.entity_id not in self.rows:
            raise NotFoundError("entity", entity.entity_id)
        self.rows[entity.entity_id] = copy.deepcopy(entity)

    def delete(self, entity_id: str) -> None:
        if entity_id not in self.rows:
            raise NotFoundError("entity", entity_id)
        self.rows[entity_id].deactivate()

    def exists(self, driving_field_value: str) -> bool:
        return any(entity.driving_field_value == driving_field_value for entity in self.rows.values())


class InMemoryMetadataRepository:
    def __init__(
        self,
        fields: Sequence[FieldMetadata] = (),
        rules: Sequence[ValidationRule] = (),
    ) -> None:
        self.fields: dict[str, FieldMetadata] = {item.field_name: item for item in fields}
        self.rules: list[ValidationRule] = list(rules)
        self.fail_with: Exception | None = None

    def get_field_metadata(self, field_name: str) -> FieldMetadata | None:
        return self.fields.get(field_name)

    def get_all_field_metadata(self) -> list[FieldMetadata]:
        if self.fail_with is not None:
            raise self.fail_with
        return [item for item in self.fields.values() if item.is_active]

    def get_driving_field(self) -> FieldMetadata | None:
        for item in self.fields.values():
            if item.is_driving_field and item.is_active:
                return item
        return None

    def save_field_metadata(self, metadata: FieldMetadata) -> None:
        metadata.validate()
        self.fields[metadata.field_name] = metadata

    def get_validation_rules(self, field_id: str) -> list[ValidationRule]:
        return [rule for rule in self.rules if rule.field_id == field_id and rule.is_active]

    def get_all_validation_rules(self) -> list[ValidationRule]:
        return [rule for rule in self.rules if rule.is_active]

    def save_validation_rule(self, rule: ValidationRule) -> None:
        rule.validate()
        self.rules = [item for item in self.rules if item.rule_id != rule.rule_id]
        self.rules.append(rule)


class InMemoryQualityRepository:
    def __init__(self) -> None:
        self.scores: list[QualityScore] = []
        self.results: dict[str, list[ValidationResult]] = {}
        self.save_error: Exception | None = None

    def save_quality_score(self, score: QualityScore) -> None:
        if self.save_error is not None:
            raise self.save_error
        self.scores.append(copy.deepcopy(score))

    def get_quality_score(self, entity_id: str) -> QualityScore | None:
        matches = [score for score in self.scores if score.entity_id == entity_id]
        if not matches:
            return None
        return max(matches, key=lambda score: score.calculated_at)

    def save_validation_results(self, entity_id: str, results: Sequence[ValidationResult]) -> None:
        self.results[entity_id] = list(results)

    def get_validation_results(self, entity_id: str) -> list[ValidationResult]:
        return list(self.results.get(entity_id, []))

    def get_quality_metrics(
        self,
        aggregation_level: str,
        aggregation_key: str | None = None,
    ) -> dict[str, float]:
        latest: dict[str, QualityScore] = {}
        for score in self.scores:
            current = latest.get(score.entity_id)
            if current is None or score.calculated_at >= current.calculated_at:
                latest[score.entity_id] = score
        if not latest:
            return {"overall": 0.0, "entity_count": 0.0}
        overall = sum(score.overall_score for score in latest.values()) / len(latest)
        return {"overall": overall, "entity_count": float(len(latest))}


class InMemoryFileRepository:
    def __init__(self, *files: FileMetadata) -> None:
        self.files: dict[str, FileMetadata] = {item.file_id: copy.deepcopy(item) for item in files}
        self.saved_statuses: list[str] = []

    def save_file_metadata(self, metadata: FileMetadata) -> None:
        self.files[metadata.file_id] = copy.deepcopy(metadata)
        self.saved_statuses.append(metadata.processing_status)

    def get_file_metadata(self, file_id: str) -> FileMetadata | None:
        metadata = self.files.get(file_id)
        return copy.deepcopy(metadata) if metadata is not None else None

    def update_file_status(self, file_id: str, status: str, error_message: str | None = None) -> None:
        metadata = self.files.get(file_id)
        if metadata is None:
            raise NotFoundError("file", file_id)
        metadata.processing_status = status
        metadata.error_message = error_message

    def get_pending_files(self, limit: int = 100) -> list[FileMetadata]:
        pending = [
            item for item in self.files.values() if item.processing_status == ProcessingStatus.PENDING
        ]
        return pending[:limit]


class InMemoryLineageRepository:
    def __init__(self) -> None:
        self.records: list[LineageRecord] = []

    def record_lineage(self, record: LineageRecord) -> None:
        self.records.append(record)

    def get_lineage(self, entity_id: str) -> list[LineageRecord]:
        return [record for record in self.records if record.entity_id == entity_id]

    def get_source_lineage(self, source_file_id: str) -> list[LineageRecord]:
        return [record for record in self.records if record.source_file_id == source_file_id]


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)


class FakeStorage:
    """
    Dict-backed storage. ``download_error`` makes every download fail.
    """

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = dict(files or {})
        self.download_error: Exception | None = None
        self.download_count = 0

    def upload(self, path: str, data: BinaryIO | bytes) -> None:
        self.files[path] = data if isinstance(data, bytes) else data.read()

    def download(self, path: str) -> BinaryIO:
        self.download_count += 1
        if self.download_error is not None:
            raise self.download_error
        if path not in self.files:
            raise FileNotFoundError(path)
        return io.BytesIO(self.files[path])

    def delete(self, path: str) -> None:
        self.files.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self.files

    def get_url(self, path: str, expiration_minutes: int = 60) -> str:
        return f"memory://{path}?expires={expiration_minutes}"


class CsvParser:
    """
    Minimal CSV FileParser; blank cells become None.
    """

    def __init__(self) -> None:
        self.parse_calls = 0

    def supports_format(self, file_format: str) -> bool:
        return file_format == "csv"

    def validate(self, stream: BinaryIO) -> None:
        text = stream.read().decode("utf-8")
        if not text.strip():
            raise ValueError("file is empty")

    def get_metadata(self, stream: BinaryIO) -> FileMetadata:
        data = stream.read()
        return FileMetadata(
            file_name="upload.csv",
            file_path="upload.csv",
            file_size_bytes=len(data),
            file_format="csv",
        )

    def parse(self, stream: BinaryIO, file_metadata: FileMetadata) -> ParsedData:
        self.parse_calls += 1
        reader = csv.DictReader(io.StringIO(stream.read().decode("utf-8")))
        parsed = ParsedData(file_metadata=file_metadata, headers=list(reader.fieldnames or []))
        for row_number, row in enumerate(reader, start=1):
            if None in row:
                parsed.add_error(row_number, None, "too many cells")
                continue
            parsed.add_record({key: (value if value != "" else None) for key, value in row.items()})
        return parsed


def parsed_records(
    headers: Sequence[str],
    rows: Sequence[Sequence[object]],
    file_metadata: FileMetadata | None = None,
) -> ParsedData:
    parsed = ParsedData(file_metadata=file_metadata, headers=list(headers))
    for row in rows:
        parsed.add_record(dict(zip(headers, row)))
    return parsed
