"""
app/domain/file_metadata.py

Uploaded-file bookkeeping and the parsed tabular payload.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.domain.errors import BusinessRuleError, DomainValidationError


class FileFormat:
    XLSX = "xlsx"
    XLS = "xls"
    CSV = "csv"
    JSON = "json"
    XML = "xml"
    PARQUET = "parquet"


ALLOWED_FILE_FORMATS = frozenset(
    {
        FileFormat.XLSX,
        FileFormat.XLS,
        FileFormat.CSV,
        FileFormat.JSON,
        FileFormat.XML,
        FileFormat.PARQUET,
    }
)


class ProcessingStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_PROCESSING_STATUSES = frozenset(
    {
        ProcessingStatus.PENDING,
        ProcessingStatus.PROCESSING,
        ProcessingStatus.COMPLETED,
        ProcessingStatus.FAILED,
    }
)

# Source statuses from which each target status may be entered.
_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    ProcessingStatus.PROCESSING: frozenset({ProcessingStatus.PENDING}),
    ProcessingStatus.COMPLETED: frozenset(
        {ProcessingStatus.PENDING, ProcessingStatus.PROCESSING}
    ),
    ProcessingStatus.FAILED: frozenset(
        {ProcessingStatus.PENDING, ProcessingStatus.PROCESSING}
    ),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusTransition:
    status: str
    at: datetime


@dataclass
class FileMetadata:
    """
    Tracks one uploaded file through pending -> processing -> completed/failed.
    """

    file_name: str
    file_path: str
    file_size_bytes: int
    file_format: str
    file_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    upload_timestamp: datetime = field(default_factory=_utcnow)
    processing_status: str = ProcessingStatus.PENDING
    processed_at: datetime | None = None
    record_count: int = 0
    error_message: str | None = None
    checksum: str | None = None
    additional_metadata: dict[str, str] = field(default_factory=dict)
    status_history: list[StatusTransition] = field(default_factory=list)

    def validate(self) -> None:
        if not self.file_name:
            raise DomainValidationError("file name cannot be empty", field="file_name")
        if not self.file_path:
            raise DomainValidationError("file path cannot be empty", field="file_path")
        if self.file_size_bytes <= 0:
            raise DomainValidationError("file size must be positive", field="file_size_bytes")
        if self.file_format not in ALLOWED_FILE_FORMATS:
            raise DomainValidationError("invalid file format", field="file_format")
        if self.processing_status not in ALLOWED_PROCESSING_STATUSES:
            raise DomainValidationError("invalid processing status", field="processing_status")

    def mark_processing(self) -> None:
        self._transition(ProcessingStatus.PROCESSING)

    def mark_completed(self, record_count: int) -> None:
        self._transition(ProcessingStatus.COMPLETED)
        self.record_count = record_count
        self.error_message = None
        self.processed_at = self.status_history[-1].at

    def mark_failed(self, error_message: str) -> None:
        self._transition(ProcessingStatus.FAILED)
        self.error_message = error_message
        self.processed_at = self.status_history[-1].at

    def _transition(self, target: str) -> None:
        allowed_from = _ALLOWED_TRANSITIONS[target]
        if self.processing_status not in allowed_from:
            raise BusinessRuleError(
                f"cannot move file {self.file_id} from {self.processing_status} to {target}",
                rule="file_status_transition",
            )
        self.processing_status = target
        self.status_history.append(StatusTransition(status=target, at=_utcnow()))

    def is_completed(self) -> bool:
        return self.processing_status == ProcessingStatus.COMPLETED

    def is_failed(self) -> bool:
        return self.processing_status == ProcessingStatus.FAILED

    def is_processing(self) -> bool:
        return self.processing_status == ProcessingStatus.PROCESSING

    @property
    def file_extension(self) -> str:
        return self.file_format


@dataclass(frozen=True)
class ParseError:
    row: int
    column: str | None
    message: str


@dataclass
class ParsedData:
    """
    Tabular result of parsing one file.

    ``record_count`` is derived from ``records`` rather than stored.
    """

    file_metadata: FileMetadata | None
    headers: list[str] = field(default_factory=list)
    records: list[dict[str, Any]] = field(default_factory=list)
    parsed_at: datetime = field(default_factory=_utcnow)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)

    def add_record(self, record: dict[str, Any]) -> None:
        self.records.append(record)

    def add_error(self, row: int, column: str | None, message: str) -> None:
        self.errors.append(ParseError(row=row, column=column, message=message))

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def error_count(self) -> int:
        return len(self.errors)
