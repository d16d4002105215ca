"""
Repository for uploaded file metadata and processing status.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import BusinessRuleError, NotFoundError
from app.domain.file_metadata import FileMetadata, ProcessingStatus, StatusTransition
from db.base import ensure_utc
from db.models.file_metadata import FileMetadataRecord
from db.repositories.errors import RepositoryError


def _history_to_json(history: list[StatusTransition]) -> list[dict[str, str]]:
    return [{"status": item.status, "at": item.at.isoformat()} for item in history]


def _history_from_json(payload: list[dict[str, str]] | None) -> list[StatusTransition]:
    return [
        StatusTransition(status=item["status"], at=datetime.fromisoformat(item["at"]))
        for item in payload or []
    ]


def _to_domain(record: FileMetadataRecord) -> FileMetadata:
    return FileMetadata(
        file_id=record.id,
        file_name=record.file_name,
        file_path=record.file_path,
        file_size_bytes=record.file_size_bytes,
        file_format=record.file_format,
        upload_timestamp=ensure_utc(record.upload_timestamp),
        processing_status=record.processing_status,
        processed_at=ensure_utc(record.processed_at),
        record_count=record.record_count,
        error_message=record.error_message,
        checksum=record.checksum,
        additional_metadata=dict(record.additional_metadata or {}),
        status_history=_history_from_json(record.status_history),
    )


class SQLFileRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def save_file_metadata(self, metadata: FileMetadata) -> None:
        """
        Insert or update the file row keyed by file_id.
        """

        metadata.validate()
        try:
            with self._session.begin_nested():
                record = self._session.get(FileMetadataRecord, metadata.file_id)
                if record is None:
                    record = FileMetadataRecord(id=metadata.file_id)
                    self._session.add(record)
                record.file_name = metadata.file_name
                record.file_path = metadata.file_path
                record.file_size_bytes = metadata.file_size_bytes
                record.file_format = metadata.file_format
                record.upload_timestamp = metadata.upload_timestamp
                record.processing_status = metadata.processing_status
                record.processed_at = metadata.processed_at
                record.record_count = metadata.record_count
                record.error_message = metadata.error_message
                record.checksum = metadata.checksum
                record.additional_metadata = dict(metadata.additional_metadata)
                record.status_history = _history_to_json(metadata.status_history)
                record.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Failed to save file metadata {metadata.file_id}.") from exc

    def get_file_metadata(self, file_id: str) -> FileMetadata | None:
        record = self._session.get(FileMetadataRecord, file_id)
        return _to_domain(record) if record is not None else None

    def update_file_status(
        self,
        file_id: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        """
        Apply one status transition through the FileMetadata state machine.
        """

        metadata = self.get_file_metadata(file_id)
        if metadata is None:
            raise NotFoundError("file", file_id)

        if status == ProcessingStatus.PROCESSING:
            metadata.mark_processing()
        elif status == ProcessingStatus.COMPLETED:
            metadata.mark_completed(metadata.record_count)
        elif status == ProcessingStatus.FAILED:
            metadata.mark_failed(error_message or "")
        else:
            raise BusinessRuleError(
                f"cannot move file {file_id} to status {status}",
                rule="file_status_transition",
            )
        self.save_file_metadata(metadata)

    def get_pending_files(self, limit: int = 100) -> list[FileMetadata]:
        stmt = (
            select(FileMetadataRecord)
            .where(FileMetadataRecord.processing_status == ProcessingStatus.PENDING)
            .order_by(FileMetadataRecord.upload_timestamp)
            .limit(max(1, limit))
        )
        return [_to_domain(record) for record in self._session.scalars(stmt).all()]
