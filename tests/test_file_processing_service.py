"""
tests/test_file_processing_service.py

Pytest unit tests for FileProcessingService with in-memory storage and a
small CSV parser.
"""

from __future__ import annotations

import pytest

from app.domain.errors import BusinessRuleError, NotFoundError
from app.domain.file_metadata import FileMetadata
from app.services.file_processing_service import FileProcessingService
from tests.fakes import CsvParser, FakeStorage, InMemoryFileRepository

CSV_BYTES = b"account_id,name\nA-1,Alice\nA-2,Bob\n"


def _file(file_format: str = "csv") -> FileMetadata:
    return FileMetadata(
        file_name="accounts.csv",
        file_path="uploads/accounts.csv",
        file_size_bytes=len(CSV_BYTES),
        file_format=file_format,
    )


class _Harness:
    def __init__(self, metadata: FileMetadata, files: dict[str, bytes] | None = None) -> None:
        self.metadata = metadata
        self.repository = InMemoryFileRepository(metadata)
        self.storage = FakeStorage(files if files is not None else {metadata.file_path: CSV_BYTES})
        self.parser = CsvParser()
        self.service = FileProcessingService(
            file_repository=self.repository,
            parsers=[self.parser],
            storage=self.storage,
            max_logged_parse_errors=1,
        )

    def stored(self) -> FileMetadata:
        return self.repository.get_file_metadata(self.metadata.file_id)


@pytest.fixture()
def harness() -> _Harness:
    return _Harness(_file())


class TestExecute:
    def test_success_marks_completed(self, harness: _Harness) -> None:
        result = harness.service.execute(harness.metadata.file_id, harness.metadata.file_path)

        assert result.success is True
        assert result.record_count == 2
        assert result.parsed_data.headers == ["account_id", "name"]
        stored = harness.stored()
        assert stored.processing_status == "completed"
        assert stored.record_count == 2
        assert harness.repository.saved_statuses == ["processing", "completed"]

    def test_download_failure_marks_failed_without_parsing(self, harness: _Harness) -> None:
        harness.storage.download_error = ConnectionError("bucket unreachable")

        result = harness.service.execute(harness.metadata.file_id, harness.metadata.file_path)

        assert result.success is False
        assert "bucket unreachable" in result.error
        assert result.error.startswith("Failed to download file")
        stored = harness.stored()
        assert stored.processing_status == "failed"
        assert "bucket unreachable" in stored.error_message
        assert harness.parser.parse_calls == 0

    def test_validation_failure(self) -> None:
        metadata = _file()
        harness = _Harness(metadata, {metadata.file_path: b"   "})

        result = harness.service.execute(metadata.file_id, metadata.file_path)

        assert result.success is False
        assert result.error.startswith("Validation failed")
        assert harness.stored().processing_status == "failed"
        assert harness.parser.parse_calls == 0

    def test_no_parser_for_format(self) -> None:
        harness = _Harness(_file("parquet"))
        result = harness.service.execute(harness.metadata.file_id, harness.metadata.file_path)

        assert result.success is False
        assert "parquet" in result.error
        assert harness.stored().processing_status == "failed"
        assert harness.storage.download_count == 0

    def test_row_errors_do_not_fail_the_file(self) -> None:
        metadata = _file()
        payload = b"account_id,name\nA-1,Alice\nA-2,Bob,extra\nA-3,Cid,more\n"
        harness = _Harness(metadata, {metadata.file_path: payload})

        result = harness.service.execute(metadata.file_id, metadata.file_path)

        assert result.success is True
        assert result.record_count == 1
        assert result.parsed_data.error_count() == 2

    def test_unknown_file_raises(self, harness: _Harness) -> None:
        with pytest.raises(NotFoundError):
            harness.service.execute("missing", "uploads/accounts.csv")

    def test_completed_file_cannot_be_reprocessed(self, harness: _Harness) -> None:
        harness.service.execute(harness.metadata.file_id, harness.metadata.file_path)
        with pytest.raises(BusinessRuleError) as exc_info:
            harness.service.execute(harness.metadata.file_id, harness.metadata.file_path)
        assert exc_info.value.rule == "file_status_transition"


class TestValidateFile:
    def test_valid_file_leaves_state_untouched(self, harness: _Harness) -> None:
        result = harness.service.validate_file(harness.metadata.file_id, harness.metadata.file_path)

        assert result.valid is True
        assert harness.stored().processing_status == "pending"
        assert harness.repository.saved_statuses == []

    def test_missing_blob(self) -> None:
        metadata = _file()
        harness = _Harness(metadata, {})

        result = harness.service.validate_file(metadata.file_id, metadata.file_path)

        assert result.valid is False
        assert result.error.startswith("Failed to download file")
        assert harness.stored().processing_status == "pending"
