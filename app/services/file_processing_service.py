"""
app/services/file_processing_service.py

Service layer for the download -> validate -> parse workflow of one file.

Every failure after the file is marked processing is written back to the
file's metadata before returning, so the stored status always reflects the
last attempted outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.orm import Session

from app.config import get_file_processing_settings
from app.domain.errors import NotFoundError
from app.domain.file_metadata import FileMetadata, ParsedData
from app.domain.interfaces import FileParser, FileRepository, Storage
from app.logging_utils import log_event
from db.repositories.file_repository import SQLFileRepository
from db.repositories.storage import LocalFileStorage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class ProcessFileResult:
    file_id: str
    parsed_data: ParsedData | None = None
    record_count: int = 0
    success: bool = False
    error: str | None = None


@dataclass(frozen=True)
class FileValidationResult:
    file_id: str
    valid: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class FileProcessingService:
    """
    Tracks a file through processing and hands back its parsed data.
    """

    def __init__(
        self,
        *,
        file_repository: FileRepository,
        parsers: Sequence[FileParser],
        storage: Storage,
        max_logged_parse_errors: int = 20,
    ) -> None:
        self._file_repository = file_repository
        self._parsers = list(parsers)
        self._storage = storage
        self._max_logged_parse_errors = max_logged_parse_errors

    def execute(self, file_id: str, file_path: str) -> ProcessFileResult:
        """
        Process one file.

        Raises NotFoundError when the file metadata does not exist; errors
        while persisting the processing status propagate to the caller.
        Download, validation, and parse failures are returned as an
        unsuccessful result.
        """

        log_event(logger, logging.INFO, "file_processing_started", file_id=file_id, file_path=file_path)

        metadata = self._load_metadata(file_id)
        metadata.mark_processing()
        self._file_repository.save_file_metadata(metadata)

        parser = self._select_parser(metadata.file_format)
        if parser is None:
            return self._fail(
                metadata,
                f"No parser registered for format '{metadata.file_format}'.",
            )

        try:
            stream = self._storage.download(file_path)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_download_failed", exc=exc, file_path=file_path)
            return self._fail(metadata, f"Failed to download file: {exc}")

        try:
            parser.validate(stream)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_validation_failed", exc=exc, file_id=file_id)
            return self._fail(metadata, f"Validation failed: {exc}")
        finally:
            stream.close()

        # Validation consumes the stream; parsing needs a fresh one.
        try:
            stream = self._storage.download(file_path)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_reopen_failed", exc=exc, file_path=file_path)
            return self._fail(metadata, f"Failed to reopen file: {exc}")

        try:
            parsed_data = parser.parse(stream, metadata)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_parsing_failed", exc=exc, file_id=file_id)
            return self._fail(metadata, f"Parsing failed: {exc}")
        finally:
            stream.close()

        if parsed_data.has_errors():
            self._log_parse_errors(file_id, parsed_data)

        metadata.mark_completed(parsed_data.record_count)
        self._file_repository.save_file_metadata(metadata)

        log_event(
            logger,
            logging.INFO,
            "file_processing_completed",
            file_id=file_id,
            record_count=parsed_data.record_count,
        )
        return ProcessFileResult(
            file_id=file_id,
            parsed_data=parsed_data,
            record_count=parsed_data.record_count,
            success=True,
        )

    def validate_file(self, file_id: str, file_path: str) -> FileValidationResult:
        """
        Download and structurally validate a file without changing its state.
        """

        log_event(logger, logging.INFO, "file_validation_started", file_id=file_id, file_path=file_path)

        metadata = self._load_metadata(file_id)
        parser = self._select_parser(metadata.file_format)
        if parser is None:
            return FileValidationResult(
                file_id=file_id,
                valid=False,
                error=f"No parser registered for format '{metadata.file_format}'.",
            )

        try:
            stream = self._storage.download(file_path)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_download_failed", exc=exc, file_path=file_path)
            return FileValidationResult(
                file_id=file_id,
                valid=False,
                error=f"Failed to download file: {exc}",
            )

        try:
            parser.validate(stream)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "file_validation_failed", exc=exc, file_id=file_id)
            return FileValidationResult(file_id=file_id, valid=False, error=f"Validation failed: {exc}")
        finally:
            stream.close()

        log_event(logger, logging.INFO, "file_validation_passed", file_id=file_id)
        return FileValidationResult(file_id=file_id, valid=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_metadata(self, file_id: str) -> FileMetadata:
        metadata = self._file_repository.get_file_metadata(file_id)
        if metadata is None:
            log_event(logger, logging.ERROR, "file_metadata_missing", file_id=file_id)
            raise NotFoundError("file", file_id)
        return metadata

    def _select_parser(self, file_format: str) -> FileParser | None:
        for parser in self._parsers:
            if parser.supports_format(file_format):
                return parser
        return None

    def _fail(self, metadata: FileMetadata, message: str) -> ProcessFileResult:
        metadata.mark_failed(message)
        try:
            self._file_repository.save_file_metadata(metadata)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.ERROR,
                "file_failure_not_persisted",
                exc=exc,
                file_id=metadata.file_id,
                failure=message,
            )
        return ProcessFileResult(file_id=metadata.file_id, success=False, error=message)

    def _log_parse_errors(self, file_id: str, parsed_data: ParsedData) -> None:
        log_event(
            logger,
            logging.WARNING,
            "file_parsed_with_errors",
            file_id=file_id,
            error_count=parsed_data.error_count(),
        )
        for parse_error in parsed_data.errors[: self._max_logged_parse_errors]:
            log_event(
                logger,
                logging.WARNING,
                "file_row_parse_error",
                file_id=file_id,
                row=parse_error.row,
                column=parse_error.column,
                message=parse_error.message,
            )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_file_processing_service(
    session: Session,
    parsers: Sequence[FileParser],
    storage: Storage | None = None,
) -> FileProcessingService:
    """
    Wire the service to the SQL file repository and configured storage.
    """

    settings = get_file_processing_settings()
    return FileProcessingService(
        file_repository=SQLFileRepository(session),
        parsers=parsers,
        storage=storage
        or LocalFileStorage(settings.storage_dir, signing_key=settings.url_signing_key),
        max_logged_parse_errors=settings.max_logged_parse_errors,
    )
