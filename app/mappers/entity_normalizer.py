"""
app/mappers/entity_normalizer.py

Turns parsed tabular records into entities keyed by a driving field.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from app.domain.attributes import is_blank
from app.domain.entity import Entity
from app.domain.errors import DomainValidationError, DuplicateError
from app.domain.file_metadata import ParsedData
from app.domain.interfaces import MetadataRepository

logger = logging.getLogger(__name__)

IDENTIFIER_TOKENS: frozenset[str] = frozenset({"id", "key", "code", "number", "uuid"})

_TOKEN_PATTERN = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|\d+")


def normalize_header(header: str) -> str:
    """
    Normalize a column name for case- and punctuation-insensitive matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


def _header_tokens(header: str) -> list[str]:
    return [token.lower() for token in _TOKEN_PATTERN.findall(header)]


def _clean_value(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    if isinstance(value, tuple):
        return list(value)
    return value


class RecordNormalizer:
    """
    Default DataNormalizer: one entity per parsed record.
    """

    def __init__(
        self,
        *,
        entity_type: str = "record",
        driving_field_aliases: Sequence[str] = (),
        metadata_repository: MetadataRepository | None = None,
    ) -> None:
        self._entity_type = entity_type
        self._aliases = {normalize_header(alias) for alias in driving_field_aliases if alias.strip()}
        self._metadata_repository = metadata_repository

    def normalize(self, parsed_data: ParsedData, driving_field_name: str) -> list[Entity]:
        driving_header = self.resolve_driving_field(parsed_data, driving_field_name)
        source_file_id = (
            parsed_data.file_metadata.file_id if parsed_data.file_metadata is not None else None
        )

        entities: list[Entity] = []
        for row_number, record in enumerate(parsed_data.records, start=1):
            attributes = {str(key): _clean_value(value) for key, value in record.items()}
            driving_value = attributes.get(driving_header)
            if is_blank(driving_value):
                raise DomainValidationError(
                    f"record {row_number} has no value for driving field '{driving_header}'",
                    field=driving_header,
                )
            entities.append(
                Entity(
                    driving_field_value=str(driving_value).strip(),
                    entity_type=self._entity_type,
                    attributes=attributes,
                    source_file_id=source_file_id,
                )
            )

        logger.debug(
            "Normalized %s records on driving field %s.",
            len(entities),
            driving_header,
        )
        return entities

    def validate_normalization(self, entities: Sequence[Entity]) -> None:
        seen: set[str] = set()
        for entity in entities:
            if entity.driving_field_value in seen:
                raise DuplicateError(
                    entity.entity_type,
                    "driving_field_value",
                    entity.driving_field_value,
                )
            seen.add(entity.driving_field_value)

        required_fields = self._required_fields()
        if not required_fields:
            return
        for entity in entities:
            if entity.is_complete(required_fields):
                continue
            missing = sorted(
                name for name in required_fields if entity.attributes.get(name) is None
            )
            raise DomainValidationError(
                f"entity {entity.driving_field_value} is missing required fields: "
                f"{', '.join(missing)}",
                field=missing[0],
            )

    def resolve_driving_field(self, parsed_data: ParsedData, driving_field_name: str) -> str:
        """
        Return the parsed header matching ``driving_field_name``, ignoring case
        and punctuation.
        """

        target = normalize_header(driving_field_name)
        for header in self._headers(parsed_data):
            if normalize_header(header) == target:
                return header
        raise DomainValidationError(
            f"driving field '{driving_field_name}' not found in parsed headers",
            field="driving_field_name",
        )

    def detect_driving_field(self, parsed_data: ParsedData) -> str:
        """
        Pick the header whose values are present and unique on every record.

        Among candidates, configured aliases rank first, then identifier-like
        names (``id``, ``*_id``, ``*Code``...), then header order.
        """

        if not parsed_data.records:
            raise DomainValidationError(
                "cannot detect driving field without records",
                field="driving_field_name",
            )

        candidates: list[tuple[int, int, str]] = []
        for position, header in enumerate(self._headers(parsed_data)):
            values = [record.get(header) for record in parsed_data.records]
            if any(is_blank(value) for value in values):
                continue
            normalized_values = [str(value).strip() for value in values]
            if len(set(normalized_values)) != len(normalized_values):
                continue
            candidates.append((self._rank(header), position, header))

        if not candidates:
            raise DomainValidationError(
                "no column has unique, non-empty values on every record",
                field="driving_field_name",
            )
        candidates.sort()
        return candidates[0][2]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _rank(self, header: str) -> int:
        if normalize_header(header) in self._aliases:
            return 0
        tokens = _header_tokens(header)
        if tokens and tokens[-1] in IDENTIFIER_TOKENS:
            return 1
        return 2

    @staticmethod
    def _headers(parsed_data: ParsedData) -> list[str]:
        if parsed_data.headers:
            return list(parsed_data.headers)
        headers: list[str] = []
        for record in parsed_data.records:
            for key in record:
                if key not in headers:
                    headers.append(key)
        return headers

    def _required_fields(self) -> list[str]:
        if self._metadata_repository is None:
            return []
        return [
            item.field_name
            for item in self._metadata_repository.get_all_field_metadata()
            if item.is_required and item.is_active
        ]
