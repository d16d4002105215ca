"""
app/config.py

Environment-driven settings for normalization, scoring, file processing,
and lineage.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.errors import DomainError
from app.domain.notification import ALLOWED_NOTIFICATION_TYPES, NotificationType
from app.domain.quality import DIMENSION_ORDER, QualityWeights, default_quality_weights
from db.config import load_env_files

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str) -> tuple[str, ...]:
    """
    Read a comma-separated list, dropping blank items.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return ()
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class NormalizationSettings:
    """
    Runtime settings for record normalization.
    """

    entity_type: str = "record"
    driving_field_aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class QualityScoringSettings:
    """
    Runtime settings for quality scoring and review notifications.
    """

    weights: QualityWeights
    fresh_after_days: int = 30
    stale_after_days: int = 365
    review_recipients: tuple[str, ...] = ()
    review_notification_type: str = NotificationType.EMAIL


@dataclass(frozen=True)
class FileProcessingSettings:
    storage_dir: str = "data/uploads"
    max_logged_parse_errors: int = 20
    url_signing_key: str | None = None


@dataclass(frozen=True)
class LineageSettings:
    performed_by: str = "ingestion-pipeline"


def _resolve_weights() -> QualityWeights:
    """
    Apply QUALITY_WEIGHT_<DIMENSION> overrides on top of the defaults.

    An override set that does not sum to 100 is ignored with a warning.
    """

    defaults = default_quality_weights()
    values = {
        name: _get_float_env(f"QUALITY_WEIGHT_{name.upper()}", getattr(defaults, name))
        for name in DIMENSION_ORDER
    }
    try:
        weights = QualityWeights(**values)
        weights.validate()
    except DomainError as exc:
        logger.warning("Ignoring configured quality weights: %s", exc)
        return defaults
    return weights


@lru_cache(maxsize=1)
def get_normalization_settings() -> NormalizationSettings:
    """
    Return cached normalization settings from environment variables.
    """

    return NormalizationSettings(
        entity_type=_get_str_env("INGEST_ENTITY_TYPE", "record"),
        driving_field_aliases=_get_list_env("INGEST_DRIVING_FIELD_ALIASES"),
    )


@lru_cache(maxsize=1)
def get_quality_scoring_settings() -> QualityScoringSettings:
    """
    Return cached quality scoring settings from environment variables.
    """

    fresh_after_days = max(0, _get_int_env("QUALITY_FRESH_AFTER_DAYS", 30))
    stale_after_days = max(fresh_after_days + 1, _get_int_env("QUALITY_STALE_AFTER_DAYS", 365))
    notification_type = _get_str_env(
        "QUALITY_REVIEW_NOTIFICATION_TYPE", NotificationType.EMAIL
    ).lower()
    if notification_type not in ALLOWED_NOTIFICATION_TYPES:
        notification_type = NotificationType.EMAIL

    return QualityScoringSettings(
        weights=_resolve_weights(),
        fresh_after_days=fresh_after_days,
        stale_after_days=stale_after_days,
        review_recipients=_get_list_env("QUALITY_REVIEW_RECIPIENTS"),
        review_notification_type=notification_type,
    )


@lru_cache(maxsize=1)
def get_file_processing_settings() -> FileProcessingSettings:
    """
    Return cached file processing settings from environment variables.
    """

    return FileProcessingSettings(
        storage_dir=_get_str_env("INGEST_STORAGE_DIR", "data/uploads"),
        max_logged_parse_errors=max(0, _get_int_env("INGEST_MAX_LOGGED_PARSE_ERRORS", 20)),
        url_signing_key=_get_optional_str_env("INGEST_URL_SIGNING_KEY"),
    )


@lru_cache(maxsize=1)
def get_lineage_settings() -> LineageSettings:
    return LineageSettings(
        performed_by=_get_str_env("LINEAGE_PERFORMED_BY", "ingestion-pipeline"),
    )


def get_metadata_catalog_path() -> str:
    return _get_str_env("METADATA_CATALOG_PATH", "config/metadata_catalog.json")
