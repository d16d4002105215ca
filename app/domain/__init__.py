"""
app/domain package marker.
"""

from app.domain.entity import Entity
from app.domain.errors import (
    BusinessRuleError,
    DomainError,
    DomainValidationError,
    DuplicateError,
    NotFoundError,
    ParsingError,
)
from app.domain.field_metadata import FieldMetadata, FieldType
from app.domain.file_metadata import FileFormat, FileMetadata, ParsedData, ParseError, ProcessingStatus
from app.domain.lineage import LineageRecord
from app.domain.notification import Notification, NotificationType
from app.domain.quality import (
    QualityContext,
    QualityLevel,
    QualityScore,
    QualityWeights,
    default_quality_weights,
)
from app.domain.validation import (
    RuleType,
    Severity,
    ValidationResult,
    ValidationRule,
    ValidationSummary,
)

__all__ = [
    "BusinessRuleError",
    "DomainError",
    "DomainValidationError",
    "DuplicateError",
    "Entity",
    "FieldMetadata",
    "FieldType",
    "FileFormat",
    "FileMetadata",
    "LineageRecord",
    "NotFoundError",
    "Notification",
    "NotificationType",
    "ParseError",
    "ParsedData",
    "ParsingError",
    "ProcessingStatus",
    "QualityContext",
    "QualityLevel",
    "QualityScore",
    "QualityWeights",
    "RuleType",
    "Severity",
    "ValidationResult",
    "ValidationRule",
    "ValidationSummary",
    "default_quality_weights",
]
