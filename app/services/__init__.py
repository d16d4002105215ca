"""
app/services package marker.
"""

from app.services.file_processing_service import (
    FileProcessingService,
    FileValidationResult,
    ProcessFileResult,
    build_file_processing_service,
)
from app.services.normalization_service import (
    MergeResult,
    NormalizationResult,
    NormalizationService,
    build_normalization_service,
)
from app.services.notifications import LoggingNotifier
from app.services.quality_scoring_service import (
    BatchScoreResult,
    QualityScoringResult,
    QualityScoringService,
    build_quality_scoring_service,
)

__all__ = [
    "BatchScoreResult",
    "FileProcessingService",
    "FileValidationResult",
    "LoggingNotifier",
    "MergeResult",
    "NormalizationResult",
    "NormalizationService",
    "ProcessFileResult",
    "QualityScoringResult",
    "QualityScoringService",
    "build_file_processing_service",
    "build_normalization_service",
    "build_quality_scoring_service",
]
