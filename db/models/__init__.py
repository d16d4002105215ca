"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.entity import EntityRecord
from db.models.field_metadata import FieldMetadataRecord, ValidationRuleRecord
from db.models.file_metadata import FileMetadataRecord
from db.models.lineage import LineageEntryRecord
from db.models.quality import QualityScoreRecord, ValidationResultRecord

__all__ = [
    "EntityRecord",
    "FieldMetadataRecord",
    "ValidationRuleRecord",
    "QualityScoreRecord",
    "ValidationResultRecord",
    "FileMetadataRecord",
    "LineageEntryRecord",
]
