"""
Repository layer exports.
"""

from db.repositories.entity_repository import SQLEntityRepository
from db.repositories.errors import RepositoryError, StorageError
from db.repositories.file_repository import SQLFileRepository
from db.repositories.lineage_repository import SQLLineageRepository
from db.repositories.metadata_repository import SQLMetadataRepository
from db.repositories.quality_repository import SQLQualityRepository
from db.repositories.storage import LocalFileStorage

__all__ = [
    "SQLEntityRepository",
    "SQLMetadataRepository",
    "SQLQualityRepository",
    "SQLFileRepository",
    "SQLLineageRepository",
    "LocalFileStorage",
    "RepositoryError",
    "StorageError",
]
