"""
Repository-layer exceptions for persistence and storage adapters.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Raised when a database operation fails; wraps the SQLAlchemy error."""


class StorageError(Exception):
    """Raised when reading, writing, or signing a stored file fails."""
