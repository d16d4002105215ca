"""
app/catalog package marker.
"""

from app.catalog.loader import (
    CatalogLoadError,
    MetadataCatalog,
    load_metadata_catalog,
    seed_metadata_repository,
)

__all__ = [
    "CatalogLoadError",
    "MetadataCatalog",
    "load_metadata_catalog",
    "seed_metadata_repository",
]
