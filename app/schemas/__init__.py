"""
app/schemas package marker.
"""

from app.schemas.metadata_catalog import CatalogField, CatalogRule, MetadataCatalogDocument
from app.schemas.quality_report import QualityReport, ValidationResultReport, WeakestDimension

__all__ = [
    "CatalogField",
    "CatalogRule",
    "MetadataCatalogDocument",
    "QualityReport",
    "ValidationResultReport",
    "WeakestDimension",
]
