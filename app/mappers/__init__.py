"""
app/mappers package marker.
"""

from app.mappers.entity_normalizer import RecordNormalizer, normalize_header

__all__ = [
    "RecordNormalizer",
    "normalize_header",
]
