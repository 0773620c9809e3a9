"""
app/mappers package marker.
"""

from app.mappers.field_resolver import CANONICAL_FIELDS, DEFAULT_FIELD_ALIASES, FieldResolver
from app.mappers.record_normalizer import RecordNormalizer

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_FIELD_ALIASES",
    "FieldResolver",
    "RecordNormalizer",
]
