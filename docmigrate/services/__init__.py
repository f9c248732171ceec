"""Service layer for the migration engine."""

from .type_mapper import map_type
from .transformer import RecordTransformer, transform
from .schema_analyzer import SchemaAnalyzer, infer_fields

__all__ = [
    "map_type",
    "RecordTransformer",
    "transform",
    "SchemaAnalyzer",
    "infer_fields",
]
