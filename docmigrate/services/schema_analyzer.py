"""Infer a destination schema from sampled source data and create its attributes."""

import logging
from typing import TYPE_CHECKING, List, Optional

from .type_mapper import map_type
from ..exceptions import MigrationError
from ..models.events import EventLog
from ..models.record import SourceRecord
from ..models.schema import AnalysisResult, AttributeType, InferredField

if TYPE_CHECKING:
    from ..extractors.base import BaseExtractor
    from ..loaders.base import BaseLoader

logger = logging.getLogger(__name__)

# Minimum size requested for string attributes
DEFAULT_STRING_SIZE = 255


def utf16_length(value: str) -> int:
    """Length in UTF-16 code units, the unit the destination sizes strings in."""
    return len(value.encode("utf-16-le", "surrogatepass")) // 2


def infer_fields(sample: Optional[SourceRecord]) -> List[InferredField]:
    """Derive the field list from one sample record, in key order."""
    if not sample:
        return []

    fields = []
    for name, value in sample.items():
        field_type = map_type(value)
        max_length = None
        if isinstance(value, str):
            max_length = max(utf16_length(value), DEFAULT_STRING_SIZE)
        fields.append(InferredField(
            name=name,
            type=field_type,
            nullable=value is None,
            max_length=max_length,
        ))
    return fields


class SchemaAnalyzer:
    """
    Samples a source table and creates matching destination attributes.

    Attribute creation is best-effort: a failed attribute is logged and
    the remaining ones are still attempted, so a collection can end up
    with only part of the proposed schema.
    """

    def __init__(
        self,
        extractor: "BaseExtractor",
        loader: "BaseLoader",
        event_log: Optional[EventLog] = None
    ):
        """
        Initialize the analyzer.

        Args:
            extractor: Source reader used to fetch the sample
            loader: Destination writer used to create attributes
            event_log: Optional log that also receives per-attribute results
        """
        self.extractor = extractor
        self.loader = loader
        self.event_log = event_log

    def analyze(self, source_table: str) -> List[InferredField]:
        """
        Infer the fields of a table without touching the destination.

        Raises:
            SourceFetchError: If the table could not be read
        """
        sample = self.extractor.sample(source_table)
        fields = infer_fields(sample)
        logger.info(f"Detected {len(fields)} fields in {source_table}")
        return fields

    def analyze_and_create_schema(
        self,
        source_table: str,
        dest_database_id: str,
        dest_collection_id: str
    ) -> List[InferredField]:
        """Infer the table's fields and create them in the destination collection."""
        return self.run(source_table, dest_database_id, dest_collection_id).fields

    def run(
        self,
        source_table: str,
        dest_database_id: str,
        dest_collection_id: str
    ) -> AnalysisResult:
        """
        Infer the table's fields and create them, reporting per-attribute outcome.

        Raises:
            SourceFetchError: If the table could not be read
        """
        result = AnalysisResult(source_table=source_table)
        result.fields = self.analyze(source_table)

        for field in result.fields:
            if field.is_system_field:
                result.skipped.append(field.name)
                continue

            try:
                self.loader.create_attribute(dest_database_id, dest_collection_id, field)
                result.created.append(field.name)
                logger.info(f"Created attribute {field.name} ({field.type.value}) in {dest_collection_id}")
            except MigrationError as e:
                result.failed[field.name] = str(e)
                logger.error(f"Failed to create attribute {field.name}: {e}")
                if self.event_log is not None:
                    self.event_log.error(f"Failed to create attribute {field.name}: {e}")

        if self.event_log is not None:
            self.event_log.info(
                f"Schema for {source_table}: {len(result.created)} attributes created, "
                f"{len(result.failed)} failed"
            )

        return result


def describe_field(field: InferredField) -> str:
    """One-line operator summary of a field."""
    requirement = "optional" if field.nullable else "required"
    line = f"{field.name}: {field.type.value} ({requirement})"
    if field.max_length and field.type == AttributeType.STRING:
        line += f" [size {field.max_length}]"
    return line
