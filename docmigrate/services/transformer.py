"""Transformation engine for converting source rows into destination documents."""

import json
import logging
import math
import numbers
import uuid
from typing import Any, Callable, Dict, Iterable, Optional

from ..models.schema import (
    SYSTEM_FIELDS,
    AttributeType,
    DestinationAttribute,
)
from ..models.record import (
    SourceRecord,
    TransformedDocument,
)

logger = logging.getLogger(__name__)

# Marker for values that could not be coerced to the declared type
_UNCONVERTIBLE = object()


class RecordTransformer:
    """
    Engine for transforming source records to destination documents.

    Handles:
    - Removal of source system fields (id, created_at, updated_at)
    - Filtering to the attributes the destination collection declares
    - Per-type value coercion
    - Document id assignment
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        """
        Initialize the transformer.

        Args:
            id_factory: Callable producing new document ids for rows without one
        """
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._formatters = self._register_formatters()

    def _register_formatters(self) -> Dict[AttributeType, Callable[[Any], Any]]:
        """One coercion function per attribute type."""
        return {
            AttributeType.STRING: self._format_string,
            AttributeType.INTEGER: self._format_number,
            AttributeType.DOUBLE: self._format_number,
            AttributeType.BOOLEAN: self._format_boolean,
            AttributeType.OTHER: self._format_passthrough,
        }

    def transform(
        self,
        record: SourceRecord,
        attributes: Iterable[DestinationAttribute]
    ) -> TransformedDocument:
        """
        Transform one source record.

        Args:
            record: Source row as returned by the table API
            attributes: Live attribute list of the destination collection

        Returns:
            TransformedDocument with the document id and coerced data
        """
        by_key = {attr.key: attr for attr in attributes}
        data: Dict[str, Any] = {}

        for key, value in record.items():
            if key in SYSTEM_FIELDS or value is None:
                continue

            attribute = by_key.get(key)
            if attribute is None:
                continue

            formatted = self.format_value(value, attribute.type)
            if formatted is _UNCONVERTIBLE:
                logger.debug(f"Dropping field {key}: {value!r} is not a valid {attribute.type.value}")
                continue
            data[key] = formatted

        return TransformedDocument(
            document_id=self.document_id_for(record),
            data=data,
        )

    def document_id_for(self, record: SourceRecord) -> str:
        """Use the source id when there is one, else generate a new id."""
        record_id = record.get("id")
        if record_id is not None and str(record_id) != "":
            return str(record_id)
        return self._id_factory()

    def format_value(self, value: Any, attribute_type: AttributeType) -> Any:
        """Coerce a value to the given attribute type."""
        formatter = self._formatters.get(attribute_type, self._format_passthrough)
        return formatter(value)

    # Formatters

    def _format_string(self, value: Any) -> Any:
        if isinstance(value, (dict, list, tuple, bool)):
            return json.dumps(value, default=str)
        return str(value)

    def _format_number(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, numbers.Number):
            return value
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return _UNCONVERTIBLE
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                return _UNCONVERTIBLE
            if math.isnan(number) or math.isinf(number):
                return _UNCONVERTIBLE
            return number
        return _UNCONVERTIBLE

    def _format_boolean(self, value: Any) -> Any:
        return bool(value)

    def _format_passthrough(self, value: Any) -> Any:
        return value


_default_transformer = RecordTransformer()


def transform(
    record: SourceRecord,
    attributes: Iterable[DestinationAttribute]
) -> TransformedDocument:
    """Transform a record with the default transformer."""
    return _default_transformer.transform(record, attributes)
