"""Base loader interface for destination document stores."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
import logging

from ..models.record import SourceRecord, TransformedDocument
from ..models.schema import DestinationAttribute, InferredField
from ..services.transformer import RecordTransformer

logger = logging.getLogger(__name__)


class BaseLoader(ABC):
    """
    Base class for destination writers.

    Loaders create attributes and documents in a destination collection.
    Each write re-reads the collection schema first unless schema caching
    is turned on, so a write always sees the attributes created by the
    latest schema analysis.
    """

    def __init__(
        self,
        transformer: Optional[RecordTransformer] = None,
        cache_schema: bool = False
    ):
        """
        Initialize the loader.

        Args:
            transformer: Record transformer (a default one is created if omitted)
            cache_schema: If True, fetch each collection's schema once per loader
        """
        self.transformer = transformer or RecordTransformer()
        self.cache_schema = cache_schema
        self._schema_cache: Dict[Tuple[str, str], List[DestinationAttribute]] = {}

    @abstractmethod
    def get_collection_attributes(
        self,
        database_id: str,
        collection_id: str
    ) -> List[DestinationAttribute]:
        """
        Fetch the live attribute list of a collection.

        Raises:
            SchemaFetchError: If the schema could not be read
        """
        pass

    @abstractmethod
    def create_attribute(
        self,
        database_id: str,
        collection_id: str,
        field: InferredField
    ) -> None:
        """
        Create one attribute in a collection.

        Raises:
            AttributeCreateError: If the destination rejected the attribute
        """
        pass

    @abstractmethod
    def create_document(
        self,
        database_id: str,
        collection_id: str,
        document: TransformedDocument
    ) -> str:
        """
        Create one document.

        Returns:
            The id the destination assigned to the document

        Raises:
            DocumentWriteError: If the destination rejected the document
        """
        pass

    def get_schema(self, database_id: str, collection_id: str) -> List[DestinationAttribute]:
        """Get the collection schema, from the cache when caching is on."""
        if not self.cache_schema:
            return self.get_collection_attributes(database_id, collection_id)

        key = (database_id, collection_id)
        if key not in self._schema_cache:
            self._schema_cache[key] = self.get_collection_attributes(database_id, collection_id)
        return self._schema_cache[key]

    def clear_schema_cache(self) -> None:
        self._schema_cache = {}

    def write_one(
        self,
        database_id: str,
        collection_id: str,
        record: SourceRecord
    ) -> str:
        """
        Transform a source record against the live schema and write it.

        Args:
            database_id: Destination database
            collection_id: Destination collection
            record: Source row

        Returns:
            Destination document id
        """
        attributes = self.get_schema(database_id, collection_id)
        document = self.transformer.transform(record, attributes)
        return self.create_document(database_id, collection_id, document)

    def validate_connection(self) -> List[str]:
        """Validate the destination configuration."""
        return []
