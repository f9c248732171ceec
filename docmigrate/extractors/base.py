"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from ..models.record import SourceRecord

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for source readers.

    Extractors pull the rows of one source table and return them as
    plain dictionaries.
    """

    @abstractmethod
    def fetch_all(self, table: str) -> List[SourceRecord]:
        """
        Fetch every record of a table.

        Args:
            table: Source table name

        Returns:
            List of source records

        Raises:
            SourceFetchError: If the source could not be read
        """
        pass

    def sample(self, table: str) -> Optional[SourceRecord]:
        """
        Get the first record of a table, used as the structural sample.

        Returns:
            The first record, or None for an empty table
        """
        records = self.fetch_all(table)
        if not records:
            logger.info(f"Table {table} is empty, nothing to sample")
            return None
        return records[0]

    def validate_source(self) -> List[str]:
        """
        Validate the source configuration.

        Returns:
            List of validation error messages
        """
        return []
