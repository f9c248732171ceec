"""REST extractor for PostgREST-style table APIs (e.g. Supabase)."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .base import BaseExtractor
from ..exceptions import SourceFetchError
from ..models.migration import Credentials
from ..models.record import SourceRecord

logger = logging.getLogger(__name__)


class TableAPIExtractor(BaseExtractor):
    """
    Extractor for table-oriented REST APIs.

    Issues a single `GET {source_url}/rest/v1/{table}` per table. There is
    no pagination: whatever the first page contains is treated as the
    complete table for the run.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the table API extractor.

        Args:
            credentials: Run credentials (source_url and source_key are used)
            session: Custom requests session
            timeout: Per-request timeout in seconds, None to wait indefinitely
        """
        self.credentials = credentials
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        """Get the base URL for API requests."""
        return self.credentials.source_url.rstrip("/")

    def _get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers."""
        return {
            "apikey": self.credentials.source_key,
            "Authorization": f"Bearer {self.credentials.source_key}",
        }

    def _get_endpoint(self, table: str) -> str:
        """Get the API endpoint for a table."""
        return f"{self.REST_PATH}/{table}"

    def fetch_all(self, table: str) -> List[SourceRecord]:
        """Fetch all rows of a table in a single request."""
        url = f"{self.base_url}{self._get_endpoint(table)}"
        logger.debug(f"GET {url}")

        try:
            response = self._session.get(url, headers=self._get_auth_headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(f"Source API request failed: {e}", table=table) from e

        if not response.ok:
            raise SourceFetchError(
                f"Source API error: {response.reason}",
                table=table,
                status=f"{response.status_code} {response.reason}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceFetchError(f"Source API returned invalid JSON for {table}", table=table) from e

        records = self._parse_response(data, table)
        logger.info(f"Fetched {len(records)} records from {table}")
        return records

    def _parse_response(self, data: Any, table: str = "") -> List[SourceRecord]:
        """Normalize the response body into a list of records."""
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise SourceFetchError(
                f"Source API returned an unexpected body for {table}: {type(data).__name__}",
                table=table,
            )
        return [item for item in data if isinstance(item, dict)]

    def validate_source(self) -> List[str]:
        """Validate the API source configuration."""
        errors = super().validate_source()

        if not self.credentials.source_url:
            errors.append("Source URL is required")

        if not self.credentials.source_key:
            errors.append("Source API key is required")

        return errors
