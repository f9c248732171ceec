"""Loader for schema-oriented document APIs (e.g. Appwrite)."""

import logging
import requests
from typing import Any, Dict, List, Optional

from .base import BaseLoader
from ..exceptions import (
    AttributeCreateError,
    DocumentWriteError,
    SchemaFetchError,
)
from ..models.migration import Credentials
from ..models.record import TransformedDocument
from ..models.schema import DestinationAttribute, InferredField
from ..services.transformer import RecordTransformer

logger = logging.getLogger(__name__)


class DocumentAPILoader(BaseLoader):
    """
    Loader for the destination document REST API.

    Endpoints (relative to dest_endpoint):
    - GET  /databases/{db}/collections/{coll}                    collection schema
    - POST /databases/{db}/collections/{coll}/attributes/{type}  create attribute
    - POST /databases/{db}/collections/{coll}/documents          create document
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        transformer: Optional[RecordTransformer] = None,
        cache_schema: bool = False,
        timeout: Optional[float] = None
    ):
        """
        Initialize the document API loader.

        Args:
            credentials: Run credentials (dest_* fields are used)
            session: Custom requests session
            transformer: Record transformer
            cache_schema: Reuse each collection's schema instead of re-fetching per record
            timeout: Per-request timeout in seconds, None to wait indefinitely
        """
        super().__init__(transformer, cache_schema)
        self.credentials = credentials
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.credentials.dest_endpoint.rstrip("/")

    def _get_headers(self) -> Dict[str, str]:
        """Get authentication headers."""
        return {
            "X-Appwrite-Project": self.credentials.dest_project_id,
            "X-Appwrite-Key": self.credentials.dest_api_key,
            "Content-Type": "application/json",
        }

    def _collection_url(self, database_id: str, collection_id: str) -> str:
        return f"{self.base_url}/databases/{database_id}/collections/{collection_id}"

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract the API's error message, falling back to the HTTP reason."""
        try:
            error_data = response.json()
        except ValueError:
            return response.reason or f"HTTP {response.status_code}"
        if isinstance(error_data, dict) and error_data.get("message"):
            return error_data["message"]
        return response.reason or f"HTTP {response.status_code}"

    def get_collection_attributes(
        self,
        database_id: str,
        collection_id: str
    ) -> List[DestinationAttribute]:
        """Fetch the live attribute list of a collection."""
        url = self._collection_url(database_id, collection_id)
        logger.debug(f"GET {url}")

        try:
            response = self._session.get(url, headers=self._get_headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SchemaFetchError(
                f"Failed to get collection schema: {e}",
                collection_id=collection_id,
            ) from e

        if not response.ok:
            raise SchemaFetchError(
                f"Failed to get collection schema: {self._error_message(response)}",
                collection_id=collection_id,
            )

        try:
            collection = response.json() or {}
        except ValueError as e:
            raise SchemaFetchError(
                "Failed to get collection schema: invalid JSON response",
                collection_id=collection_id,
            ) from e

        attributes = (collection.get("attributes") or []) if isinstance(collection, dict) else None
        if not isinstance(attributes, list):
            raise SchemaFetchError(
                "Failed to get collection schema: unexpected response shape",
                collection_id=collection_id,
            )

        return [
            DestinationAttribute.from_dict(attr)
            for attr in attributes
            if isinstance(attr, dict)
        ]

    def create_attribute(
        self,
        database_id: str,
        collection_id: str,
        field: InferredField
    ) -> None:
        """Create one attribute; the route is selected by the attribute type."""
        url = f"{self._collection_url(database_id, collection_id)}/attributes/{field.type.value}"
        body = field.to_attribute_body()
        logger.debug(f"POST {url} {body}")

        try:
            response = self._session.post(url, json=body, headers=self._get_headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise AttributeCreateError(str(e), key=field.name) from e

        if not response.ok:
            raise AttributeCreateError(self._error_message(response), key=field.name)

    def create_document(
        self,
        database_id: str,
        collection_id: str,
        document: TransformedDocument
    ) -> str:
        """Create one document and return its id."""
        url = f"{self._collection_url(database_id, collection_id)}/documents"
        logger.debug(f"POST {url} documentId={document.document_id}")

        try:
            response = self._session.post(
                url,
                json=document.to_payload(),
                headers=self._get_headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise DocumentWriteError(str(e), document_id=document.document_id) from e

        if not response.ok:
            raise DocumentWriteError(self._error_message(response), document_id=document.document_id)

        try:
            response_data: Dict[str, Any] = response.json() or {}
        except ValueError:
            response_data = {}

        target_id = response_data.get("$id") if isinstance(response_data, dict) else None
        return str(target_id or document.document_id)

    def validate_connection(self) -> List[str]:
        """Validate the destination configuration."""
        errors = super().validate_connection()

        if not self.credentials.dest_endpoint:
            errors.append("Destination endpoint is required")
        if not self.credentials.dest_project_id:
            errors.append("Destination project id is required")
        if not self.credentials.dest_api_key:
            errors.append("Destination API key is required")

        return errors
