"""Record models for migration data."""

from dataclasses import dataclass, field
from typing import Any, Dict


# A source row exactly as the table API returned it
SourceRecord = Dict[str, Any]


@dataclass
class TransformedDocument:
    """A source record converted for the destination collection."""
    document_id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Body for the destination create-document request."""
        return {"documentId": self.document_id, "data": self.data}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "document_id": self.document_id,
            "data": self.data,
        }
