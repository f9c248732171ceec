"""Schema models for destination attributes and table-to-collection mappings."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum


# Source-side bookkeeping columns that never become destination attributes
SYSTEM_FIELDS = ("id", "created_at", "updated_at")


class AttributeType(str, Enum):
    """Destination attribute types the engine knows how to produce."""
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    OTHER = "other"  # Anything else the destination reports (email, datetime, ...)

    @classmethod
    def parse(cls, value: Optional[str]) -> "AttributeType":
        """Parse a destination type name, falling back to OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass
class DestinationAttribute:
    """An attribute of a destination collection, as reported by the live schema."""
    key: str
    type: AttributeType
    required: bool = False
    size: Optional[int] = None
    raw_type: str = ""  # Type name exactly as the destination returned it

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "key": self.key,
            "type": self.raw_type or self.type.value,
            "required": self.required,
        }
        if self.size:
            result["size"] = self.size
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DestinationAttribute":
        """Create from a destination API attribute payload."""
        raw_type = data.get("type") or ""
        return cls(
            key=data.get("key", ""),
            type=AttributeType.parse(raw_type),
            required=bool(data.get("required", False)),
            size=data.get("size"),
            raw_type=raw_type,
        )


@dataclass
class InferredField:
    """A field proposed by sampling one source record."""
    name: str
    type: AttributeType
    nullable: bool = False
    max_length: Optional[int] = None

    @property
    def is_system_field(self) -> bool:
        return self.name in SYSTEM_FIELDS

    def to_attribute_body(self) -> Dict[str, Any]:
        """Build the attribute-creation request body for this field."""
        body: Dict[str, Any] = {
            "key": self.name,
            "required": not self.nullable,
        }
        if self.max_length:
            body["size"] = self.max_length
        if self.type == AttributeType.STRING:
            body["size"] = self.max_length or 255
        return body

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "name": self.name,
            "type": self.type.value,
            "nullable": self.nullable,
        }
        if self.max_length is not None:
            result["max_length"] = self.max_length
        return result


@dataclass
class CollectionMapping:
    """One source table to destination collection pairing."""
    source_table: str
    dest_database_id: str
    dest_collection_id: str

    @property
    def key(self) -> str:
        """Stable identifier used to track per-mapping state."""
        return f"{self.source_table}:{self.dest_database_id}/{self.dest_collection_id}"

    def missing_fields(self) -> List[str]:
        """Names of the fields that are empty."""
        return [
            name for name, value in (
                ("source_table", self.source_table),
                ("dest_database_id", self.dest_database_id),
                ("dest_collection_id", self.dest_collection_id),
            )
            if not value
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_table": self.source_table,
            "dest_database_id": self.dest_database_id,
            "dest_collection_id": self.dest_collection_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionMapping":
        """Create from dictionary representation.

        Accepts both snake_case keys and the camelCase Supabase/Appwrite
        names (supabaseTable, appwriteDatabaseId, appwriteCollectionId).
        """
        return cls(
            source_table=data.get("source_table") or data.get("supabaseTable") or "",
            dest_database_id=data.get("dest_database_id") or data.get("appwriteDatabaseId") or "",
            dest_collection_id=data.get("dest_collection_id") or data.get("appwriteCollectionId") or "",
        )


@dataclass
class AnalysisResult:
    """Outcome of analyzing one source table and creating its attributes."""
    source_table: str
    fields: List[InferredField] = field(default_factory=list)
    created: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # key -> error message
    skipped: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every attempted attribute was created."""
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_table": self.source_table,
            "fields": [f.to_dict() for f in self.fields],
            "created": self.created,
            "failed": self.failed,
            "skipped": self.skipped,
        }
