"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import json
import os
import threading
import uuid

from .events import EventLog
from .schema import CollectionMapping


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    IDLE = "idle"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    ERROR = "error"


# Credential field -> environment variable used when the config omits it
CREDENTIAL_ENV_VARS = {
    "source_url": "DOCMIGRATE_SOURCE_URL",
    "source_key": "DOCMIGRATE_SOURCE_KEY",
    "dest_endpoint": "DOCMIGRATE_DEST_ENDPOINT",
    "dest_project_id": "DOCMIGRATE_DEST_PROJECT_ID",
    "dest_api_key": "DOCMIGRATE_DEST_API_KEY",
}

# Alternate config keys accepted for each credential field
CREDENTIAL_ALIASES = {
    "source_url": "supabaseUrl",
    "source_key": "supabaseKey",
    "dest_endpoint": "appwriteEndpoint",
    "dest_project_id": "appwriteProjectId",
    "dest_api_key": "appwriteApiKey",
}


@dataclass(frozen=True)
class Credentials:
    """Connection details for the source table API and the destination document API."""
    source_url: str = ""
    source_key: str = ""
    dest_endpoint: str = ""
    dest_project_id: str = ""
    dest_api_key: str = ""

    def missing_fields(self) -> List[str]:
        """Names of the fields that are empty."""
        return [name for name in CREDENTIAL_ENV_VARS if not getattr(self, name)]

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {name: getattr(self, name) for name in CREDENTIAL_ENV_VARS}
        if mask_secrets:
            for name in ("source_key", "dest_api_key"):
                if result[name]:
                    result[name] = "***"
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credentials":
        """Create from dictionary representation, falling back to the environment."""
        values = {}
        for name, env_var in CREDENTIAL_ENV_VARS.items():
            values[name] = (
                data.get(name)
                or data.get(CREDENTIAL_ALIASES[name])
                or os.environ.get(env_var, "")
            )
        return cls(**values)

    @classmethod
    def from_env(cls) -> "Credentials":
        """Create entirely from environment variables."""
        return cls.from_dict({})


class CancellationToken:
    """Cooperative cancellation flag shared between a run and its controller."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class MigrationProgress:
    """Record-level progress within the mapping currently being migrated."""
    current: int = 0
    total: int = 0
    collection: str = ""

    def reset(self, total: int = 0, collection: str = "") -> None:
        self.current = 0
        self.total = total
        self.collection = collection

    def advance(self, current: int) -> None:
        """Move forward; `current` never decreases within a mapping."""
        self.current = max(self.current, current)

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return round(self.current / self.total * 100)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "current": self.current,
            "total": self.total,
            "collection": self.collection,
            "percentage": self.percentage,
        }


@dataclass
class CollectionStats:
    """Per-table record counts for a run."""
    total_records: int = 0
    migrated_records: int = 0
    failed_records: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total_records": self.total_records,
            "migrated_records": self.migrated_records,
            "failed_records": self.failed_records,
        }


@dataclass
class MigrationStats:
    """Aggregate statistics for a run."""
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_collections: int = 0
    progress: Dict[str, CollectionStats] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def total_migrated(self) -> int:
        return sum(s.migrated_records for s in self.progress.values())

    @property
    def total_failed(self) -> int:
        return sum(s.failed_records for s in self.progress.values())

    def for_collection(self, name: str) -> CollectionStats:
        """Get (creating if needed) the stats for a source table."""
        if name not in self.progress:
            self.progress[name] = CollectionStats()
        return self.progress[name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "total_collections": self.total_collections,
            "total_migrated": self.total_migrated,
            "total_failed": self.total_failed,
            "progress": {k: v.to_dict() for k, v in self.progress.items()},
        }


@dataclass
class MigrationRun:
    """
    Everything one migration run owns.

    Created by the caller, handed to MigrationOrchestrator.run_migration()
    and observed (read-only) by whatever renders progress.
    """
    credentials: Credentials
    mappings: List[CollectionMapping] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: MigrationStatus = MigrationStatus.IDLE
    logs: EventLog = field(default_factory=EventLog)
    progress: MigrationProgress = field(default_factory=MigrationProgress)
    stats: MigrationStats = field(default_factory=MigrationStats)
    cancel_token: CancellationToken = field(default_factory=CancellationToken)
    error: Optional[str] = None

    def reset(self) -> None:
        """Clear logs, progress and stats before a (re)start."""
        self.logs.clear()
        self.progress.reset()
        self.stats = MigrationStats(total_collections=len(self.mappings))
        self.cancel_token.reset()
        self.error = None

    def request_cancel(self) -> None:
        """Ask the run to stop after the record currently in flight."""
        self.cancel_token.cancel()
        self.logs.info("Canceling migration... Will complete current record.")

    @property
    def is_active(self) -> bool:
        return self.status == MigrationStatus.MIGRATING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "status": self.status.value,
            "mappings": [m.to_dict() for m in self.mappings],
            "progress": self.progress.to_dict(),
            "stats": self.stats.to_dict(),
            "error": self.error,
            "log_count": len(self.logs),
        }


@dataclass
class MigrationConfig:
    """Configuration for a migration."""
    credentials: Credentials = field(default_factory=Credentials)
    mappings: List[CollectionMapping] = field(default_factory=list)
    name: str = ""

    # Execution options
    request_timeout: Optional[float] = None  # Seconds; None waits forever
    cache_schema: bool = False  # Reuse each collection's schema for the whole run

    def create_run(self) -> MigrationRun:
        """Build a fresh run context from this configuration."""
        return MigrationRun(credentials=self.credentials, mappings=list(self.mappings))

    def get_mapping(self, source_table: str) -> Optional[CollectionMapping]:
        """Find the first mapping for a source table."""
        for mapping in self.mappings:
            if mapping.source_table == source_table:
                return mapping
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "credentials": self.credentials.to_dict(),
            "mappings": [m.to_dict() for m in self.mappings],
            "request_timeout": self.request_timeout,
            "cache_schema": self.cache_schema,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        mappings_data = data.get("mappings")
        if mappings_data is None:
            mappings_data = data.get("collections", [])

        return cls(
            credentials=Credentials.from_dict(data.get("credentials", {})),
            mappings=[CollectionMapping.from_dict(m) for m in mappings_data],
            name=data.get("name", ""),
            request_timeout=data.get("request_timeout"),
            cache_schema=data.get("cache_schema", False),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "MigrationConfig":
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
