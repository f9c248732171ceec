"""Data models for the migration engine."""

from .schema import (
    SYSTEM_FIELDS,
    AttributeType,
    DestinationAttribute,
    InferredField,
    CollectionMapping,
    AnalysisResult,
)
from .migration import (
    Credentials,
    CancellationToken,
    MigrationConfig,
    MigrationRun,
    MigrationProgress,
    MigrationStats,
    CollectionStats,
    MigrationStatus,
)
from .record import (
    SourceRecord,
    TransformedDocument,
)
from .events import (
    EventLog,
    LogEntry,
    LogType,
)

__all__ = [
    "SYSTEM_FIELDS",
    "AttributeType",
    "DestinationAttribute",
    "InferredField",
    "CollectionMapping",
    "AnalysisResult",
    "Credentials",
    "CancellationToken",
    "MigrationConfig",
    "MigrationRun",
    "MigrationProgress",
    "MigrationStats",
    "CollectionStats",
    "MigrationStatus",
    "SourceRecord",
    "TransformedDocument",
    "EventLog",
    "LogEntry",
    "LogType",
]
