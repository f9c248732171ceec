"""Append-only event log consumed by the operator surfaces."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import datetime
import logging
import uuid

logger = logging.getLogger(__name__)


class LogType(str, Enum):
    """Severity of a log entry as shown to the operator."""
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    """A single operator-visible event."""
    message: str
    type: LogType = LogType.INFO
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "type": self.type.value,
        }


LogListener = Callable[[LogEntry], None]


class EventLog:
    """
    Ordered, append-only store of LogEntry objects.

    Entries are never mutated or removed once added; clear() is only
    used when a new run starts. Listeners are called synchronously for
    each new entry, in registration order.
    """

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._listeners: List[LogListener] = []

    def add(self, message: str, type: LogType = LogType.INFO) -> LogEntry:
        """Append a new entry and notify listeners."""
        entry = LogEntry(message=message, type=type)
        self._entries.append(entry)

        if type == LogType.ERROR:
            logger.error(message)
        else:
            logger.info(message)

        for listener in list(self._listeners):
            listener(entry)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.add(message, LogType.INFO)

    def success(self, message: str) -> LogEntry:
        return self.add(message, LogType.SUCCESS)

    def error(self, message: str) -> LogEntry:
        return self.add(message, LogType.ERROR)

    def subscribe(self, listener: LogListener) -> None:
        """Register a callback for new entries."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: LogListener) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self) -> None:
        """Drop all entries (listeners are kept)."""
        self._entries = []

    @property
    def entries(self) -> List[LogEntry]:
        """Snapshot of all entries in insertion order."""
        return list(self._entries)

    def since(self, index: int = 0) -> List[LogEntry]:
        """Entries added after the first `index` entries."""
        return self._entries[max(index, 0):]

    def count(self, type: Optional[LogType] = None) -> int:
        """Number of entries, optionally of a single type."""
        if type is None:
            return len(self._entries)
        return sum(1 for e in self._entries if e.type == type)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self.entries)
