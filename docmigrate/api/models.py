"""Pydantic models for API requests and responses."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime

from ..models.migration import Credentials
from ..models.schema import CollectionMapping


class MigrationStatusEnum(str, Enum):
    IDLE = "idle"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    ERROR = "error"


class LogTypeEnum(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


# Request Models
class CredentialsIn(BaseModel):
    source_url: str = ""
    source_key: str = ""
    dest_endpoint: str = ""
    dest_project_id: str = ""
    dest_api_key: str = ""

    def to_credentials(self) -> Credentials:
        return Credentials(
            source_url=self.source_url,
            source_key=self.source_key,
            dest_endpoint=self.dest_endpoint,
            dest_project_id=self.dest_project_id,
            dest_api_key=self.dest_api_key,
        )


class CollectionMappingIn(BaseModel):
    source_table: str = ""
    dest_database_id: str = ""
    dest_collection_id: str = ""

    def to_mapping(self) -> CollectionMapping:
        return CollectionMapping(
            source_table=self.source_table,
            dest_database_id=self.dest_database_id,
            dest_collection_id=self.dest_collection_id,
        )


class MigrationStartRequest(BaseModel):
    credentials: CredentialsIn
    mappings: List[CollectionMappingIn] = Field(default_factory=list)


class SchemaAnalyzeRequest(BaseModel):
    credentials: CredentialsIn
    mapping: CollectionMappingIn


# Response Models
class LogEntryResponse(BaseModel):
    id: str
    timestamp: datetime
    message: str
    type: LogTypeEnum


class LogListResponse(BaseModel):
    entries: List[LogEntryResponse]
    total: int
    next_index: int


class ProgressResponse(BaseModel):
    current: int = 0
    total: int = 0
    collection: str = ""
    percentage: int = 0


class CollectionStatsResponse(BaseModel):
    total_records: int = 0
    migrated_records: int = 0
    failed_records: int = 0


class StatsResponse(BaseModel):
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    total_collections: int = 0
    total_migrated: int = 0
    total_failed: int = 0
    progress: Dict[str, CollectionStatsResponse] = Field(default_factory=dict)


class MigrationStatusResponse(BaseModel):
    id: Optional[str] = None
    status: MigrationStatusEnum = MigrationStatusEnum.IDLE
    progress: ProgressResponse = Field(default_factory=ProgressResponse)
    stats: StatsResponse = Field(default_factory=StatsResponse)
    error: Optional[str] = None
    log_count: int = 0


class InferredFieldResponse(BaseModel):
    name: str
    type: str
    nullable: bool
    max_length: Optional[int] = None


class SchemaAnalyzeResponse(BaseModel):
    source_table: str
    fields: List[InferredFieldResponse]
    created: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    skipped: List[str] = Field(default_factory=list)
