"""Migration orchestrator - coordinates the complete migration process."""

import logging
import threading
from datetime import datetime
from typing import List, Optional, Tuple

import requests

from .exceptions import (
    MigrationError,
    MigrationInProgressError,
    ValidationError,
)
from .models.migration import (
    CancellationToken,
    Credentials,
    MigrationRun,
    MigrationStatus,
)
from .models.record import SourceRecord, TransformedDocument
from .models.schema import AnalysisResult, CollectionMapping, InferredField
from .extractors.base import BaseExtractor
from .extractors.api_extractor import TableAPIExtractor
from .loaders.base import BaseLoader
from .loaders.api_loader import DocumentAPILoader
from .services.schema_analyzer import SchemaAnalyzer

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Orchestrates table-to-collection migrations.

    Handles:
    - Input validation
    - Optional schema analysis per mapping
    - Sequential record streaming, one mapping and one record at a time
    - Per-record and per-mapping failure isolation
    - Cooperative cancellation
    - Progress tracking and the operator event log

    All run state lives in the MigrationRun passed to run_migration();
    the orchestrator itself only remembers which run is active.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_timeout: Optional[float] = None,
        cache_schema: bool = False
    ):
        """
        Initialize the orchestrator.

        Args:
            session: Shared requests session for the source and destination APIs
            request_timeout: Per-request timeout in seconds
            cache_schema: Reuse each collection's schema for the whole run
        """
        self.session = session
        self.request_timeout = request_timeout
        self.cache_schema = cache_schema
        self._active_run: Optional[MigrationRun] = None
        self._lock = threading.Lock()

    def _create_extractor(self, credentials: Credentials) -> BaseExtractor:
        """Create the source reader for a run."""
        return TableAPIExtractor(credentials, session=self.session, timeout=self.request_timeout)

    def _create_loader(self, credentials: Credentials) -> BaseLoader:
        """Create the destination writer for a run."""
        return DocumentAPILoader(
            credentials,
            session=self.session,
            cache_schema=self.cache_schema,
            timeout=self.request_timeout,
        )

    @property
    def active_run(self) -> Optional[MigrationRun]:
        return self._active_run

    @staticmethod
    def validate(credentials: Credentials, mappings: List[CollectionMapping]) -> None:
        """
        Check that every credential and mapping field is filled in.

        Raises:
            ValidationError: If anything is missing
        """
        if credentials.missing_fields():
            raise ValidationError("All credentials are required")

        for mapping in mappings:
            if mapping.missing_fields():
                raise ValidationError("All collection fields are required")

    def run_migration(self, run: MigrationRun) -> MigrationRun:
        """
        Run the complete migration described by `run`.

        Args:
            run: Run context holding credentials, mappings and the observable state.
                A run already marked migrating by its owner keeps its logs and
                cancel request; any other run is reset first.

        Returns:
            The same run, in its terminal state

        Raises:
            ValidationError: If the credentials or mappings are incomplete
            MigrationInProgressError: If another run is still migrating
        """
        with self._lock:
            if self._active_run is not None and self._active_run.is_active:
                raise MigrationInProgressError("A migration is already in progress")
            self._active_run = run
            if run.status != MigrationStatus.MIGRATING:
                run.reset()
            run.status = MigrationStatus.MIGRATING

        token = run.cancel_token
        run.stats.started_at = datetime.utcnow()

        try:
            self.validate(run.credentials, run.mappings)
            self._migrate_mappings(run, token)

        except ValidationError as e:
            self._fail(run, f"Migration process failed: {e}", str(e))
            raise

        except Exception as e:
            logger.exception("Unexpected error during migration")
            self._fail(run, f"Migration process failed: {e}", str(e))

        finally:
            run.stats.completed_at = datetime.utcnow()

        return run

    def _fail(self, run: MigrationRun, log_message: str, error: str) -> None:
        run.logs.error(log_message)
        run.error = error
        run.status = MigrationStatus.ERROR

    def _migrate_mappings(self, run: MigrationRun, token: CancellationToken) -> None:
        """Process every mapping in order."""
        extractor = self._create_extractor(run.credentials)
        loader = self._create_loader(run.credentials)

        for mapping in run.mappings:
            if token.cancelled:
                run.logs.info("Migration canceled.")
                run.status = MigrationStatus.IDLE
                return

            try:
                self._migrate_mapping(run, mapping, extractor, loader, token)
            except Exception as e:
                if not isinstance(e, MigrationError):
                    logger.exception(f"Unexpected error migrating {mapping.source_table}")
                run.logs.error(f"Migration failed for {mapping.source_table}: {e}")

        if token.cancelled:
            run.logs.info("Migration canceled.")
            run.status = MigrationStatus.IDLE
            return

        run.status = MigrationStatus.COMPLETED
        logger.info(
            f"Migration completed: {run.stats.total_migrated} migrated, "
            f"{run.stats.total_failed} failed"
        )

    def _migrate_mapping(
        self,
        run: MigrationRun,
        mapping: CollectionMapping,
        extractor: BaseExtractor,
        loader: BaseLoader,
        token: CancellationToken
    ) -> None:
        """Fetch one table and write its records to the mapped collection."""
        table = mapping.source_table
        records = extractor.fetch_all(table)
        total = len(records)

        run.progress.reset(total=total, collection=table)
        stats = run.stats.for_collection(table)
        stats.total_records += total
        run.logs.info(f"Found {total} records in {table}")

        for i, record in enumerate(records):
            if token.cancelled:
                break

            try:
                loader.write_one(mapping.dest_database_id, mapping.dest_collection_id, record)
            except Exception as e:
                stats.failed_records += 1
                if isinstance(e, MigrationError):
                    logger.debug(f"Record {i + 1}/{total} of {table} failed: {e}")
                else:
                    logger.exception(f"Unexpected error writing record {i + 1}/{total} of {table}")
                run.logs.error(f"✗ Failed to migrate record {i + 1}/{total}")
                continue

            stats.migrated_records += 1
            run.progress.advance(i + 1)
            run.logs.success(f"✓ Migrated record {i + 1}/{total}")

        run.logs.success(f"Completed migration for {table}")

    def analyze_schema(
        self,
        credentials: Credentials,
        mapping: CollectionMapping,
        event_log=None
    ) -> AnalysisResult:
        """
        Sample a mapping's source table and create the destination attributes.

        Raises:
            ValidationError: If the credentials or mapping are incomplete
            SourceFetchError: If the source table could not be read
        """
        self.validate(credentials, [mapping])
        analyzer = SchemaAnalyzer(
            self._create_extractor(credentials),
            self._create_loader(credentials),
            event_log=event_log,
        )
        return analyzer.run(
            mapping.source_table,
            mapping.dest_database_id,
            mapping.dest_collection_id,
        )

    def infer_schema(self, credentials: Credentials, mapping: CollectionMapping) -> List[InferredField]:
        """Infer a mapping's fields without creating anything in the destination."""
        self.validate(credentials, [mapping])
        analyzer = SchemaAnalyzer(
            self._create_extractor(credentials),
            self._create_loader(credentials),
        )
        return analyzer.analyze(mapping.source_table)

    def preview_record(
        self,
        credentials: Credentials,
        mapping: CollectionMapping
    ) -> Tuple[Optional[SourceRecord], Optional[TransformedDocument]]:
        """
        Transform the first record of a mapping's table without writing it.

        Returns:
            (sample, document), both None for an empty table
        """
        self.validate(credentials, [mapping])
        extractor = self._create_extractor(credentials)
        loader = self._create_loader(credentials)

        sample = extractor.sample(mapping.source_table)
        if sample is None:
            return None, None

        attributes = loader.get_schema(mapping.dest_database_id, mapping.dest_collection_id)
        return sample, loader.transformer.transform(sample, attributes)

    def cancel(self) -> bool:
        """Request cancellation of the active run, if any."""
        run = self._active_run
        if run is None or not run.is_active:
            return False
        run.request_cancel()
        return True
