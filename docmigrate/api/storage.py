"""In-memory state for the operator's interactive session."""

import logging
from typing import Dict, List, Optional

from ..exceptions import MigrationError, MigrationInProgressError, ValidationError
from ..models.migration import Credentials, MigrationRun, MigrationStatus
from ..models.schema import AnalysisResult, CollectionMapping
from ..orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


class MigrationSession:
    """
    Holds the current run and per-mapping schema readiness.

    Nothing is persisted; a restart starts from an empty session.
    """

    def __init__(self, orchestrator: Optional[MigrationOrchestrator] = None):
        self.orchestrator = orchestrator or MigrationOrchestrator()
        self.current_run: Optional[MigrationRun] = None
        self.schema_ready: Dict[str, bool] = {}

    def start(self, credentials: Credentials, mappings: List[CollectionMapping]) -> MigrationRun:
        """
        Create a run and mark it migrating; execute() does the work.

        Raises:
            MigrationInProgressError: If the current run is still migrating
            ValidationError: If the input is incomplete (the run ends in error)
        """
        if self.current_run is not None and self.current_run.is_active:
            raise MigrationInProgressError("A migration is already in progress")

        run = MigrationRun(credentials=credentials, mappings=list(mappings))
        self.current_run = run

        try:
            self.orchestrator.validate(credentials, run.mappings)
        except ValidationError:
            # Records the failure on the run and re-raises
            self.orchestrator.run_migration(run)

        # run_migration keeps a staged run's state, including an early cancel
        run.reset()
        run.status = MigrationStatus.MIGRATING
        return run

    def execute(self, run: MigrationRun) -> None:
        """Run a started migration to completion (called from a background task)."""
        try:
            self.orchestrator.run_migration(run)
        except MigrationError as e:
            logger.error(f"Migration {run.id} failed: {e}")

    def cancel(self) -> bool:
        """Request cancellation of the current run."""
        run = self.current_run
        if run is None or not run.is_active:
            return False
        run.request_cancel()
        return True

    def analyze(self, credentials: Credentials, mapping: CollectionMapping) -> AnalysisResult:
        """Analyze one mapping's table and mark its schema as ready."""
        result = self.orchestrator.analyze_schema(credentials, mapping)
        self.schema_ready[mapping.key] = True
        return result

    def reset(self) -> None:
        self.current_run = None
        self.schema_ready = {}


migration_session = MigrationSession()
