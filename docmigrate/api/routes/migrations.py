"""Migration start/cancel/status endpoints."""

from fastapi import APIRouter, HTTPException, BackgroundTasks

from ..models import (
    LogEntryResponse,
    LogListResponse,
    MigrationStartRequest,
    MigrationStatusResponse,
)
from ..storage import migration_session
from ...exceptions import MigrationInProgressError, ValidationError
from ...models.migration import MigrationRun

router = APIRouter()


def _status_response(run: MigrationRun) -> MigrationStatusResponse:
    return MigrationStatusResponse(**run.to_dict())


@router.post("/start", response_model=MigrationStatusResponse)
async def start_migration(request: MigrationStartRequest, background_tasks: BackgroundTasks):
    """Start a migration run in the background."""
    try:
        run = migration_session.start(
            request.credentials.to_credentials(),
            [m.to_mapping() for m in request.mappings],
        )
    except MigrationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(run_migration_task, run)
    return _status_response(run)


@router.post("/cancel")
async def cancel_migration():
    """Ask the current run to stop after the record in flight."""
    if not migration_session.cancel():
        raise HTTPException(status_code=400, detail="No migration in progress")
    return {"status": "canceling"}


@router.get("/status", response_model=MigrationStatusResponse)
async def get_status():
    """Get status, progress and statistics of the current run."""
    run = migration_session.current_run
    if run is None:
        return MigrationStatusResponse()
    return _status_response(run)


@router.get("/logs", response_model=LogListResponse)
async def get_logs(since: int = 0):
    """Get log entries of the current run, starting at index `since`."""
    run = migration_session.current_run
    if run is None:
        raise HTTPException(status_code=404, detail="No migration has been started")

    entries = run.logs.since(since)
    return LogListResponse(
        entries=[LogEntryResponse(**e.to_dict()) for e in entries],
        total=len(run.logs),
        next_index=max(since, 0) + len(entries),
    )


def run_migration_task(run: MigrationRun):
    """Background task executing a started run (runs in the worker threadpool)."""
    migration_session.execute(run)
