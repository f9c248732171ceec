"""Schema analysis endpoints."""

from typing import Dict

from fastapi import APIRouter, HTTPException

from ..models import SchemaAnalyzeRequest, SchemaAnalyzeResponse
from ..storage import migration_session
from ...exceptions import SourceFetchError, ValidationError

router = APIRouter()


@router.post("/analyze", response_model=SchemaAnalyzeResponse)
def analyze_schema(request: SchemaAnalyzeRequest):
    """Sample the mapping's source table and create the destination attributes."""
    run = migration_session.current_run
    if run is not None and run.is_active:
        raise HTTPException(status_code=409, detail="Schema analysis is unavailable while migrating")

    try:
        result = migration_session.analyze(
            request.credentials.to_credentials(),
            request.mapping.to_mapping(),
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SourceFetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch source schema: {e}")

    return SchemaAnalyzeResponse(**result.to_dict())


@router.get("/ready")
async def get_schema_ready() -> Dict[str, bool]:
    """Per-mapping schema readiness."""
    return dict(migration_session.schema_ready)
