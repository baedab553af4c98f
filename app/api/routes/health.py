"""Health check endpoint reporting the storage backend chosen at start-up."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_backend, get_settings_dep
from app.core.config import Settings
from app.core.database import check_db_connected
from app.repositories import Backend
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    request: Request,
    backend: Annotated[Backend, Depends(get_backend)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> HealthResponse:
    """
    Return service health, the active backend, and relational connectivity.
    Used by load balancers and monitoring.
    """
    database = None
    if backend.engine is not None:
        database = "connected" if check_db_connected(backend.engine) else "disconnected"
    return HealthResponse(
        environment=settings.APP_ENV,
        version=request.app.version,
        backend=backend.kind,
        database=database,
    )
