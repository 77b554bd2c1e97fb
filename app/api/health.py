"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from app.models.schemas import HealthResponse
from domains.file_ingest import ComponentState

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Inbound adapter is running
    """
    adapter = request.app.state.adapter
    settings = request.app.state.settings
    running = adapter.state is ComponentState.RUNNING
    root = adapter.config.root_directory

    return HealthResponse(
        status="healthy" if running else "degraded",
        timestamp=datetime.now(),
        adapter_state=adapter.state.value,
        watch_dir=str(root) if root else None,
        selector=adapter.config.selector.describe(),
        version=settings.api_version
    )
