"""
Health endpoint.

  GET /health -- Liveness probe (always returns 200 if process is alive)
"""

import time

from fastapi import APIRouter, Request

from ... import __version__
from ..models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def liveness(request: Request) -> HealthResponse:
    """Liveness probe -- returns 200 if the process is running."""
    state = request.app.state
    start_time = getattr(state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=__version__,
        models_registered=state.registry.count,
        providers_configured=sorted(state.provider_keys),
        runs_completed=state.metrics["runs_completed"],
        runs_failed=state.metrics["runs_failed"],
        uptime_seconds=round(time.time() - start_time, 1),
    )
