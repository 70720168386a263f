"""Health check endpoint for the Bandwatch API."""

import time

from fastapi import APIRouter, Depends

from .. import __version__
from ..services.scanner import ScanOrchestrator
from .dependencies import get_orchestrator
from .models.responses import HealthResponse, HealthStatus

router = APIRouter(tags=["health"])

# Track application start time for uptime calculation
_app_start_time = time.time()


def scanner_health_status(orchestrator: ScanOrchestrator) -> str:
    """'starting' before the first cycle, 'degraded' when no symbol has data."""
    if orchestrator.cycles_completed == 0:
        return "starting"
    if orchestrator.is_stale():
        return "degraded"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> HealthResponse:
    """Scanner liveness: cycles run, data present and cache statistics."""
    view = orchestrator.view()

    return HealthResponse(
        health=HealthStatus(
            status=scanner_health_status(orchestrator),
            cycles_completed=view.cycles_completed,
            has_data=view.has_data,
            success_count=view.success_count,
            fail_count=view.fail_count,
            last_fetch_time=(
                view.last_fetch_time.isoformat() if view.last_fetch_time else None
            ),
            next_fetch_time=(
                view.next_fetch_time.isoformat() if view.next_fetch_time else None
            ),
            cache=orchestrator.adapter.cache_stats(),
            uptime_seconds=time.time() - _app_start_time,
            version=__version__,
        )
    )
