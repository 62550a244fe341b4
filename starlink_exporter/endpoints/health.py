"""Health and readiness endpoints."""

import time

from fastapi import APIRouter, HTTPException, Request

from .schemas import AccumulatorHealth, HealthResponse, PollerHealth

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    """Liveness probe with poller and accumulator bookkeeping.

    Always 200 while the process runs; dish failures show up in
    ``accumulator.last_error`` and ``poller.failures``.
    """
    state = request.app.state
    poller = state.poller
    return HealthResponse(
        status="ok",
        uptime_seconds=round(time.time() - state.started_at, 2),
        poller=PollerHealth(**poller.stats) if poller is not None else None,
        accumulator=AccumulatorHealth(**state.accumulator.stats()),
    )


@router.get("/ready")
def ready(request: Request):
    """Readiness probe: ready once the first history window was seen."""
    if not request.app.state.accumulator.initialized:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}
