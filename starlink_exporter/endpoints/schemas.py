from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class PollerHealth(BaseModel):
    state: str
    interval_seconds: float
    ticks: int
    failures: int
    last_success_at: Optional[float] = None


class AccumulatorHealth(BaseModel):
    initialized: bool
    last_sequence: int
    buffer_length: Optional[int] = None
    resets: int
    overruns: int
    samples_lost: int
    rejected: int
    last_error: Optional[str] = None
    last_error_at: Optional[float] = None


class HealthResponse(BaseModel):
    status: str
    uptime_seconds: float
    poller: Optional[PollerHealth] = None
    accumulator: AccumulatorHealth
