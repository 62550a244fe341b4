"""FastAPI application serving the exporter endpoints.

The app owns nothing global: registry, accumulator and poller are built
by the caller and attached to ``app.state``. When a poller is given, the
app lifespan starts it on startup and stops it on shutdown.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import CollectorRegistry

from . import __version__
from .accumulator import Accumulator
from .endpoints import health_router, metrics_router
from .poller import HistoryPoller

logger = logging.getLogger(__name__)


def create_app(
    registry: CollectorRegistry,
    accumulator: Accumulator,
    poller: Optional[HistoryPoller] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if poller is not None:
            poller.start()
        try:
            yield
        finally:
            if poller is not None:
                logger.info("[EXPORTER] shutting down, stopping poller")
                poller.stop()

    app = FastAPI(title="Starlink Exporter", version=__version__, lifespan=lifespan)
    app.state.registry = registry
    app.state.accumulator = accumulator
    app.state.poller = poller
    app.state.started_at = time.time()

    app.include_router(metrics_router)
    app.include_router(health_router)
    return app
