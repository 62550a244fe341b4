"""Prometheus exporter for Starlink dish telemetry."""

__version__ = "0.1.0"

from .accumulator import (  # noqa: E402
    Accumulator,
    AccumulatorTotals,
    HistoryValidationError,
    UpdateResult,
)
from .circular import wraparound_indices  # noqa: E402
from .collector import DishCollector, build_collector  # noqa: E402
from .poller import HistoryPoller, PollerState  # noqa: E402

__all__ = [
    "__version__",
    "Accumulator",
    "AccumulatorTotals",
    "HistoryValidationError",
    "UpdateResult",
    "wraparound_indices",
    "DishCollector",
    "build_collector",
    "HistoryPoller",
    "PollerState",
]
