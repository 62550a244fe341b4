"""Transport to the Starlink dish."""

from .base import DeviceClient, DeviceError, DeviceTimeout, HistorySource, StatusSource
from .models import (
    DeviceInfo,
    GpsStats,
    HistorySnapshot,
    ObstructionStats,
    StatusSnapshot,
)

__all__ = [
    "DeviceClient",
    "DeviceError",
    "DeviceTimeout",
    "HistorySource",
    "StatusSource",
    "DeviceInfo",
    "GpsStats",
    "HistorySnapshot",
    "ObstructionStats",
    "StatusSnapshot",
]
