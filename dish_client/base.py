"""Source contracts for the dish transport.

The exporter core only depends on these protocols; the gRPC client in
``grpc_client`` is one implementation, test doubles are another.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import HistorySnapshot, StatusSnapshot


class DeviceError(Exception):
    """The dish could not be reached or answered with an unusable payload."""


class DeviceTimeout(DeviceError):
    """A dish call exceeded its deadline."""

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} timed out after {timeout_seconds:.1f}s")


@runtime_checkable
class HistorySource(Protocol):
    def get_history(self) -> HistorySnapshot:
        """Fetch the current history window. Raises DeviceError on failure."""
        ...


@runtime_checkable
class StatusSource(Protocol):
    def get_status(self) -> StatusSnapshot:
        """Fetch current status gauges. Raises DeviceError on failure."""
        ...


class DeviceClient(HistorySource, StatusSource, Protocol):
    """Both sources behind one connection."""

    def close(self) -> None:
        ...
