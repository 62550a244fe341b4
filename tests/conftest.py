"""Shared fixtures for the exporter tests."""

from __future__ import annotations

import threading
from typing import Callable, Iterable, List, Optional, Union

import pytest
from prometheus_client import CollectorRegistry

from dish_client.base import DeviceError
from dish_client.models import (
    DeviceInfo,
    GpsStats,
    HistorySnapshot,
    ObstructionStats,
    StatusSnapshot,
)
from starlink_exporter.accumulator import Accumulator


def _history(
    sequence: int,
    length: int = 900,
    downlink: Optional[List[float]] = None,
    uplink: Optional[List[float]] = None,
    power: Optional[List[float]] = None,
    latency: Optional[List[float]] = None,
    drop: Optional[List[float]] = None,
) -> HistorySnapshot:
    def series(values: Optional[List[float]]) -> List[float]:
        return list(values) if values is not None else [0.0] * length

    return HistorySnapshot(
        sequence=sequence,
        downlink_throughput_bps=series(downlink),
        uplink_throughput_bps=series(uplink),
        power_in=series(power),
        pop_ping_latency_ms=series(latency),
        pop_ping_drop_rate=series(drop),
    )


class ScriptedHistorySource:
    """Returns (or raises) the scripted items in order, then repeats the last."""

    def __init__(self, items: Iterable[Union[HistorySnapshot, Exception]]):
        self._items = list(items)
        self._lock = threading.Lock()
        self.calls = 0

    def get_history(self) -> HistorySnapshot:
        with self._lock:
            item = self._items[min(self.calls, len(self._items) - 1)]
            self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


class StaticStatusSource:
    def __init__(self, status: Optional[StatusSnapshot] = None, error: Optional[Exception] = None):
        self.status = status
        self.error = error
        self.calls = 0

    def get_status(self) -> StatusSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.status


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def history_factory() -> Callable[..., HistorySnapshot]:
    """Build a HistorySnapshot; series default to zeros of ``length``."""
    return _history


@pytest.fixture
def accumulator() -> Accumulator:
    return Accumulator()


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated registry per test."""
    return CollectorRegistry()


@pytest.fixture
def sample_status() -> StatusSnapshot:
    return StatusSnapshot(
        device_info=DeviceInfo(
            id="ut01000000-00000000-00abcdef",
            hardware_version="rev4_prod1",
            software_version="2024.05.0.mr12345",
            country_code="DE",
            boot_count=42,
        ),
        uptime_s=86400,
        obstruction_stats=ObstructionStats(fraction_obstructed=0.012, valid_s=3600.0, time_obstructed=43.2),
        downlink_throughput_bps=25_000_000.0,
        uplink_throughput_bps=2_500_000.0,
        pop_ping_latency_ms=31.5,
        gps_stats=GpsStats(gps_valid=True, gps_sats=12),
        eth_speed_mbps=1000,
        is_snr_above_noise_floor=True,
    )


@pytest.fixture
def status_source(sample_status) -> StaticStatusSource:
    return StaticStatusSource(status=sample_status)


@pytest.fixture
def failing_status_source() -> StaticStatusSource:
    return StaticStatusSource(error=DeviceError("dish unreachable"))


@pytest.fixture
def scripted_history():
    """Factory for ScriptedHistorySource."""
    return ScriptedHistorySource
