"""Snapshot records returned by the dish.

Both snapshots are immutable point-in-time copies of what the device
reported; nothing here knows about accumulation or exposition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class DeviceInfo:
    """Identity of the dish."""
    id: str = ""
    hardware_version: str = ""
    software_version: str = ""
    country_code: str = ""
    boot_count: int = 0


@dataclass(frozen=True)
class ObstructionStats:
    fraction_obstructed: float = 0.0
    valid_s: float = 0.0
    time_obstructed: float = 0.0


@dataclass(frozen=True)
class GpsStats:
    gps_valid: bool = False
    gps_sats: int = 0


@dataclass(frozen=True)
class StatusSnapshot:
    """Instantaneous gauges from a ``get_status`` call."""

    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    uptime_s: int = 0
    obstruction_stats: ObstructionStats = field(default_factory=ObstructionStats)

    # Current throughput / latency
    downlink_throughput_bps: float = 0.0
    uplink_throughput_bps: float = 0.0
    pop_ping_latency_ms: float = 0.0

    boresight_azimuth_deg: float = 0.0
    boresight_elevation_deg: float = 0.0

    gps_stats: GpsStats = field(default_factory=GpsStats)
    eth_speed_mbps: int = 0
    is_snr_above_noise_floor: bool = False


@dataclass(frozen=True)
class HistorySnapshot:
    """Circular 1 Hz history window from a ``get_history`` call.

    ``sequence`` identifies the newest valid slot: the sample for
    sequence ``s`` lives at index ``s % N`` of every series, where ``N``
    is the common length of the five series.
    """

    sequence: int
    downlink_throughput_bps: Sequence[float] = ()
    uplink_throughput_bps: Sequence[float] = ()
    power_in: Sequence[float] = ()
    pop_ping_latency_ms: Sequence[float] = ()
    pop_ping_drop_rate: Sequence[float] = ()

    def series_lengths(self) -> Tuple[int, int, int, int, int]:
        return (
            len(self.downlink_throughput_bps),
            len(self.uplink_throughput_bps),
            len(self.power_in),
            len(self.pop_ping_latency_ms),
            len(self.pop_ping_drop_rate),
        )

    @property
    def buffer_length(self) -> Optional[int]:
        """Common length of the series, or None when they disagree."""
        lengths = set(self.series_lengths())
        if len(lengths) != 1:
            return None
        return lengths.pop()
