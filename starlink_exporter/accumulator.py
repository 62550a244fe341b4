"""Cumulative counters integrated from the dish history buffer.

The dish keeps a circular buffer of 1 Hz samples (throughput, power,
ping latency, ping drop rate). The accumulator walks the samples that
appeared since the previous update and adds them to running totals, so
scrapes can expose monotonic counters no matter how often they happen.

Integration per sample (each sample covers one second):
- throughput bit/s -> bytes (/ 8)
- power W -> joules
- ping latency ms -> seconds (/ 1000)
- ping drop rate -> drop count
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dish_client.models import HistorySnapshot

from .circular import wraparound_indices
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class HistoryValidationError(ValueError):
    """History series are empty or do not share one length."""

    def __init__(self, message: str, lengths: tuple):
        self.lengths = lengths
        super().__init__(f"{message} lengths={lengths}")


class UpdateResult(str, Enum):
    """What an ``Accumulator.update`` call did."""
    REJECTED = "rejected"
    INITIALIZED = "initialized"
    RESET = "reset"
    UNCHANGED = "unchanged"
    INTEGRATED = "integrated"
    OVERRUN = "overrun"


@dataclass(frozen=True)
class AccumulatorTotals:
    """Consistent copy of the cumulative totals."""

    download_bytes: float = 0.0
    upload_bytes: float = 0.0
    energy_joules: float = 0.0
    ping_latency_seconds_sum: float = 0.0
    ping_sample_count: float = 0.0
    ping_drop_count: float = 0.0

    initialized: bool = False
    last_sequence: int = 0


@dataclass
class _Delta:
    download_bytes: float = 0.0
    upload_bytes: float = 0.0
    energy_joules: float = 0.0
    ping_latency_seconds: float = 0.0
    ping_drops: float = 0.0
    samples: int = 0


class Accumulator:
    """Owns all cumulative state.

    ``update`` is the only path that changes the totals and runs under the
    exclusive side of a read/write lock; getters copy state out under the
    shared side. No I/O happens while the lock is held.
    """

    def __init__(self):
        self._lock = ReadWriteLock()

        self._initialized = False
        self._last_sequence = 0
        self._buffer_length: Optional[int] = None

        self._download_bytes = 0.0
        self._upload_bytes = 0.0
        self._energy_joules = 0.0
        self._ping_latency_seconds_sum = 0.0
        self._ping_sample_count = 0.0
        self._ping_drop_count = 0.0

        self._last_error: Optional[Exception] = None
        self._last_error_at: Optional[float] = None

        self._resets = 0
        self._overruns = 0
        self._samples_lost = 0
        self._rejected = 0

    def update(self, snapshot: HistorySnapshot) -> UpdateResult:
        """Integrate the samples that are new since the previous update.

        Args:
            snapshot: a successfully fetched history window

        Returns:
            UpdateResult describing which branch was taken
        """
        with self._lock.write():
            error = self._validate(snapshot)
            if error is not None:
                self._rejected += 1
                self._set_error(error)
                logger.error("[ACCUMULATOR] history rejected sequence=%s err=%s", snapshot.sequence, error)
                return UpdateResult.REJECTED

            self._last_error = None
            self._last_error_at = None

            current = snapshot.sequence
            length = len(snapshot.downlink_throughput_bps)

            if not self._initialized:
                self._last_sequence = current
                self._buffer_length = length
                self._initialized = True
                logger.info("[ACCUMULATOR] initialized sequence=%s buffer_length=%d", current, length)
                return UpdateResult.INITIALIZED

            if current < self._last_sequence:
                # Dish restart. Totals keep accumulating across restarts.
                self._resets += 1
                logger.info(
                    "[ACCUMULATOR] counter reset detected previous=%s current=%s",
                    self._last_sequence, current,
                )
                self._last_sequence = current
                return UpdateResult.RESET

            delta = current - self._last_sequence
            if delta == 0:
                return UpdateResult.UNCHANGED

            result = UpdateResult.INTEGRATED
            if delta > length:
                self._overruns += 1
                self._samples_lost += delta - length
                logger.warning(
                    "[ACCUMULATOR] sequence delta exceeds buffer, possible data loss delta=%d buffer_length=%d",
                    delta, length,
                )
                delta = length
                result = UpdateResult.OVERRUN

            d = self._integrate(snapshot, start=self._last_sequence + 1, count=delta, length=length)

            self._download_bytes += d.download_bytes
            self._upload_bytes += d.upload_bytes
            self._energy_joules += d.energy_joules
            self._ping_latency_seconds_sum += d.ping_latency_seconds
            self._ping_sample_count += d.samples
            self._ping_drop_count += d.ping_drops
            self._last_sequence = current

            logger.debug(
                "[ACCUMULATOR] update delta=%d download_bytes=%.1f upload_bytes=%.1f "
                "energy_j=%.1f ping_s=%.3f ping_drops=%.3f",
                d.samples, d.download_bytes, d.upload_bytes,
                d.energy_joules, d.ping_latency_seconds, d.ping_drops,
            )
            return result

    def _validate(self, snapshot: HistorySnapshot) -> Optional[HistoryValidationError]:
        lengths = snapshot.series_lengths()
        length = snapshot.buffer_length
        if length is None:
            return HistoryValidationError("history series length mismatch", lengths)
        if length == 0:
            return HistoryValidationError("empty history series", lengths)
        if self._buffer_length is not None and length != self._buffer_length:
            return HistoryValidationError(
                f"history buffer length changed from {self._buffer_length}", lengths
            )
        return None

    @staticmethod
    def _integrate(snapshot: HistorySnapshot, start: int, count: int, length: int) -> _Delta:
        d = _Delta()
        for idx in wraparound_indices(start, count, length):
            d.download_bytes += snapshot.downlink_throughput_bps[idx] / 8.0
            d.upload_bytes += snapshot.uplink_throughput_bps[idx] / 8.0
            d.energy_joules += snapshot.power_in[idx]
            d.ping_latency_seconds += snapshot.pop_ping_latency_ms[idx] / 1000.0
            d.ping_drops += snapshot.pop_ping_drop_rate[idx]
            d.samples += 1
        return d

    def record_error(self, error: Exception) -> None:
        """Remember a fetch failure; totals are not touched."""
        with self._lock.write():
            self._set_error(error)

    def _set_error(self, error: Exception) -> None:
        self._last_error = error
        self._last_error_at = time.time()

    def totals(self) -> AccumulatorTotals:
        with self._lock.read():
            return AccumulatorTotals(
                download_bytes=self._download_bytes,
                upload_bytes=self._upload_bytes,
                energy_joules=self._energy_joules,
                ping_latency_seconds_sum=self._ping_latency_seconds_sum,
                ping_sample_count=self._ping_sample_count,
                ping_drop_count=self._ping_drop_count,
                initialized=self._initialized,
                last_sequence=self._last_sequence,
            )

    def last_error(self) -> Optional[Exception]:
        with self._lock.read():
            return self._last_error

    @property
    def initialized(self) -> bool:
        with self._lock.read():
            return self._initialized

    def stats(self) -> dict:
        """Bookkeeping for the health endpoint."""
        with self._lock.read():
            return {
                "initialized": self._initialized,
                "last_sequence": self._last_sequence,
                "buffer_length": self._buffer_length,
                "resets": self._resets,
                "overruns": self._overruns,
                "samples_lost": self._samples_lost,
                "rejected": self._rejected,
                "last_error": str(self._last_error) if self._last_error is not None else None,
                "last_error_at": self._last_error_at,
            }
