"""Background poller that feeds the accumulator from the dish history.

Runs one daemon thread ticking on a fixed schedule (1 s by default).
Each tick does exactly one ``get_history`` call outside any lock and
hands the snapshot to ``Accumulator.update``; fetch failures are recorded
on the accumulator and retried at the next tick, never sooner.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Optional

from dish_client.base import HistorySource

from .accumulator import Accumulator, UpdateResult

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


class PollerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class HistoryPoller:
    """Drives ``Accumulator.update`` from a HistorySource.

    Usage:
        poller = HistoryPoller(client, accumulator)
        poller.start()
        ...
        poller.stop()   # safe to call more than once
    """

    def __init__(
        self,
        source: HistorySource,
        accumulator: Accumulator,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")

        self._source = source
        self._accumulator = accumulator
        self._interval = interval

        self._state = PollerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stopped_event = threading.Event()
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        # Stats
        self._ticks = 0
        self._failures = 0
        self._last_success_at: Optional[float] = None
        self._stats_lock = threading.Lock()

    @property
    def state(self) -> PollerState:
        with self._state_lock:
            return self._state

    @property
    def interval(self) -> float:
        return self._interval

    def start(self, cancel: Optional[threading.Event] = None) -> None:
        """Start the polling thread.

        Args:
            cancel: optional external cancellation token; once set, the loop
                exits at the next tick boundary

        Raises:
            RuntimeError: if the poller was already stopped
        """
        with self._state_lock:
            if self._state == PollerState.RUNNING:
                return
            if self._state != PollerState.IDLE:
                raise RuntimeError(f"poller cannot be restarted from state {self._state.value}")

            self._cancel = cancel
            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="history-poller",
            )
            self._state = PollerState.RUNNING
            self._thread.start()

        logger.info("[POLLER] started interval=%.1fs", self._interval)

    def stop(self) -> None:
        """Stop the loop and wait for it to exit. Idempotent."""
        with self._state_lock:
            if self._state == PollerState.IDLE:
                self._state = PollerState.STOPPED
                self._stopped_event.set()
                return
            if self._state == PollerState.RUNNING:
                self._state = PollerState.STOPPING
                self._stop_event.set()
            thread = self._thread

        # Called from inside the loop (e.g. by the source): nothing to wait for.
        if thread is not None and thread is not threading.current_thread():
            self._stopped_event.wait()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop has exited. Returns False on timeout."""
        return self._stopped_event.wait(timeout)

    def _cancelled(self) -> bool:
        return self._stop_event.is_set() or (self._cancel is not None and self._cancel.is_set())

    def _run(self) -> None:
        try:
            next_tick = time.monotonic() + self._interval
            while True:
                self._stop_event.wait(max(0.0, next_tick - time.monotonic()))
                if self._cancelled():
                    with self._state_lock:
                        self._state = PollerState.STOPPING
                    break

                self.poll_once()

                next_tick += self._interval
                now = time.monotonic()
                if next_tick < now:
                    # Slow fetch: skip the ticks that were missed.
                    missed = int((now - next_tick) // self._interval) + 1
                    next_tick += missed * self._interval
        finally:
            with self._state_lock:
                self._state = PollerState.STOPPED
            self._stopped_event.set()
            logger.info("[POLLER] stopped ticks=%d failures=%d", self._ticks, self._failures)

    def poll_once(self) -> Optional[UpdateResult]:
        """Run one tick: fetch history and update the accumulator.

        Returns:
            The accumulator's UpdateResult, or None if the fetch failed
        """
        with self._stats_lock:
            self._ticks += 1

        try:
            snapshot = self._source.get_history()
        except Exception as e:
            with self._stats_lock:
                self._failures += 1
            self._accumulator.record_error(e)
            logger.warning("[POLLER] history fetch failed err=%s", e)
            return None

        try:
            result = self._accumulator.update(snapshot)
        except Exception as e:
            with self._stats_lock:
                self._failures += 1
            self._accumulator.record_error(e)
            logger.exception("[POLLER] history update failed sequence=%s", snapshot.sequence)
            return None

        with self._stats_lock:
            self._last_success_at = time.time()
        return result

    @property
    def stats(self) -> dict:
        with self._stats_lock:
            return {
                "state": self.state.value,
                "interval_seconds": self._interval,
                "ticks": self._ticks,
                "failures": self._failures,
                "last_success_at": self._last_success_at,
            }
