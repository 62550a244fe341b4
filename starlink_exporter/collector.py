"""Prometheus collector for the dish.

Renders, on every scrape:
- the cumulative counters kept by the Accumulator (always)
- live gauges from one ``get_status`` call (only when it succeeds)
- ``up`` telling whether that status call worked

The collector is registered on an explicit CollectorRegistry owned by the
caller; it reads the accumulator through its copy-out getters and never
changes it, so any number of scrapes can run at once.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from prometheus_client import CollectorRegistry
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    Metric,
    SummaryMetricFamily,
)
from prometheus_client.registry import Collector

from dish_client.base import StatusSource
from dish_client.models import StatusSnapshot

from .accumulator import Accumulator, AccumulatorTotals

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "starlink"
INFO_LABELS = ["id", "hardware_version", "software_version", "country_code"]

UP_HELP = "Whether the last scrape of dish status was successful (1 = success, 0 = failure)"
PING_LATENCY_HELP = "Ping latency to POP in seconds, one sample per second of history"


def _bool_value(flag: bool) -> float:
    return 1.0 if flag else 0.0


# (metric suffix, help text, AccumulatorTotals field)
_COUNTERS = [
    ("download_bytes_total", "Total bytes downloaded", "download_bytes"),
    ("upload_bytes_total", "Total bytes uploaded", "upload_bytes"),
    ("energy_joules_total", "Total energy consumed (joules)", "energy_joules"),
    ("ping_drop_total", "Total ping drops", "ping_drop_count"),
]

# (metric suffix, help text, value from StatusSnapshot)
_STATUS_GAUGES = [
    ("downlink_throughput_bps", "Current downlink throughput in bits per second",
     lambda s: s.downlink_throughput_bps),
    ("uplink_throughput_bps", "Current uplink throughput in bits per second",
     lambda s: s.uplink_throughput_bps),
    ("pop_ping_latency_ms", "Current ping latency to POP in milliseconds",
     lambda s: s.pop_ping_latency_ms),
    ("uptime_seconds", "Device uptime in seconds",
     lambda s: s.uptime_s),
    ("obstruction_fraction", "Fraction of time obstructed",
     lambda s: s.obstruction_stats.fraction_obstructed),
    ("obstruction_valid_seconds", "Valid observation time for obstruction stats",
     lambda s: s.obstruction_stats.valid_s),
    ("gps_satellites", "Number of GPS satellites",
     lambda s: s.gps_stats.gps_sats),
    ("gps_valid", "GPS validity (1 = valid, 0 = invalid)",
     lambda s: _bool_value(s.gps_stats.gps_valid)),
    ("eth_speed_mbps", "Ethernet speed in Mbps",
     lambda s: s.eth_speed_mbps),
    ("snr_above_noise_floor", "SNR above noise floor (1 = yes, 0 = no)",
     lambda s: _bool_value(s.is_snr_above_noise_floor)),
]


class DishCollector(Collector):
    """Exposes accumulator counters plus live status gauges."""

    def __init__(
        self,
        status_source: StatusSource,
        accumulator: Accumulator,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        self._status_source = status_source
        self._accumulator = accumulator
        self._namespace = namespace

    def _name(self, suffix: str) -> str:
        return f"{self._namespace}_{suffix}" if self._namespace else suffix

    def describe(self) -> Iterable[Metric]:
        # Families without samples: the registry checks names without a dish call.
        families: List[Metric] = [GaugeMetricFamily(self._name("up"), UP_HELP)]
        families.extend(CounterMetricFamily(self._name(suffix), doc) for suffix, doc, _ in _COUNTERS)
        families.append(SummaryMetricFamily(self._name("ping_latency_seconds"), PING_LATENCY_HELP))
        families.extend(GaugeMetricFamily(self._name(suffix), doc) for suffix, doc, _ in _STATUS_GAUGES)
        families.append(GaugeMetricFamily(self._name("info"), "Dish device information", labels=INFO_LABELS))
        return families

    def collect(self) -> Iterable[Metric]:
        logger.debug("[COLLECTOR] scrape started")

        status: Optional[StatusSnapshot]
        try:
            status = self._status_source.get_status()
        except Exception as e:
            logger.error("[COLLECTOR] failed to get status err=%s", e)
            status = None

        totals = self._accumulator.totals()

        yield GaugeMetricFamily(self._name("up"), UP_HELP, value=_bool_value(status is not None))
        yield from self._counters(totals)

        if status is None:
            logger.debug(
                "[COLLECTOR] scrape completed (error path) download_bytes=%.1f upload_bytes=%.1f",
                totals.download_bytes, totals.upload_bytes,
            )
            return

        yield from self._gauges(status)
        logger.debug(
            "[COLLECTOR] scrape completed download_bytes=%.1f upload_bytes=%.1f",
            totals.download_bytes, totals.upload_bytes,
        )

    def _counters(self, totals: AccumulatorTotals) -> Iterator[Metric]:
        for suffix, doc, attr in _COUNTERS:
            yield CounterMetricFamily(self._name(suffix), doc, value=getattr(totals, attr))

        yield SummaryMetricFamily(
            self._name("ping_latency_seconds"),
            PING_LATENCY_HELP,
            count_value=totals.ping_sample_count,
            sum_value=totals.ping_latency_seconds_sum,
        )

    def _gauges(self, status: StatusSnapshot) -> Iterator[Metric]:
        for suffix, doc, getter in _STATUS_GAUGES:
            yield GaugeMetricFamily(self._name(suffix), doc, value=float(getter(status)))

        device = status.device_info
        info = GaugeMetricFamily(self._name("info"), "Dish device information", labels=INFO_LABELS)
        info.add_metric(
            [device.id, device.hardware_version, device.software_version, device.country_code],
            1.0,
        )
        yield info


def build_collector(
    status_source: StatusSource,
    accumulator: Accumulator,
    registry: CollectorRegistry,
    namespace: str = DEFAULT_NAMESPACE,
) -> DishCollector:
    """Create a DishCollector and register it on ``registry``."""
    collector = DishCollector(status_source, accumulator, namespace=namespace)
    registry.register(collector)
    return collector
