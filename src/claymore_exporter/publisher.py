"""
Prometheus publisher.

RigStatsCollector is a prometheus_client custom collector: every
time the registry is scraped it polls all rigs in parallel, joins the
results, and yields fresh gauge families. Nothing is cached between
scrapes.

Metric and label names are the ones existing Claymore dashboards
already query, so keep them stable.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge
from prometheus_client.core import GaugeMetricFamily, Metric

from claymore_exporter.collector.base import RigSource
from claymore_exporter.errors import RigError
from claymore_exporter.stats import RigStats

log = logging.getLogger(__name__)

RIG_LABEL = "Rig"
GPU_LABEL = "GPU"

# name -> help text, labelled by rig
RIG_METRICS = {
    "miner_total_uptime": "Minutes",
    "eth_found": "Share count",
    "eth_reject": "Rejected shares count",
    "total_hash_rate": "mh/s",
}

# name -> help text, labelled by rig and GPU
GPU_METRICS = {
    "gpu_hash_rate": "kh/s",
    "gpu_temp_celsius": "c",
    "gpu_fanspeed_percentage": "%",
}


@dataclass
class RigResult:
    rig: str
    stats: Optional[RigStats] = None
    error: Optional[str] = None
    # poll_failures label; set whenever error is
    reason: Optional[str] = None
    exc: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.stats is not None


def _new_families() -> Dict[str, GaugeMetricFamily]:
    families = {
        name: GaugeMetricFamily(name, help_text, labels=[RIG_LABEL])
        for name, help_text in RIG_METRICS.items()
    }
    families.update({
        name: GaugeMetricFamily(name, help_text, labels=[RIG_LABEL, GPU_LABEL])
        for name, help_text in GPU_METRICS.items()
    })
    return families


class RigStatsCollector:

    def __init__(
        self,
        sources: Sequence[RigSource],
        max_workers: Optional[int] = None,
        scrape_timeout: float = 10.0,
    ):
        self._sources = list(sources)
        self._max_workers = max_workers or max(1, len(self._sources))
        self._scrape_timeout = scrape_timeout

        self.parse_failures = Counter(
            "claymore_field_parse_failures",
            "Reply fields that were not numeric and were exported as 0",
            ["field"],
            registry=None,
        )
        self.poll_failures = Counter(
            "claymore_rig_poll_failures",
            "Rig polls that produced no stats",
            ["reason"],
            registry=None,
        )
        self.scrape_duration = Gauge(
            "claymore_scrape_duration_seconds",
            "Time taken to poll all rigs in the last scrape",
            registry=None,
        )

    @staticmethod
    def _poll_one(source: RigSource) -> RigResult:
        # May still be running after poll_all gave up on it; must not
        # touch counters or log. poll_all does both for collected results.
        rig = source.name()
        try:
            return RigResult(rig=rig, stats=source.fetch())
        except RigError as e:
            return RigResult(rig=rig, error=str(e), reason=e.reason)
        except Exception as e:
            return RigResult(rig=rig, error=f"unexpected error: {e}", reason="error", exc=e)

    def _record(self, result: RigResult):
        if not result.ok:
            if result.exc is not None:
                log.error("rig %s skipped: unexpected error", result.rig, exc_info=result.exc)
            else:
                log.warning("rig %s skipped: %s", result.rig, result.error)
            self.poll_failures.labels(reason=result.reason).inc()
            return

        failures = result.stats.parse_failures
        for field_name in failures:
            self.parse_failures.labels(field=field_name).inc()
        if failures:
            log.warning("rig %s: zeroed unparseable fields %s", result.rig, ", ".join(failures))

    def poll_all(self) -> List[RigResult]:
        """Poll every rig concurrently and return results in config order."""
        if not self._sources:
            return []

        start = time.monotonic()
        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="rig-poll")
        try:
            futures = [pool.submit(self._poll_one, source) for source in self._sources]
            wait(futures, timeout=self._scrape_timeout)

            results = []
            for source, future in zip(self._sources, futures):
                if future.done():
                    result = future.result()
                else:
                    future.cancel()
                    result = RigResult(
                        rig=source.name(),
                        error=f"no answer within {self._scrape_timeout:.1f}s scrape timeout",
                        reason="timeout",
                    )
                self._record(result)
                results.append(result)
        finally:
            # Don't block the scrape on stragglers; their sockets time out on their own
            pool.shutdown(wait=False, cancel_futures=True)

        self.scrape_duration.set(time.monotonic() - start)
        return results

    def _self_metrics(self) -> Iterator[Metric]:
        yield from self.parse_failures.collect()
        yield from self.poll_failures.collect()
        yield from self.scrape_duration.collect()

    def describe(self) -> Iterator[Metric]:
        yield from _new_families().values()
        yield from self.parse_failures.describe()
        yield from self.poll_failures.describe()
        yield from self.scrape_duration.describe()

    def collect(self) -> Iterator[Metric]:
        families = _new_families()

        for result in self.poll_all():
            if not result.ok:
                continue
            rig, stats = result.rig, result.stats

            families["miner_total_uptime"].add_metric([rig], stats.uptime_minutes)
            families["eth_found"].add_metric([rig], stats.shares_found)
            families["eth_reject"].add_metric([rig], stats.shares_rejected)
            families["total_hash_rate"].add_metric([rig], stats.total_hash_rate)

            for gpu in stats.gpus:
                families["gpu_hash_rate"].add_metric([rig, gpu.name], gpu.hash_rate)
                families["gpu_temp_celsius"].add_metric([rig, gpu.name], gpu.temperature)
                families["gpu_fanspeed_percentage"].add_metric([rig, gpu.name], gpu.fan_speed)

        yield from families.values()
        # After polling, so this scrape's failures are included
        yield from self._self_metrics()


def build_registry(
    sources: Sequence[RigSource],
    scrape_timeout: float = 10.0,
    max_workers: Optional[int] = None,
) -> Tuple[CollectorRegistry, RigStatsCollector]:
    """Create the registry once at startup with the rig collector on it."""
    registry = CollectorRegistry()
    collector = RigStatsCollector(
        sources,
        max_workers=max_workers,
        scrape_timeout=scrape_timeout,
    )
    registry.register(collector)
    return registry, collector
