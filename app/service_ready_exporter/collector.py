"""
Readiness collector.

A prometheus_client custom collector: every scrape connects to the
cluster, discovers Ingress hosts, probes them and yields one
service_ready_up sample per host. If hosts cannot be discovered the
scrape raises instead of yielding partial or stale data.
"""

import threading
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterator, Optional

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.registry import Collector

from service_ready_exporter.cluster import (
    ClusterError,
    DeadlineExceededError,
    IngressLister,
    discover_hosts,
    remaining_time,
)
from service_ready_exporter.probe import ReadinessObservation, ReadinessProber
from service_ready_exporter.utils.logging import get_logger

logger = get_logger(__name__)

METRIC_NAMESPACE = "service_ready"
READY_LABELS = ("namespace", "name", "host")

# Deadline advertised by the scraper for the scrape running in this context
_scrape_timeout: ContextVar[Optional[float]] = ContextVar("scrape_timeout", default=None)


@contextmanager
def scrape_timeout(seconds: Optional[float]) -> Iterator[None]:
    """Bound collectors invoked within this block by the caller's deadline."""
    token = _scrape_timeout.set(seconds)
    try:
        yield
    finally:
        _scrape_timeout.reset(token)


@dataclass(frozen=True)
class MetricDescriptor:
    """Immutable name, help text and label names of an exported metric."""

    name: str
    documentation: str
    labels: tuple[str, ...] = ()

    def gauge(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation, labels=list(self.labels))

    def counter(self) -> CounterMetricFamily:
        return CounterMetricFamily(self.name, self.documentation, labels=list(self.labels))


UP = MetricDescriptor(f"{METRIC_NAMESPACE}_up", "Ready check is ok.", READY_LABELS)
DISCOVERY_FAILURES = MetricDescriptor(
    f"{METRIC_NAMESPACE}_discovery_failures",
    "Scrapes aborted because hosts could not be discovered.",
)
SCRAPE_DURATION = MetricDescriptor(
    f"{METRIC_NAMESPACE}_scrape_duration_seconds",
    "Duration of the last successful discovery and probe round.",
)
HOSTS = MetricDescriptor(
    f"{METRIC_NAMESPACE}_hosts",
    "Number of hosts discovered in the last successful scrape.",
)


class ReadinessCollector(Collector):
    """
    Collects service_ready_up for every host routed by an Ingress.

    Holds no discovery or probe state between scrapes; only the
    self-monitoring counters survive from one scrape to the next.
    """

    def __init__(
        self,
        connect: Callable[[], ContextManager[IngressLister]],
        prober: ReadinessProber,
        scrape_timeout: Optional[float] = None,
        serialize: bool = True,
    ):
        """
        Initialize the collector.

        Args:
            connect: Returns a fresh cluster handle, used as a context manager
            prober: Prober used for the readiness checks
            scrape_timeout: Upper bound in seconds for one whole scrape
            serialize: Queue overlapping scrapes behind a lock
        """
        self.up = UP
        self._connect = connect
        self._prober = prober
        self._scrape_timeout = scrape_timeout
        self._scrape_lock = threading.Lock() if serialize else None

        self._stats_lock = threading.Lock()
        self._discovery_failures = 0
        self._last_duration = 0.0
        self._last_hosts = 0

    def describe(self) -> list:
        return [
            UP.gauge(),
            DISCOVERY_FAILURES.counter(),
            SCRAPE_DURATION.gauge(),
            HOSTS.gauge(),
        ]

    def collect(self) -> Iterator:
        observations = self.scrape(self._effective_timeout())

        up = self.up.gauge()
        for observation in observations:
            up.add_metric(observation.labels(), observation.value)
        yield up

        yield from self._self_metrics()

    def scrape(self, timeout: Optional[float] = None) -> list[ReadinessObservation]:
        """
        Run one discovery and probe round.

        The deadline starts before waiting for an overlapping scrape and
        covers discovery as well as probing.

        Args:
            timeout: Seconds available for the whole round

        Returns:
            One observation per discovered host

        Raises:
            ClusterError: If the cluster could not be reached or listed, or the
                          deadline ran out before probing could start
        """
        start = time.monotonic()
        deadline = None if timeout is None else start + timeout

        if not self._acquire(deadline):
            self._record_failure()
            logger.error("Scrape aborted, an earlier scrape held the lock past the deadline")
            raise DeadlineExceededError(
                f"Scrape deadline of {timeout:.2f}s passed while waiting for a running scrape",
                timeout=timeout,
            )

        try:
            try:
                with self._connect() as cluster:
                    hosts = discover_hosts(cluster, deadline=deadline)
                remaining = remaining_time(deadline, "probing hosts")
            except ClusterError as e:
                self._record_failure()
                logger.error("Scrape aborted, host discovery failed: %s", e)
                raise
            except Exception:
                self._record_failure()
                logger.exception("Scrape aborted, unexpected error discovering hosts")
                raise

            observations = self._prober.probe_all(hosts, timeout=remaining)

            duration = time.monotonic() - start
            with self._stats_lock:
                self._last_duration = duration
                self._last_hosts = len(hosts)
        finally:
            if self._scrape_lock is not None:
                self._scrape_lock.release()

        ready = sum(1 for o in observations if o.value)
        logger.info(
            "Probed %d hosts in %.2fs (%d ready, %d not ready)",
            len(observations),
            duration,
            ready,
            len(observations) - ready,
        )
        return observations

    def _acquire(self, deadline: Optional[float]) -> bool:
        """Wait for an overlapping scrape to finish, at most until the deadline."""
        if self._scrape_lock is None:
            return True
        if deadline is None:
            return self._scrape_lock.acquire()
        return self._scrape_lock.acquire(timeout=max(0.0, deadline - time.monotonic()))

    def _record_failure(self) -> None:
        with self._stats_lock:
            self._discovery_failures += 1

    def _effective_timeout(self) -> Optional[float]:
        requested = _scrape_timeout.get()
        candidates = [t for t in (self._scrape_timeout, requested) if t is not None]
        return min(candidates) if candidates else None

    def _self_metrics(self) -> Iterator:
        with self._stats_lock:
            failures = self._discovery_failures
            duration = self._last_duration
            hosts = self._last_hosts

        counter = DISCOVERY_FAILURES.counter()
        counter.add_metric([], failures)
        yield counter

        gauge = SCRAPE_DURATION.gauge()
        gauge.add_metric([], duration)
        yield gauge

        gauge = HOSTS.gauge()
        gauge.add_metric([], hosts)
        yield gauge
