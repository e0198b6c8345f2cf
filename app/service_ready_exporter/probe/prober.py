"""
Readiness probe engine.

Issues GET http://{host}/readyz for each discovered host and classifies
the result. Probes run on a bounded thread pool; each host gets exactly
one outcome, and any failure to get an answer counts as not ready.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextlib import nullcontext
from typing import Optional, Sequence

import httpx

from service_ready_exporter.cluster.types import RoutableHost
from service_ready_exporter.probe.types import ProbeOutcome, ReadinessObservation
from service_ready_exporter.utils.logging import get_logger

logger = get_logger(__name__)

# Highest status code still counted as ready
MAX_READY_STATUS = 299


def classify_status(status_code: int) -> ProbeOutcome:
    """Map an HTTP status code to a probe outcome."""
    if status_code <= MAX_READY_STATUS:
        return ProbeOutcome.READY
    return ProbeOutcome.NOT_READY


class ReadinessProber:
    """
    Probes readiness endpoints with explicit timeouts.

    A batch shares one client and its connection pool; the client is closed
    once the last probe of the batch has finished. Responses are streamed
    so the body is never read.

    The timeout bounds connect, each read and each write separately, as
    httpx applies it. A host that keeps trickling header bytes can hold its
    worker thread past the timeout. The batch deadline still records such a
    host as not ready on time; only the background thread lingers.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        max_workers: int = 16,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the prober.

        Args:
            timeout: Timeout in seconds for connect, read and write of one probe
            max_workers: Maximum number of probes in flight at once
            transport: Optional httpx transport used by the probe client
        """
        self.timeout = timeout
        self.max_workers = max_workers
        self.transport = transport

    def client(self) -> httpx.Client:
        """Build a client sized for one batch of probes."""
        return httpx.Client(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=False,
            limits=httpx.Limits(max_connections=self.max_workers),
        )

    def probe(self, target: RoutableHost, http: Optional[httpx.Client] = None) -> ProbeOutcome:
        """
        Probe a single host.

        Uses ``http`` when given, otherwise a client of its own. Never raises
        for network or HTTP failures; those are NOT_READY.
        """
        try:
            with nullcontext(http) if http is not None else self.client() as session:
                with session.stream("GET", target.readyz_url) as response:
                    status_code = response.status_code
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(
                "Probe of %s failed: %s: %s", target.readyz_url, type(e).__name__, e
            )
            return ProbeOutcome.NOT_READY

        outcome = classify_status(status_code)
        if outcome is ProbeOutcome.NOT_READY:
            logger.debug("Probe of %s returned %d", target.readyz_url, status_code)
        return outcome

    def probe_all(
        self,
        targets: Sequence[RoutableHost],
        timeout: Optional[float] = None,
    ) -> list[ReadinessObservation]:
        """
        Probe every target and return one observation per target, in order.

        Args:
            targets: Hosts to probe; duplicates are probed independently
            timeout: Seconds to wait for the whole batch. Probes that have not
                     finished by then are recorded as NOT_READY.

        Returns:
            Exactly len(targets) observations
        """
        if not targets:
            return []

        http = self.client()
        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(targets)),
            thread_name_prefix="readyz-probe",
        )
        try:
            futures = [pool.submit(self.probe, target, http) for target in targets]
            _, pending = wait(futures, timeout=timeout)
        finally:
            # Do not block the scrape on probes that outlived the deadline
            pool.shutdown(wait=False, cancel_futures=True)

        if pending:
            _close_when_settled(http, pending)
        else:
            http.close()

        return [
            ReadinessObservation(target=target, outcome=self._outcome(target, future))
            for target, future in zip(targets, futures)
        ]

    def _outcome(self, target: RoutableHost, future: Future) -> ProbeOutcome:
        """Read one result slot, treating unfinished or failed probes as NOT_READY."""
        if future.cancelled() or not future.done():
            logger.warning("Probe of %s did not finish before the scrape deadline", target.host)
            return ProbeOutcome.NOT_READY
        try:
            return future.result()
        except Exception:
            logger.exception("Unexpected error probing %s", target.readyz_url)
            return ProbeOutcome.NOT_READY


def _close_when_settled(http: httpx.Client, futures: set[Future]) -> None:
    """Close ``http`` once every future in ``futures`` has finished or been cancelled."""
    lock = threading.Lock()
    remaining = [len(futures)]

    def release(_future: Future) -> None:
        with lock:
            remaining[0] -= 1
            last = remaining[0] == 0
        if last:
            http.close()

    for future in futures:
        future.add_done_callback(release)
