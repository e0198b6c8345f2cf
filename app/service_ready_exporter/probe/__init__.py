"""
Readiness probing of discovered hosts.

A host is ready when GET http://{host}/readyz answers with status <= 299.
"""

from service_ready_exporter.probe.types import ProbeOutcome, ReadinessObservation
from service_ready_exporter.probe.prober import ReadinessProber, classify_status

__all__ = [
    "ProbeOutcome",
    "ReadinessObservation",
    "ReadinessProber",
    "classify_status",
]
