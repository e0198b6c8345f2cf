"""
Type definitions for readiness probing.
"""

from dataclasses import dataclass
from enum import IntEnum

from service_ready_exporter.cluster.types import RoutableHost


class ProbeOutcome(IntEnum):
    """Binary result of a readiness probe, used directly as the gauge value."""

    NOT_READY = 0
    READY = 1


@dataclass(frozen=True)
class ReadinessObservation:
    """
    One gauge sample for one discovered host.

    Attributes:
        target: The probed host and its owning Ingress
        outcome: Whether the readiness endpoint answered with status <= 299
    """

    target: RoutableHost
    outcome: ProbeOutcome

    @property
    def value(self) -> float:
        return float(self.outcome)

    def labels(self) -> list[str]:
        return list(self.target.labels())
