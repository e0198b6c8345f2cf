"""
Pytest configuration and shared fixtures.

Provides in-memory stand-ins for the Kubernetes API and for the probed
hosts so no test needs a cluster or network access.
"""

import sys
import threading
import time
from pathlib import Path
from typing import Callable

import httpx
import pytest
from kubernetes import client

# Add app directory to path
APP_DIR = Path(__file__).parent.parent / "app"
sys.path.insert(0, str(APP_DIR))


class FakeCluster:
    """
    In-memory cluster handle.

    Args:
        ingresses: Ingress objects keyed by namespace; every key is a namespace
        errors: Exceptions to raise, keyed by "namespaces" or a namespace name
        delays: Seconds to stall each call, keyed like ``errors``
    """

    def __init__(
        self,
        ingresses: dict[str, list],
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.ingresses = ingresses
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[str] = []
        self.timeouts: list[float | None] = []
        self.closed = False

    def list_namespaces(self, timeout: float | None = None) -> list[str]:
        self._answer("namespaces", timeout)
        return list(self.ingresses)

    def list_ingresses(self, namespace: str, timeout: float | None = None) -> list:
        self._answer(namespace, timeout)
        return self.ingresses[namespace]

    def _answer(self, key: str, timeout: float | None) -> None:
        self.calls.append(key)
        self.timeouts.append(timeout)
        if key in self.delays:
            time.sleep(self.delays[key])
        if key in self.errors:
            raise self.errors[key]

    def __enter__(self) -> "FakeCluster":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True


def _make_ingress(namespace: str, name: str, hosts: list[str | None] | None) -> client.V1Ingress:
    rules = None
    if hosts is not None:
        rules = [client.V1IngressRule(host=host) for host in hosts]
    return client.V1Ingress(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1IngressSpec(rules=rules),
    )


@pytest.fixture
def make_ingress() -> Callable[..., client.V1Ingress]:
    """Factory for V1Ingress objects with one rule per host."""
    return _make_ingress


@pytest.fixture
def fake_cluster() -> type[FakeCluster]:
    """The FakeCluster class, for building cluster handles in tests."""
    return FakeCluster


@pytest.fixture
def release_probes():
    """
    Event that blocked probe handlers wait on.

    Set automatically at teardown so lingering probe threads can finish.
    """
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def probe_transport(release_probes: threading.Event) -> Callable[[dict], httpx.MockTransport]:
    """
    Build a MockTransport answering per host.

    Each host maps to a status code, an httpx exception class to raise,
    or the string "hang" to block until the test finishes.
    """

    def build(outcomes: dict) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            outcome = outcomes[request.url.host]
            if outcome == "hang":
                release_probes.wait(timeout=30)
                raise httpx.ReadTimeout("released", request=request)
            if isinstance(outcome, type) and issubclass(outcome, Exception):
                raise outcome("simulated failure", request=request)
            return httpx.Response(outcome, text="body is ignored")

        return httpx.MockTransport(handler)

    return build


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: exercises the full ASGI application"
    )
