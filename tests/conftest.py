from typing import List, Optional, Tuple
import pytest
from pgready.domain.models import ConnectionTarget
from pgready.exceptions import ConnectError


class FakeClock:
    """Deterministic monotonic clock; sleeping just moves time forward."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubConnection:
    def __init__(self, tables=(), clock: Optional[FakeClock] = None, lookup_latency: float = 0.0,
                 ping_error: Optional[Exception] = None, lookup_error: Optional[Exception] = None):
        self.tables = {(t.split(".", 1)[0], t.split(".", 1)[1]) if "." in t else ("public", t) for t in tables}
        self.clock = clock
        self.lookup_latency = lookup_latency
        self.ping_error = ping_error
        self.lookup_error = lookup_error
        self.lookups: List[Tuple[str, str]] = []
        self.release_count = 0

    def verify_live(self, deadline) -> None:
        if self.ping_error:
            raise self.ping_error

    def lookup_table_exists(self, deadline, schema: str, name: str) -> bool:
        self.lookups.append((schema, name))
        if self.clock is not None:
            self.clock.advance(self.lookup_latency)
        if self.lookup_error:
            raise self.lookup_error
        return (schema, name) in self.tables

    def release(self) -> None:
        self.release_count += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class StubConnector:
    """
    Fails the first `failures` connects, then hands out connections built
    by `factory`. Every connect costs `latency` on the fake clock.
    """

    def __init__(self, failures: int = 0, factory=StubConnection, clock: Optional[FakeClock] = None,
                 latency: float = 0.0, error: Optional[Exception] = None):
        self.failures = failures
        self.factory = factory
        self.clock = clock
        self.latency = latency
        self.error = error or ConnectError("connection refused")
        self.calls = 0
        self.deadlines = []
        self.connections: List[StubConnection] = []

    def connect(self, deadline, target):
        self.calls += 1
        self.deadlines.append(deadline)
        if self.clock is not None:
            self.clock.advance(self.latency)
        if self.calls <= self.failures:
            raise self.error
        connection = self.factory()
        self.connections.append(connection)
        return connection


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def target() -> ConnectionTarget:
    return ConnectionTarget(host="db", port=5432, user="app", password="s3cret", database="app")
