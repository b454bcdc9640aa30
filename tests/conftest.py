from datetime import datetime, timedelta, timezone
from threading import Event

import pytest

from friendlyfire import db
from friendlyfire.docker_ops import ContainerState, ContainerSummary
from friendlyfire.settings import Settings

LABEL = "com.docker.compose.service"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeRuntime:
    """In-memory stand-in for DockerRuntime that records stop/start calls."""

    def __init__(self):
        self.containers: list[ContainerSummary] = []
        self.started_at: dict[str, datetime] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()
        self.block_stop: Event | None = None  # stop() waits on this when set
        self.stop_entered = Event()

    def add(self, container_id: str, service: str, age_s: float = 0.0) -> None:
        self.containers.append(ContainerSummary(id=container_id, labels={LABEL: service}))
        self.started_at[container_id] = T0 - timedelta(seconds=age_s)

    def remove(self, container_id: str) -> None:
        self.containers = [c for c in self.containers if c.id != container_id]

    def ping(self) -> bool:
        return True

    def list_containers(self):
        return list(self.containers)

    def inspect(self, container_id):
        return ContainerState(id=container_id, started_at=self.started_at[container_id])

    def stop(self, container_id):
        self.calls.append(("stop", container_id))
        self.stop_entered.set()
        if self.block_stop is not None:
            self.block_stop.wait(5)
        if container_id in self.fail_on:
            raise RuntimeError(f"No such container: {container_id}")

    def start(self, container_id):
        self.calls.append(("start", container_id))


class ManualClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = dict(
        services=("web", "api", "jobs"),
        service_label=LABEL,
        rollover_interval_s=1800,
        initial_debounce_s=300,
        service_reroll_distance_s=300,
        busy_poll_s=0.01,
        inspect_workers=4,
        prune_stale=False,
        enable_email=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def event_db(tmp_path):
    """Every test writes events to its own sqlite file."""
    db.configure(str(tmp_path / "events.db"))
    db.init_db()
    yield
    db.configure(None)


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def clock():
    return ManualClock()
