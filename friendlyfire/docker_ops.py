from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

import docker
from docker.errors import DockerException

from .settings import settings

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_STARTED_AT_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?")


@dataclass(frozen=True)
class ContainerSummary:
    id: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ContainerState:
    id: str
    started_at: datetime


def short_id(container_id: str) -> str:
    return container_id[:9]


def parse_started_at(raw: str | None) -> datetime:
    """Parse docker's State.StartedAt (RFC3339 with nanoseconds, UTC).

    Missing or unparsable values sort as the oldest possible start.
    """
    if not raw:
        return EPOCH
    m = _STARTED_AT_RE.match(raw.strip())
    if not m:
        return EPOCH
    dt = datetime.strptime(m.group(1), "%Y-%m-%dT%H:%M:%S")
    frac = m.group(2) or ""
    micro = int(frac[:6].ljust(6, "0")) if frac else 0
    return dt.replace(microsecond=micro, tzinfo=timezone.utc)


def _client(host: str | None = None, port: str | None = None) -> docker.DockerClient:
    if host and port:
        return docker.DockerClient(base_url=f"tcp://{host}:{port}")
    return docker.from_env()


class DockerRuntime:
    """The slice of the docker API the rollover engine needs."""

    def __init__(
        self,
        client: docker.DockerClient | None = None,
        host: str | None = None,
        port: str | None = None,
        stop_timeout_s: int | None = None,
    ) -> None:
        self._docker = client
        self._host = host
        self._port = port
        self.stop_timeout_s = settings.stop_timeout_s if stop_timeout_s is None else stop_timeout_s

    @property
    def _client(self) -> docker.DockerClient:
        # Built on first use: docker-py asks the daemon for its API version on
        # construction, which raises while the daemon is down.
        if self._docker is None:
            self._docker = _client(self._host, self._port)
        return self._docker

    def ping(self) -> bool:
        try:
            self._client.ping()
            return True
        except DockerException:
            return False

    def list_containers(self) -> list[ContainerSummary]:
        # Running containers only, in the daemon's listing order.
        return [ContainerSummary(id=c.id, labels=dict(c.labels or {})) for c in self._client.containers.list()]

    def inspect(self, container_id: str) -> ContainerState:
        cont = self._client.containers.get(container_id)
        state = cont.attrs.get("State") or {}
        return ContainerState(id=cont.id, started_at=parse_started_at(state.get("StartedAt")))

    def stop(self, container_id: str) -> None:
        self._client.containers.get(container_id).stop(timeout=self.stop_timeout_s)

    def start(self, container_id: str) -> None:
        self._client.containers.get(container_id).start()
