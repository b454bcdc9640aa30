from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Iterator


def iso_ts(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class ServiceState:
    container_ids: list[str] = field(default_factory=list)
    next_due_at: float = 0.0  # epoch seconds; head container is due once now passes this

    def copy(self) -> "ServiceState":
        return ServiceState(container_ids=list(self.container_ids), next_due_at=self.next_due_at)


class ServiceRegistry:
    """Committed schedule shared by the discovery loop and the rollover worker.

    Two locks:
      - ``lock`` guards the dict itself and is only held for short reads/writes.
      - the pass token is held for a whole worker pass or discovery pass, so the
        two loops never interleave their mutations.
    """

    def __init__(self) -> None:
        self.lock = Lock()
        self._pass_token = Lock()
        self._states: dict[str, ServiceState] = {}  # service -> state, first-commit order

    # -- pass token ---------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._pass_token.locked()

    def try_begin_pass(self) -> bool:
        return self._pass_token.acquire(blocking=False)

    def end_pass(self) -> None:
        self._pass_token.release()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        self._pass_token.acquire()
        try:
            yield
        finally:
            self._pass_token.release()

    # -- state --------------------------------------------------------------

    def is_empty(self) -> bool:
        with self.lock:
            return not self._states

    def services(self) -> list[str]:
        with self.lock:
            return list(self._states)

    def get(self, service: str) -> ServiceState | None:
        with self.lock:
            st = self._states.get(service)
            return st.copy() if st else None

    def commit(self, service: str, container_ids: list[str], next_due_at: float) -> None:
        if len(set(container_ids)) != len(container_ids):
            raise ValueError(f"duplicate container ids for service '{service}'")
        with self.lock:
            self._states[service] = ServiceState(container_ids=list(container_ids), next_due_at=next_due_at)

    def remove(self, service: str) -> None:
        with self.lock:
            self._states.pop(service, None)

    def snapshot(self) -> dict[str, ServiceState]:
        with self.lock:
            return {k: v.copy() for k, v in self._states.items()}
