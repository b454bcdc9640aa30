from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from threading import Thread
from typing import Callable, Iterable

from . import db
from .docker_ops import ContainerSummary, DockerRuntime
from .registry import ServiceRegistry
from .settings import Settings


def group_by_service(
    containers: Iterable[ContainerSummary], services: Iterable[str], label: str
) -> dict[str, list[str]]:
    """Map allow-listed service -> container ids, in listing order without repeats."""
    qualified = set(services)
    out: dict[str, list[str]] = {}
    for c in containers:
        raw = c.labels.get(label)
        if not raw:
            continue
        service = raw.lower()
        if service not in qualified:
            continue
        ids = out.setdefault(service, [])
        if c.id not in ids:
            ids.append(c.id)
    return out


class Discovery:
    """Keeps the registry's container lists in sync with what docker is running."""

    def __init__(
        self,
        registry: ServiceRegistry,
        runtime: DockerRuntime,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.runtime = runtime
        self.settings = settings
        self.clock = clock
        self._stale: set[str] = set()
        self._stop = False
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop = False
        self._thr = Thread(target=self._loop, name="ff-discovery", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop = True

    def _loop(self) -> None:
        db.log_event("INFO", "Discovery started")
        while not self._stop:
            try:
                self.run_once()
            except Exception as e:
                db.log_event("ERROR", f"Discovery pass failed: {type(e).__name__}: {e}")
            time.sleep(max(0.1, self.settings.discovery_interval_s))

    def _wait_for_worker(self) -> None:
        while self.registry.busy:
            time.sleep(self.settings.busy_poll_s)

    def run_once(self) -> list[str]:
        """One discovery pass. Returns the services that were remapped, in index order."""
        self._wait_for_worker()
        with self.registry.exclusive():
            candidates = group_by_service(
                self.runtime.list_containers(), self.settings.services, self.settings.service_label
            )
            changed = self._changed_services(candidates)
            ordered = {service: self.sort_by_age(candidates[service]) for service in changed}
            self._handle_stale(candidates)

            now = self.clock()
            for i, service in enumerate(changed):
                self.remap(i, service, ordered[service], now)
            return changed

    def _changed_services(self, candidates: dict[str, list[str]]) -> list[str]:
        if self.registry.is_empty():
            return list(candidates)

        changed: list[str] = []
        registered = self.registry.services()
        for service in registered:
            new_ids = candidates.get(service)
            if not new_ids:
                continue
            st = self.registry.get(service)
            # Only ids missing from the committed list count; exited containers stay scheduled.
            if st is None or any(cid not in st.container_ids for cid in new_ids):
                changed.append(service)
        changed.extend(s for s in candidates if s not in registered)
        return changed

    def _handle_stale(self, candidates: dict[str, list[str]]) -> None:
        for service in self.registry.services():
            if service in candidates:
                self._stale.discard(service)
                continue
            if self.settings.prune_stale:
                self.registry.remove(service)
                self._stale.discard(service)
                db.log_event("INFO", f"Removed service {service}: no running containers", service_name=service)
            elif service not in self._stale:
                self._stale.add(service)
                db.log_event("WARN", f"Service {service} has no running containers", service_name=service)

    def sort_by_age(self, container_ids: list[str]) -> list[str]:
        """Oldest-started container first, ties broken by id."""
        if not container_ids:
            return []
        workers = max(1, min(self.settings.inspect_workers, len(container_ids)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            states = list(pool.map(self.runtime.inspect, container_ids))
        states.sort(key=lambda s: (s.started_at, s.id))
        return [s.id for s in states]

    def remap(self, index: int, service: str, container_ids: list[str], now: float) -> float:
        next_due_at = now + self.settings.initial_debounce_s + index * self.settings.service_reroll_distance_s
        self.registry.commit(service, container_ids, next_due_at)
        lines = "\n".join(f"✘ {service} => {cid}" for cid in container_ids)
        db.log_event("INFO", f"Reloading service map..\n{lines}", service_name=service)
        return next_due_at
