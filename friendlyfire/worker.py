from __future__ import annotations

import time
from threading import Thread
from typing import Callable

from . import db
from .alerts import rollover_failed
from .docker_ops import DockerRuntime, short_id
from .registry import ServiceRegistry
from .settings import Settings


class RolloverWorker:
    """Restarts the head container of every due service, one service at a time."""

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
        self.current_service: str | None = None  # service being restarted, for failure reports
        self._stop = False
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop = False
        self._thr = Thread(target=self._loop, name="ff-worker", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop = True

    def _loop(self) -> None:
        db.log_event("INFO", "Rollover worker started")
        while not self._stop:
            try:
                self.tick()
            except Exception as e:
                service = self.current_service
                msg = f"Rollover pass failed: {type(e).__name__}: {e}"
                db.log_event("ERROR", msg, service_name=service)
                if self.settings.enable_email:
                    rollover_failed(service, msg, self.settings)
            time.sleep(max(0.1, self.settings.worker_tick_s))

    def tick(self) -> int:
        """Run one pass unless one is already in progress. Returns the number of restarts."""
        if not self.registry.try_begin_pass():
            return 0
        try:
            return self._pass()
        finally:
            self.registry.end_pass()

    def _pass(self) -> int:
        now = self.clock()
        acted = 0
        self.current_service = None
        for service in self.registry.services():
            st = self.registry.get(service)
            if st is None or not st.container_ids or not st.next_due_at < now:
                continue

            next_due_at = now + self.settings.rollover_interval_s + acted * self.settings.service_reroll_distance_s
            head = st.container_ids[0]
            rotated = st.container_ids[1:] + [head]
            self.registry.commit(service, rotated, next_due_at)
            acted += 1

            self.current_service = service
            self._restart(service, head)
        self.current_service = None
        return acted

    def _restart(self, service: str, container_id: str) -> None:
        display = short_id(container_id)
        db.log_event("INFO", f"✔ Stopping {display} of service {service}...", service_name=service, container_id=container_id)
        self.runtime.stop(container_id)
        db.log_event("INFO", f"✔ Starting {display} of service {service}...", service_name=service, container_id=container_id)
        self.runtime.start(container_id)
        db.log_event("INFO", f"Started {display} of service {service}", service_name=service, container_id=container_id)
