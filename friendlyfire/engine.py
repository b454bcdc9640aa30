from __future__ import annotations

import time
from typing import Callable

from . import db
from .discovery import Discovery
from .docker_ops import DockerRuntime
from .registry import ServiceRegistry
from .settings import Settings
from .worker import RolloverWorker


class FriendlyFire:
    """One registry, one discovery loop, one rollover worker."""

    def __init__(
        self,
        settings: Settings,
        runtime: DockerRuntime | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings.validate()
        self.runtime = runtime or DockerRuntime(
            host=settings.docker_host,
            port=settings.docker_port,
            stop_timeout_s=settings.stop_timeout_s,
        )
        self.clock = clock
        self.registry = ServiceRegistry()
        self.discovery = Discovery(self.registry, self.runtime, settings, clock=clock)
        self.worker = RolloverWorker(self.registry, self.runtime, settings, clock=clock)

    def start(self) -> None:
        db.log_event("INFO", f"Managing services: {', '.join(self.settings.services)}")
        self.discovery.start()
        self.worker.start()

    def stop(self) -> None:
        self.discovery.stop()
        self.worker.stop()
