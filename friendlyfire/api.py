from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from . import db
from .api_models import EngineStatus, Event, ServiceStatus
from .engine import FriendlyFire
from .registry import iso_ts


def create_app(engine: FriendlyFire) -> FastAPI:
    """Read-only view of the rollover schedule."""
    app = FastAPI(title="friendlyfire")

    @app.get("/health", response_model=EngineStatus)
    def health() -> EngineStatus:
        return EngineStatus(
            services=list(engine.settings.services),
            pass_active=engine.registry.busy,
        )

    @app.get("/services", response_model=list[ServiceStatus])
    def services() -> list[ServiceStatus]:
        now = engine.clock()
        return [
            ServiceStatus(
                service=name,
                container_ids=st.container_ids,
                next_due_at=iso_ts(st.next_due_at),
                due_in_s=round(st.next_due_at - now, 3),
            )
            for name, st in engine.registry.snapshot().items()
        ]

    @app.get("/services/{service}", response_model=ServiceStatus)
    def service(service: str) -> ServiceStatus:
        st = engine.registry.get(service.lower())
        if st is None:
            raise HTTPException(status_code=404, detail=f"unknown service '{service}'")
        return ServiceStatus(
            service=service.lower(),
            container_ids=st.container_ids,
            next_due_at=iso_ts(st.next_due_at),
            due_in_s=round(st.next_due_at - engine.clock(), 3),
        )

    @app.get("/events", response_model=list[Event])
    def events(limit: int = Query(100, ge=1, le=1000), service: str | None = None) -> list[dict]:
        return db.latest_events(limit=limit, service_name=service.lower() if service else None)

    return app
