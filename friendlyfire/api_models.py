from __future__ import annotations

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    service: str = Field(..., description="Lower-cased service name")
    container_ids: list[str] = Field(default_factory=list, description="Restart order; head is next")
    next_due_at: str = Field(..., description="UTC timestamp the head container becomes due")
    due_in_s: float = Field(..., description="Seconds until due (negative when overdue)")


class EngineStatus(BaseModel):
    status: str = "healthy"
    services: list[str] = Field(default_factory=list, description="Configured allow-list")
    pass_active: bool = Field(False, description="A worker or discovery pass holds the schedule")


class Event(BaseModel):
    id: int
    ts: str
    level: str
    service_name: str | None = None
    container_id: str | None = None
    message: str
