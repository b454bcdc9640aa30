from __future__ import annotations

import os
from dataclasses import dataclass, field


class ConfigError(Exception):
    pass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_services(raw: str | None) -> tuple[str, ...]:
    """Split a comma separated service list, lower-cased, blanks and repeats dropped."""
    if not raw:
        return ()
    out: list[str] = []
    for part in raw.lower().split(","):
        name = part.strip()
        if name and name not in out:
            out.append(name)
    return tuple(out)


@dataclass(frozen=True)
class Settings:
    # Managed services
    services: tuple[str, ...] = field(default_factory=lambda: parse_services(os.getenv("FF_SERVICES")))
    service_label: str = field(default_factory=lambda: os.getenv("FF_SERVICE_LABEL", "com.docker.compose.service"))

    # Docker connection; both must be set, otherwise docker.from_env() is used.
    docker_host: str | None = field(default_factory=lambda: os.getenv("FF_DOCKER_HOST"))
    docker_port: str | None = field(default_factory=lambda: os.getenv("FF_DOCKER_PORT"))
    stop_timeout_s: int = field(default_factory=lambda: _env_int("FF_STOP_TIMEOUT_S", 10))

    # Schedule
    rollover_interval_s: float = field(default_factory=lambda: _env_float("FF_ROLLOVER_INTERVAL_S", 30 * 60))
    initial_debounce_s: float = field(default_factory=lambda: _env_float("FF_INITIAL_DEBOUNCE_S", 5 * 60))
    service_reroll_distance_s: float = field(
        default_factory=lambda: _env_float("FF_SERVICE_REROLL_DISTANCE_S", 5 * 60)
    )

    # Loops
    discovery_interval_s: float = field(default_factory=lambda: _env_float("FF_DISCOVERY_INTERVAL_S", 5))
    worker_tick_s: float = field(default_factory=lambda: _env_float("FF_WORKER_TICK_S", 2))
    busy_poll_s: float = field(default_factory=lambda: _env_float("FF_BUSY_POLL_S", 1))
    inspect_workers: int = field(default_factory=lambda: _env_int("FF_INSPECT_WORKERS", 8))

    # Services that vanish from docker are kept (and reported) unless pruning is on.
    prune_stale: bool = field(default_factory=lambda: _env_bool("FF_PRUNE_STALE", False))

    # Event log
    db_path: str = field(default_factory=lambda: os.getenv("FF_DB_PATH", "friendlyfire.db"))

    # Status API (disabled unless a port is given)
    api_host: str = field(default_factory=lambda: os.getenv("FF_API_HOST", "0.0.0.0"))
    api_port: int | None = field(default_factory=lambda: _env_int("FF_API_PORT", 0) or None)

    # Email alerting (optional)
    enable_email: bool = field(default_factory=lambda: _env_bool("FF_ENABLE_EMAIL", False))
    smtp_host: str = field(default_factory=lambda: os.getenv("FF_SMTP_HOST", "smtp.gmail.com"))
    smtp_port: int = field(default_factory=lambda: _env_int("FF_SMTP_PORT", 587))
    smtp_user: str | None = field(default_factory=lambda: os.getenv("FF_SMTP_USER"))
    smtp_password: str | None = field(default_factory=lambda: os.getenv("FF_SMTP_PASSWORD"))
    email_from: str | None = field(default_factory=lambda: os.getenv("FF_EMAIL_FROM"))
    email_to: str | None = field(default_factory=lambda: os.getenv("FF_EMAIL_TO"))

    def validate(self) -> "Settings":
        if not self.services:
            raise ConfigError("Invalid services given. Set FF_SERVICES to a comma separated list of service names.")
        return self


settings = Settings()
