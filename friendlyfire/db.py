from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime
from typing import Any

from .settings import settings

logger = logging.getLogger("friendlyfire")

_LEVELS = {"DEBUG": logging.DEBUG, "INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}

_db_path: str | None = None


def utc_now() -> str:
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


def configure(db_path: str | None) -> None:
    """Point the event log at another sqlite file; None falls back to settings.db_path."""
    global _db_path
    _db_path = db_path


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    Docker creates a *directory* when a bind-mounted file path does not
    exist yet; in that case the DB file is placed inside it.
    """

    p = os.path.abspath(_db_path or settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "friendlyfire.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist."""
    with connect() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              service_name TEXT,
              container_id TEXT,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            CREATE INDEX IF NOT EXISTS idx_events_service ON events(service_name);
            """
        )


def log_event(level: str, message: str, service_name: str | None = None, container_id: str | None = None) -> None:
    level = level.upper()
    logger.log(_LEVELS.get(level, logging.INFO), message)
    with connect() as conn:
        conn.execute(
            "INSERT INTO events (ts, level, service_name, container_id, message) VALUES (?, ?, ?, ?, ?)",
            (utc_now(), level, service_name, container_id, message),
        )


def latest_events(limit: int = 100, service_name: str | None = None) -> list[dict[str, Any]]:
    with connect() as conn:
        if service_name:
            rows = conn.execute(
                "SELECT * FROM events WHERE service_name=? ORDER BY id DESC LIMIT ?",
                (service_name, limit),
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
