from __future__ import annotations

import logging
import sys
import threading

from . import db
from .engine import FriendlyFire
from .settings import ConfigError, Settings


def _serve(engine: FriendlyFire, settings: Settings) -> None:
    if settings.api_port:
        import uvicorn

        from .api import create_app

        uvicorn.run(create_app(engine), host=settings.api_host, port=settings.api_port, log_level="warning")
    else:
        # Runs until killed.
        threading.Event().wait()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    print("~~~~~~ friendlyfire ~~~~~~\n")

    try:
        settings = Settings().validate()
    except ConfigError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 2

    db.configure(settings.db_path)
    db.init_db()

    engine = FriendlyFire(settings)
    if not engine.runtime.ping():
        db.log_event("WARN", "Docker did not answer ping; discovery will keep retrying")
    engine.start()

    _serve(engine, settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
