from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="friendlyfire status CLI")
    p.add_argument("--api", default="http://localhost:8080", help="Status API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("health", help="Show engine status")

    s_svc = sub.add_parser("services", help="Show the rollover schedule")
    s_svc.add_argument("service", nargs="?", help="Only this service")

    s_ev = sub.add_parser("events", help="Show recent events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--service")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "health":
        r = requests.get(f"{base}/health", timeout=10)
    elif args.cmd == "services":
        path = f"/services/{args.service}" if args.service else "/services"
        r = requests.get(f"{base}{path}", timeout=10)
    elif args.cmd == "events":
        params = {"limit": args.limit}
        if args.service:
            params["service"] = args.service
        r = requests.get(f"{base}/events", params=params, timeout=10)
    else:
        return 2

    _print(r.json())
    return 0 if r.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
