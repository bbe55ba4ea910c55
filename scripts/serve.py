#!/usr/bin/env python3
"""
Run the user API with uvicorn.

Usage:
  python scripts/serve.py [--host 0.0.0.0] [--port 8080] [--store memory|sql] [--database-url URL] [--seed users.json]
"""
from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

# Make the userapi package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import uvicorn

from userapi.app import create_app
from userapi.core.config import STORE_MEMORY, STORE_SQL, get_settings


def main() -> None:
    ap = argparse.ArgumentParser(description="Serve the user API")
    ap.add_argument("--host", default="127.0.0.1", help="address to listen on")
    ap.add_argument("--port", type=int, default=8080, help="port to listen on")
    ap.add_argument("--store", choices=(STORE_MEMORY, STORE_SQL), help="storage backend (default: USER_STORE)")
    ap.add_argument("--database-url", help="SQLAlchemy URL for the sql store (default: DATABASE_URL)")
    ap.add_argument("--seed", help="JSON seed file for the memory store (default: SEED_FILE)")
    ap.add_argument("--request-log", help="append request lines to this file (default: REQUEST_LOG)")
    args = ap.parse_args()

    settings = get_settings()
    overrides = {}
    if args.store:
        overrides["user_store"] = args.store
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.seed:
        overrides["seed_file"] = args.seed
    if args.request_log:
        overrides["request_log"] = args.request_log
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    if settings.user_store == STORE_SQL and not settings.database_url:
        raise SystemExit("--database-url (or DATABASE_URL) is required with --store sql")

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
