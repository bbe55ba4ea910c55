#!/usr/bin/env python3
"""
Import users from a JSON seed file into the SQL store.

Invalid users and active users whose email is already taken are skipped;
soft-deleted users are inserted as history rows.

Usage:
  python scripts/import_users.py users.json [--database-url postgresql+psycopg2://...]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make the userapi package importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userapi.core.config import get_settings
from userapi.domain.users import ValidationError, validate_user
from userapi.repositories.base import ConflictError
from userapi.repositories.json_storage import load_users
from userapi.repositories.sql_repository import SQLRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Import users from JSON into the SQL store")
    ap.add_argument("path", help="JSON array of users")
    ap.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    args = ap.parse_args()

    url = (args.database_url or get_settings().database_url or "").strip()
    if not url:
        raise SystemExit("Pass --database-url or set DATABASE_URL")
    path = Path(args.path)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")

    users = load_users(path)
    repo = SQLRepository.from_url(url)
    created = skipped = history = 0
    try:
        for user in users:
            try:
                if user.deleted is not None:
                    repo.insert_history(user)
                    history += 1
                    continue
                validate_user(user)
                repo.create_user(user)
                created += 1
            except (ValidationError, ConflictError) as exc:
                print(f"  skip {user.email}: {exc}")
                skipped += 1
    finally:
        repo.close()

    print("OK: import finished")
    print(f"  created: {created}")
    print(f"  deleted (history): {history}")
    print(f"  skipped: {skipped}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI use
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
