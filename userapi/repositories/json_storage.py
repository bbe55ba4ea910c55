"""
JSON seed files for user stores.

A seed file is a JSON array of user objects in the wire format, soft-deleted
records included. It is used to pre-populate the memory store and by
``scripts/import_users.py`` to load the SQL store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from userapi.domain.users import User, user_from_payload, user_to_payload


def load_users(path: str | Path) -> list[User]:
    file = Path(path)
    if not file.exists():
        return []
    with file.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{file}: expected a JSON array of users")
    return [user_from_payload(item) for item in data]


def dump_users(path: str | Path, users: Iterable[User]) -> None:
    payload = [user_to_payload(u) for u in users]
    Path(path).write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
