"""In-process user store guarded by a single lock."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from userapi.domain.filters import UserFilter
from userapi.domain.users import User, as_utc
from userapi.repositories.base import ConflictError, NotFoundError, UserRepository

logger = logging.getLogger(__name__)


def _stored(user: User, deleted: Optional[datetime]) -> User:
    return replace(user, birthday=as_utc(user.birthday), deleted=deleted)


class MemoryRepository(UserRepository):
    """Keeps users in a list; every operation runs under one lock."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: list[User] = [_stored(u, as_utc(u.deleted)) for u in users]
        self._lock = threading.Lock()
        self._closed = False

    def list_users(self, user_filter: UserFilter) -> list[User]:
        with self._lock:
            return [replace(u) for u in self._users if user_filter.matches(u)]

    def get_user(self, email: str) -> Optional[User]:
        with self._lock:
            found = self._find_active(email)
            return replace(found) if found else None

    def create_user(self, user: User) -> None:
        with self._lock:
            if self._find_active(user.email) is not None:
                raise ConflictError(f"user with the same .email already exists: {user.email}")
            self._users.append(_stored(user, None))

    def modify_user(self, user: User) -> None:
        with self._lock:
            for idx, current in enumerate(self._users):
                if current.active and current.email == user.email:
                    self._users[idx] = _stored(user, None)
                    return
        raise NotFoundError(f"user not found: {user.email}")

    def delete_user(self, email: str) -> None:
        with self._lock:
            for idx, current in enumerate(self._users):
                if current.active and current.email == email:
                    self._users[idx] = replace(current, deleted=datetime.now(timezone.utc))
                    return
        raise NotFoundError(f"user not found: {email}")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            logger.debug("memory repository closed (%d users)", len(self._users))

    def _find_active(self, email: str | None) -> Optional[User]:
        for u in self._users:
            if u.active and u.email == email:
                return u
        return None
