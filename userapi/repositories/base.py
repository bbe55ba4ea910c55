"""Storage contract for user records and the errors backends raise."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from userapi.domain.filters import UserFilter
from userapi.domain.users import User


class StorageError(Exception):
    """Unspecified storage failure (connectivity, encoding, broken invariants)."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConflictError(StorageError):
    """An active user with the same email already exists."""


class NotFoundError(StorageError):
    """No active user with the requested email exists."""


class UserRepository(ABC):
    """
    Operations every user store provides.

    Implementations must be safe under concurrent calls and must keep at most
    one active user (``deleted is None``) per email. Records handed out are
    copies; mutating them never changes stored state.
    """

    @abstractmethod
    def list_users(self, user_filter: UserFilter) -> list[User]:
        """Return every user matching ``user_filter``; may be empty."""

    @abstractmethod
    def get_user(self, email: str) -> Optional[User]:
        """Return the active user with ``email``, or None."""

    @abstractmethod
    def create_user(self, user: User) -> None:
        """Insert an active user. Raises ConflictError if the email is taken."""

    @abstractmethod
    def modify_user(self, user: User) -> None:
        """Replace the active user identified by ``user.email``. Raises NotFoundError."""

    @abstractmethod
    def delete_user(self, email: str) -> None:
        """Soft-delete the active user with ``email``. Raises NotFoundError."""

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call more than once."""
