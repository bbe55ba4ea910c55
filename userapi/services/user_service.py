"""
User CRUD use cases.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from userapi.domain.filters import parse_user_filter
from userapi.domain.users import User, ValidationError, user_from_payload, validate_user
from userapi.repositories.base import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Validates inbound records and query criteria before they reach storage."""

    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository

    def list_users(self, query: Mapping[str, str]) -> list[User]:
        user_filter = parse_user_filter(query)
        return self.repository.list_users(user_filter)

    def get_user(self, email: str) -> Optional[User]:
        return self.repository.get_user(email)

    def create_user(self, payload: Any) -> User:
        user = user_from_payload(payload)
        validate_user(user)
        self.repository.create_user(user)
        logger.info("created user %s", user.email)
        return user

    def modify_user(self, email: str, payload: Any) -> User:
        user = user_from_payload(payload)
        validate_user(user)
        # Email is the identity; it cannot be changed through modify.
        if user.email != email:
            raise ValidationError("email", f".email {user.email!r} does not match the modified user {email!r}")
        self.repository.modify_user(user)
        logger.info("modified user %s", email)
        return user

    def delete_user(self, email: str) -> None:
        self.repository.delete_user(email)
        logger.info("deleted user %s", email)

    def close(self) -> None:
        self.repository.close()
