"""List filter for user records and the parser for its query parameters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from userapi.domain.users import TECHNOLOGIES, User

MATCH_ANY = "*"
DELETED_ONLY = ("yes", "true")
ACTIVE_ONLY = ("", "no", "false")


class FilterParseError(Exception):
    """Raised when list query parameters cannot be turned into a UserFilter."""

    def __init__(self, param: str, message: str):
        super().__init__(message)
        self.param = param
        self.message = message


@dataclass(frozen=True)
class UserFilter:
    """
    Criteria for selecting users.

    ``technology``: None matches any value, otherwise an exact match.
    ``deleted``: None matches any record, True only soft-deleted ones,
    False only active ones.
    """

    technology: Optional[str] = None
    deleted: Optional[bool] = False

    def matches(self, user: User) -> bool:
        if self.technology is not None and user.technology != self.technology:
            return False
        if self.deleted is not None and (user.deleted is not None) != self.deleted:
            return False
        return True


def parse_user_filter(query: Mapping[str, str]) -> UserFilter:
    """Build a UserFilter from list query parameters. Unknown keys are ignored."""
    technology_raw = query.get("technology") or ""
    if technology_raw in ("", MATCH_ANY):
        technology = None
    elif technology_raw in TECHNOLOGIES:
        technology = technology_raw
    else:
        allowed = " ".join((MATCH_ANY,) + TECHNOLOGIES)
        raise FilterParseError("technology", f"'technology' query parameter must be one of: {allowed}")

    deleted_raw = query.get("deleted") or ""
    if deleted_raw == MATCH_ANY:
        deleted = None
    elif deleted_raw in DELETED_ONLY:
        deleted = True
    elif deleted_raw in ACTIVE_ONLY:
        deleted = False
    else:
        raise FilterParseError("deleted", "'deleted' query parameter must be one of: * yes no true false")

    return UserFilter(technology=technology, deleted=deleted)
