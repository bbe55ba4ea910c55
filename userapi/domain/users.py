"""User record, its wire format and validation rules."""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Optional

# Closed set of technologies; filters and error messages derive from it.
TECHNOLOGIES = ("go", "java", "js", "php")

TEXT_FIELDS = ("name", "surname", "email", "password", "address", "phone", "technology")
DATETIME_FIELDS = ("birthday", "deleted")


class ValidationError(Exception):
    """Raised when a user record has a missing or disallowed field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass
class User:
    """
    One person record. ``None`` means the field was not provided, which is
    different from an empty string. ``deleted`` is set only by storage.
    """

    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    # FIXME: stored in clear
    password: Optional[str] = None
    birthday: Optional[datetime] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    technology: Optional[str] = None
    deleted: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.deleted is None


def is_valid_technology(value: str | None) -> bool:
    return value in TECHNOLOGIES


def validate_user(user: User) -> None:
    """
    Check a candidate record before it enters storage.

    Rules are checked in a fixed order and the first violation is raised as
    ValidationError; the message always names the offending field:

    - all fields except ``phone`` and ``deleted`` are mandatory
    - ``email`` must contain an ``@``
    - ``technology`` must be one of TECHNOLOGIES
    - ``deleted`` must be empty
    """
    if user.name is None:
        raise ValidationError("name", ".name mandatory field is missing")
    if user.surname is None:
        raise ValidationError("surname", ".surname mandatory field is missing")
    if user.email is None:
        raise ValidationError("email", ".email mandatory field is missing")
    if "@" not in user.email:
        raise ValidationError("email", ".email is not a valid email address")
    if user.password is None:
        raise ValidationError("password", ".password mandatory field is missing")
    if user.birthday is None:
        raise ValidationError("birthday", ".birthday mandatory field is missing")
    if user.address is None:
        raise ValidationError("address", ".address mandatory field is missing")
    if user.technology is None:
        raise ValidationError("technology", ".technology mandatory field is missing")
    if not is_valid_technology(user.technology):
        raise ValidationError("technology", ".technology must be one of: " + " ".join(TECHNOLOGIES))
    if user.deleted is not None:
        raise ValidationError("deleted", ".deleted must be empty")


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into UTC, accepting a trailing ``Z``."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def user_from_payload(payload: Any) -> User:
    """Decode a JSON object into a User. Missing keys and nulls become None."""
    if not isinstance(payload, dict):
        raise ValidationError("user", "user must be a JSON object")
    values: dict[str, Any] = {}
    for name in TEXT_FIELDS:
        value = payload.get(name)
        if value is not None and not isinstance(value, str):
            raise ValidationError(name, f".{name} must be a string")
        values[name] = value
    for name in DATETIME_FIELDS:
        value = payload.get(name)
        if value is None:
            values[name] = None
            continue
        if not isinstance(value, str):
            raise ValidationError(name, f".{name} must be an ISO 8601 date-time string")
        try:
            values[name] = parse_datetime(value)
        except ValueError:
            raise ValidationError(name, f".{name} is not a valid ISO 8601 date-time") from None
    return User(**values)


def user_to_payload(user: User) -> dict:
    """Encode a User as a JSON-ready dict; empty optional fields are omitted."""
    out: dict[str, Any] = {}
    for f in fields(user):
        value = getattr(user, f.name)
        if value is None and f.name in ("phone", "deleted"):
            continue
        if isinstance(value, datetime):
            value = value.isoformat()
        out[f.name] = value
    return out
