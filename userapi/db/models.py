"""SQLAlchemy models for the user store."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from .session import Base


class UserRow(Base):
    """One row per user record, soft-deleted history included."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    surname = Column(Text, nullable=False)
    email = Column(String(255), nullable=False)
    password = Column(Text, nullable=False)
    birthday = Column(DateTime(timezone=True), nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    technology = Column(String(16), nullable=False)
    deleted = Column(DateTime(timezone=True), nullable=True)


# Only one active row per email; soft-deleted rows may share it.
Index(
    "users_only_one_active",
    UserRow.email,
    unique=True,
    postgresql_where=UserRow.deleted.is_(None),
    sqlite_where=UserRow.deleted.is_(None),
)
Index("users_email", UserRow.email)
