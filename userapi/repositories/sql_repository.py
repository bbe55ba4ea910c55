"""User store backed by SQLAlchemy."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from userapi.db.models import UserRow
from userapi.db.session import Base, create_db_engine, make_sessionmaker, session_scope
from userapi.domain.filters import UserFilter
from userapi.domain.users import User, as_utc, validate_user
from userapi.repositories.base import ConflictError, NotFoundError, StorageError, UserRepository

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("name", "surname", "password", "birthday", "address", "phone", "technology")


def _row_to_user(row: UserRow) -> User:
    return User(
        name=row.name,
        surname=row.surname,
        email=row.email,
        password=row.password,
        birthday=as_utc(row.birthday),
        address=row.address,
        phone=row.phone,
        technology=row.technology,
        deleted=as_utc(row.deleted),
    )


class SQLRepository(UserRepository):
    """
    Users in a relational table. Uniqueness of active emails is enforced by
    the partial index ``users_only_one_active``, so concurrent creates are
    settled by the database, not by this process.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = make_sessionmaker(engine)
        self._closed = False
        self._close_lock = threading.Lock()

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False, create_schema: bool = True) -> "SQLRepository":
        engine = create_db_engine(url, echo=echo)
        if create_schema:
            try:
                Base.metadata.create_all(bind=engine)
            except SQLAlchemyError as exc:
                engine.dispose()
                raise StorageError("creating schema", exc) from exc
        return cls(engine)

    # -------------------------- reads --------------------------
    def list_users(self, user_filter: UserFilter) -> list[User]:
        stmt = select(UserRow).order_by(UserRow.id)
        if user_filter.technology is not None:
            stmt = stmt.where(UserRow.technology == user_filter.technology)
        if user_filter.deleted is True:
            stmt = stmt.where(UserRow.deleted.is_not(None))
        elif user_filter.deleted is False:
            stmt = stmt.where(UserRow.deleted.is_(None))
        try:
            with session_scope(self._sessions) as session:
                return [_row_to_user(row) for row in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as exc:
            logger.exception("list_users failed")
            raise StorageError("listing users", exc) from exc

    def get_user(self, email: str) -> Optional[User]:
        stmt = select(UserRow).where(UserRow.email == email, UserRow.deleted.is_(None))
        try:
            with session_scope(self._sessions) as session:
                rows = session.execute(stmt).scalars().all()
                users = [_row_to_user(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.exception("get_user(email=%r) failed", email)
            raise StorageError("getting user", exc) from exc

        if not users:
            return None
        if len(users) > 1:
            logger.critical("multiple active rows returned in get_user(email=%r): %d", email, len(users))
            raise StorageError("multiple active users share one email")
        return users[0]

    # -------------------------- writes --------------------------
    def create_user(self, user: User) -> None:
        entity = UserRow(
            name=user.name,
            surname=user.surname,
            email=user.email,
            password=user.password,
            birthday=as_utc(user.birthday),
            address=user.address,
            phone=user.phone,
            technology=user.technology,
            deleted=None,
        )
        try:
            with session_scope(self._sessions) as session:
                session.add(entity)
                session.commit()
        except IntegrityError as exc:
            if self._active_exists(user.email):
                raise ConflictError(f"user with the same .email already exists: {user.email}", exc) from exc
            logger.exception("create_user(email=%r) violated a constraint", user.email)
            raise StorageError("creating user", exc) from exc
        except SQLAlchemyError as exc:
            logger.exception("create_user(email=%r) failed", user.email)
            raise StorageError("creating user", exc) from exc

    def modify_user(self, user: User) -> None:
        values = {name: getattr(user, name) for name in MUTABLE_FIELDS}
        values["birthday"] = as_utc(user.birthday)
        self._update_active(user.email, values, action="modifying")

    def delete_user(self, email: str) -> None:
        self._update_active(email, {"deleted": datetime.now(timezone.utc)}, action="deleting")

    def insert_history(self, user: User) -> None:
        """
        Insert an already soft-deleted record (used when importing seed files).

        The other fields must pass validate_user; ValidationError otherwise.
        """
        if user.deleted is None:
            raise ValueError("insert_history needs a user with .deleted set")
        validate_user(replace(user, deleted=None))
        entity = UserRow(
            name=user.name,
            surname=user.surname,
            email=user.email,
            password=user.password,
            birthday=as_utc(user.birthday),
            address=user.address,
            phone=user.phone,
            technology=user.technology,
            deleted=as_utc(user.deleted),
        )
        try:
            with session_scope(self._sessions) as session:
                session.add(entity)
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("insert_history(email=%r) failed", user.email)
            raise StorageError("inserting deleted user", exc) from exc

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._engine.dispose()

    # -------------------------- helpers --------------------------
    def _update_active(self, email: str | None, values: dict, *, action: str) -> None:
        stmt = (
            update(UserRow)
            .where(UserRow.email == email, UserRow.deleted.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            with session_scope(self._sessions) as session:
                rows = session.execute(stmt).rowcount
                if rows > 1:
                    session.rollback()
                    logger.critical("multiple rows affected while %s user(email=%r): %d", action, email, rows)
                    raise StorageError(f"{action} user: multiple active users share one email")
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("%s user(email=%r) failed", action, email)
            raise StorageError(f"{action} user", exc) from exc
        if rows == 0:
            raise NotFoundError(f"user not found: {email}")

    def _active_exists(self, email: str | None) -> bool:
        stmt = select(UserRow.id).where(UserRow.email == email, UserRow.deleted.is_(None)).limit(1)
        try:
            with session_scope(self._sessions) as session:
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as exc:
            raise StorageError("checking for active user", exc) from exc
