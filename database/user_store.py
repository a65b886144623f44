"""
User store — the persistence contract the auth flow depends on.

``UserStore`` is the abstract interface; ``SqlAlchemyUserStore`` backs it
with the async engine and ``InMemoryUserStore`` keeps records in a dict
for tests and local runs.  Email uniqueness is enforced here, atomically,
so callers may treat their own existence checks as advisory.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import User
from database.session import session_scope

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = frozenset({"name", "email", "password_hash"})


class StoreError(Exception):
    """The persistence layer failed (distinct from "not found")."""


class DuplicateEmailError(StoreError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


class RecordValidationError(StoreError):
    """A field-level validator rejected a write."""


def _to_uuid(value: str | uuid.UUID) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _check_writable(fields: Mapping[str, Any]) -> None:
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise RecordValidationError(f"Fields not writable: {sorted(unknown)}")


class UserStore(ABC):
    """Abstract async CRUD contract for user records."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create(self, name: str, email: str, password_hash: str) -> Optional[User]:
        """
        Insert a new record and return it.

        Raises ``DuplicateEmailError`` if the email is taken.
        """
        ...

    @abstractmethod
    async def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> Optional[User]:
        """
        Apply ``fields`` to the record and return the updated record, or
        ``None`` when no record has that id.
        """
        ...


# ── SQLAlchemy ─────────────────────────────────────────────────────────


class SqlAlchemyUserStore(UserStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(select(User).where(User.email == email))
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"find_by_email failed: {exc}") from exc

    async def find_by_id(self, user_id: str) -> Optional[User]:
        uid = _to_uuid(user_id)
        if uid is None:
            return None
        try:
            async with session_scope(self._session_factory) as session:
                return await session.get(User, uid)
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"find_by_id failed: {exc}") from exc

    async def create(self, name: str, email: str, password_hash: str) -> Optional[User]:
        try:
            async with session_scope(self._session_factory) as session:
                user = User(
                    user_id=uuid.uuid4(),
                    name=name,
                    email=email,
                    password_hash=password_hash,
                )
                session.add(user)
                await session.flush()
                return user
        except ValueError as exc:
            raise RecordValidationError(str(exc)) from exc
        except IntegrityError as exc:
            raise DuplicateEmailError(email) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"create failed: {exc}") from exc

    async def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> Optional[User]:
        _check_writable(fields)
        uid = _to_uuid(user_id)
        if uid is None:
            return None
        try:
            async with session_scope(self._session_factory) as session:
                user = await session.get(User, uid)
                if user is None:
                    return None
                for key, value in fields.items():
                    setattr(user, key, value)
                user.updated_at = datetime.now(timezone.utc)
                await session.flush()
                return user
        except ValueError as exc:
            raise RecordValidationError(str(exc)) from exc
        except IntegrityError as exc:
            raise DuplicateEmailError(str(fields.get("email", ""))) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"update_by_id failed: {exc}") from exc


# ── In-memory ──────────────────────────────────────────────────────────


class InMemoryUserStore(UserStore):
    """Dict-backed store.  Each method runs without awaiting, so the
    check-and-insert in ``create`` is atomic on the event loop."""

    def __init__(self) -> None:
        self._users: Dict[uuid.UUID, User] = {}

    def __len__(self) -> int:
        return len(self._users)

    def _email_owner(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    async def find_by_email(self, email: str) -> Optional[User]:
        return self._email_owner(email)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        uid = _to_uuid(user_id)
        return self._users.get(uid) if uid is not None else None

    async def create(self, name: str, email: str, password_hash: str) -> Optional[User]:
        if self._email_owner(email) is not None:
            raise DuplicateEmailError(email)
        now = datetime.now(timezone.utc)
        try:
            user = User(
                user_id=uuid.uuid4(),
                name=name,
                email=email,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
        except ValueError as exc:
            raise RecordValidationError(str(exc)) from exc
        self._users[user.user_id] = user
        return user

    async def update_by_id(self, user_id: str, fields: Mapping[str, Any]) -> Optional[User]:
        _check_writable(fields)
        uid = _to_uuid(user_id)
        current = self._users.get(uid) if uid is not None else None
        if current is None:
            return None
        merged = {
            "name": current.name,
            "email": current.email,
            "password_hash": current.password_hash,
            **fields,
        }
        owner = self._email_owner(merged["email"])
        if owner is not None and owner.user_id != uid:
            raise DuplicateEmailError(merged["email"])
        # Build a fresh record so a rejected field leaves the stored one intact.
        try:
            updated = User(
                user_id=uid,
                created_at=current.created_at,
                updated_at=datetime.now(timezone.utc),
                **merged,
            )
        except ValueError as exc:
            raise RecordValidationError(str(exc)) from exc
        self._users[uid] = updated
        logger.debug("Updated user %s fields=%s", uid, sorted(fields))
        return updated
