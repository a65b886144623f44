"""
Auth flow controller — register, login, fetch and update users.

Each public method is one request's worth of sequential async steps.
Business-rule failures are raised as ``auth.errors`` subclasses straight
away; store failures are logged once here and re-raised as generic
server errors.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict

from auth.errors import (
    ConflictError,
    CreationFailedError,
    ForbiddenError,
    ResourceNotFoundError,
    StorageError,
    UnauthorizedError,
    UnknownAccountError,
    ValidationFailedError,
)
from auth.jwt import TokenIssuer
from auth.password import hash_password, verify_password
from auth.schemas import (
    UserProfile,
    validate_login,
    validate_registration,
    validate_update,
)
from database.user_store import (
    DuplicateEmailError,
    RecordValidationError,
    StoreError,
    UserStore,
)

logger = logging.getLogger(__name__)


def _same_user(a: str, b: str) -> bool:
    """Compare ids by UUID value so case and hyphenation do not matter."""
    try:
        return uuid.UUID(str(a)) == uuid.UUID(str(b))
    except ValueError:
        return a == b


class AuthService:
    def __init__(self, store: UserStore, tokens: TokenIssuer) -> None:
        self.store = store
        self.tokens = tokens

    async def register(self, payload: Any) -> str:
        """Create an account and return a bearer token for it."""
        req = validate_registration(payload)

        try:
            existing = await self.store.find_by_email(req.email)
        except StoreError:
            logger.exception("User lookup failed during registration")
            raise StorageError("Unable to verify account uniqueness") from None
        if existing is not None:
            raise ConflictError()

        password_hash = await asyncio.to_thread(hash_password, req.password)

        try:
            user = await self.store.create(req.name, req.email, password_hash)
        except DuplicateEmailError:
            # Lost a race with a concurrent registration for the same email.
            raise ConflictError() from None
        except RecordValidationError as exc:
            raise ValidationFailedError(str(exc)) from None
        except StoreError:
            logger.exception("User creation failed")
            raise StorageError("User could not be created") from None

        if user is None:
            logger.error("Store returned no record for new user")
            raise CreationFailedError()

        logger.info("Registered user %s", user.user_id)
        return self.tokens.issue(str(user.user_id))

    async def login(self, payload: Any) -> str:
        """Check credentials and return a fresh bearer token."""
        req = validate_login(payload)

        try:
            user = await self.store.find_by_email(req.email)
        except StoreError:
            logger.exception("User lookup failed during login")
            raise StorageError("Unable to fetch user") from None

        if user is None:
            raise UnknownAccountError()

        matched = await asyncio.to_thread(
            verify_password, req.password, user.password_hash
        )
        if not matched:
            raise UnauthorizedError()

        logger.info("Login: %s", user.user_id)
        return self.tokens.issue(str(user.user_id))

    async def get_user(self, user_id: str) -> UserProfile:
        try:
            user = await self.store.find_by_id(user_id)
        except StoreError:
            logger.exception("Fetching user %s failed", user_id)
            raise StorageError("Error fetching user") from None
        if user is None:
            raise ResourceNotFoundError()
        return UserProfile.model_validate(user)

    async def current_user(self, user_id: str) -> UserProfile:
        """Profile of the token's subject."""
        return await self.get_user(user_id)

    async def update_user(
        self, user_id: str, payload: Any, actor_id: str | None = None
    ) -> UserProfile:
        """
        Apply a partial update.  ``actor_id`` is the authenticated caller;
        when given it must match ``user_id``.
        """
        if actor_id is not None and not _same_user(actor_id, user_id):
            raise ForbiddenError()

        fields: Dict[str, Any] = validate_update(payload)
        if "password" in fields:
            fields["password_hash"] = await asyncio.to_thread(
                hash_password, fields.pop("password")
            )

        try:
            user = await self.store.update_by_id(user_id, fields)
        except DuplicateEmailError:
            raise ConflictError("Email already in use") from None
        except RecordValidationError as exc:
            raise ValidationFailedError(str(exc)) from None
        except StoreError:
            logger.exception("Updating user %s failed", user_id)
            raise StorageError("Error updating user") from None

        if user is None:
            raise ResourceNotFoundError()

        logger.info("Updated user %s", user_id)
        return UserProfile.model_validate(user)
