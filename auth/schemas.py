"""
Pydantic schemas for the auth flow: request validation and the public
user projection.

The ``validate_*`` helpers run the missing-field precheck first and then
surface only the first violated rule's message.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
)
from pydantic_core import PydanticCustomError

from auth.errors import MissingFieldError, ValidationFailedError

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt ignores / rejects anything longer

# No TLD allow-list, so addresses like ``ada@test.local`` pass.
_EMAIL_RE = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9!#$%&'*+/=?^_`{|}~.-]+(?<!\.)"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+"
    r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$"
)
_PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$",
    re.ASCII,
)

UPDATABLE_FIELDS = ("name", "email", "password")

_M = TypeVar("_M", bound=BaseModel)


# ── Field rules ────────────────────────────────────────────────────────


def check_name(value: Optional[str]) -> str:
    if not value:
        raise PydanticCustomError("name_required", "Name is required")
    if len(value) < NAME_MIN_LENGTH:
        raise PydanticCustomError(
            "name_min", "Name must be at least 3 characters long"
        )
    if len(value) > NAME_MAX_LENGTH:
        raise PydanticCustomError(
            "name_max", "Name must not be more than 30 characters long"
        )
    return value


def check_email(value: Optional[str]) -> str:
    if not value:
        raise PydanticCustomError("email_required", "Email is required")
    if not _EMAIL_RE.fullmatch(value):
        raise PydanticCustomError(
            "email_format", "Email must be a valid email address"
        )
    return value


def check_password(value: Optional[str]) -> str:
    if not value:
        raise PydanticCustomError("password_required", "Password is required")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError(
            "password_min", "Password must be at least 8 characters long"
        )
    if len(value.encode()) > PASSWORD_MAX_BYTES:
        raise PydanticCustomError(
            "password_max", "Password must not be more than 72 bytes long"
        )
    if not _PASSWORD_RE.fullmatch(value):
        raise PydanticCustomError(
            "password_pattern",
            "Password must contain at least one uppercase, one lowercase, "
            "one number, and one special character",
        )
    return value


# ── Request schemas ────────────────────────────────────────────────────


Name = Annotated[str, AfterValidator(check_name)]
Email = Annotated[str, AfterValidator(check_email)]
Password = Annotated[str, AfterValidator(check_password)]


class RegisterRequest(BaseModel):
    name: Name
    email: Email
    password: Password


class LoginRequest(BaseModel):
    email: Email
    password: str

    @field_validator("password")
    @classmethod
    def _password_present(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_required", "Password is required")
        return value


class UserUpdateRequest(BaseModel):
    """Partial update; an explicit ``null`` is rejected like a wrong type."""

    model_config = ConfigDict(extra="forbid")

    name: Name = None  # type: ignore[assignment]
    email: Email = None  # type: ignore[assignment]
    password: Password = None  # type: ignore[assignment]


# ── Response schemas ───────────────────────────────────────────────────


class TokenResponse(BaseModel):
    token: str


class UserProfile(BaseModel):
    """What callers get back for a user; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


# ── Entry points ───────────────────────────────────────────────────────


def _first_message(exc: ValidationError) -> str:
    errors = exc.errors()
    return errors[0]["msg"] if errors else "Data validation failed"


def _parse(model: Type[_M], payload: Mapping[str, Any]) -> _M:
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        raise ValidationFailedError(_first_message(exc)) from None


def _require(payload: Any, fields: tuple) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationFailedError("Request body must be a JSON object")
    if not all(payload.get(field) for field in fields):
        raise MissingFieldError()
    return payload


def validate_registration(payload: Any) -> RegisterRequest:
    body = _require(payload, ("name", "email", "password"))
    return _parse(RegisterRequest, {k: body[k] for k in ("name", "email", "password")})


def validate_login(payload: Any) -> LoginRequest:
    body = _require(payload, ("email", "password"))
    return _parse(LoginRequest, {k: body[k] for k in ("email", "password")})


def validate_update(payload: Any) -> Dict[str, Any]:
    """Return only the fields the caller supplied, validated."""
    if not isinstance(payload, Mapping):
        raise ValidationFailedError("Request body must be a JSON object")
    for key in payload:
        if key not in UPDATABLE_FIELDS:
            raise ValidationFailedError(f"Field '{key}' cannot be updated")
    if not payload:
        raise ValidationFailedError("No updatable fields supplied")
    return _parse(UserUpdateRequest, payload).model_dump(exclude_unset=True)
