"""
Error taxonomy for the authentication flow.

Two tiers sit under ``AuthFlowError``:

  • ``ClientInputError`` — the request body is missing data, malformed,
    or collides with an existing account.
  • ``AuthError`` — the caller's identity could not be established.

``ResourceNotFoundError`` and ``ServerError`` cover lookups by id and
persistence failures.  Every error renders to ``{"error", "message"}``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import status


class AuthFlowError(Exception):
    kind: str = "error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


# ── Client input ───────────────────────────────────────────────────────


class ClientInputError(AuthFlowError):
    kind = "client_input"
    status_code = status.HTTP_400_BAD_REQUEST


class MissingFieldError(ClientInputError):
    kind = "missing_field"
    default_message = "All fields required"


class ValidationFailedError(ClientInputError):
    kind = "validation_failed"
    default_message = "Data validation failed"


class ConflictError(ClientInputError):
    kind = "conflict"
    default_message = "User already exists"


# ── Identity ───────────────────────────────────────────────────────────


class AuthError(AuthFlowError):
    kind = "auth"
    status_code = status.HTTP_401_UNAUTHORIZED


class UnknownAccountError(AuthError):
    """Login with an email nobody registered."""

    kind = "not_found"
    default_message = "No user exists"


class UnauthorizedError(AuthError):
    kind = "unauthorized"
    default_message = "Password not matched"


class InvalidTokenError(AuthError):
    kind = "invalid_token"
    default_message = "Invalid or expired token"


class ForbiddenError(AuthError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed to modify another user"


# ── Lookup / server ────────────────────────────────────────────────────


class ResourceNotFoundError(AuthFlowError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class ServerError(AuthFlowError):
    kind = "server_error"


class StorageError(ServerError):
    kind = "storage_error"
    default_message = "Storage unavailable"


class CreationFailedError(ServerError):
    kind = "creation_failed"
    default_message = "User could not be created"
