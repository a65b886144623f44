"""
JWT-style token creation and verification.

Tokens are base64url-encoded JSON payloads signed with HMAC-SHA256.
Secret key is loaded from ``config.jwt_secret`` (env var: ``JWT_SECRET``).
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Any, Dict, Optional

from auth.errors import InvalidTokenError
from config.settings import config


class TokenIssuer:
    """Issue and verify bearer tokens carrying ``sub``, ``iat`` and ``exp``."""

    def __init__(self, secret: str, expiry_seconds: int) -> None:
        if not secret or not secret.strip():
            raise ValueError("Token secret must be non-empty")
        self._secret = secret.encode()
        self.expiry_seconds = expiry_seconds

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user_id: str, now: Optional[int] = None) -> str:
        """Create a signed token containing ``user_id`` and expiry."""
        issued_at = int(time.time()) if now is None else now
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.expiry_seconds,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode()
        return urlsafe_b64encode(raw).decode() + "." + self._sign(raw)

    @staticmethod
    def decode(token: str) -> Dict[str, Any]:
        """Return the payload without checking the signature."""
        body = token.split(".", 1)[0]
        return json.loads(urlsafe_b64decode(body.encode()))

    def verify(self, token: str) -> str:
        """
        Verify token and return the subject (user id).

        Raises ``InvalidTokenError`` on malformed, tampered or expired tokens.
        """
        try:
            parts = token.split(".", 1)
            if len(parts) != 2:
                raise ValueError("bad format")
            raw = urlsafe_b64decode(parts[0].encode())
            if not hmac.compare_digest(parts[1], self._sign(raw)):
                raise ValueError("bad signature")
            payload = json.loads(raw)
            if payload.get("exp", 0) < time.time():
                raise ValueError("token expired")
            subject = payload.get("sub")
            if not subject:
                raise ValueError("missing subject")
            return str(subject)
        except (ValueError, TypeError, AttributeError) as exc:
            raise InvalidTokenError(f"Invalid or expired token: {exc}") from exc


def build_token_issuer() -> TokenIssuer:
    return TokenIssuer(config.jwt_secret, config.jwt_expiry_seconds)
