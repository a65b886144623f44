"""
Client session guard.

``SessionGuard.load()`` is the single authoritative load of the current
user; ``logout()`` is the explicit invalidation.  Views receive the
resulting ``SessionContext`` as an argument rather than reading shared
global state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from client.api import ApiClient, ApiError, NotAuthenticated

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class SessionContext:
    user: Optional[Dict[str, Any]] = None

    @property
    def is_active(self) -> bool:
        return bool(self.user)


@dataclass(frozen=True)
class Redirect:
    to: str
    replace: bool = True


class SessionGuard:
    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self._context = SessionContext()

    @property
    def context(self) -> SessionContext:
        return self._context

    async def load(self) -> SessionContext:
        """
        Fetch the current profile with the stored token.

        Any failure (no token, rejected token, network error) leaves an
        empty session; nothing is raised to the caller.
        """
        try:
            user = await self.api.fetch_profile()
        except NotAuthenticated:
            logger.debug("No stored token; starting signed out")
            user = None
        except (ApiError, httpx.HTTPError, ValueError) as exc:
            logger.info("Session load failed: %s", exc)
            user = None
        self._context = SessionContext(user=user or None)
        return self._context

    refresh = load

    async def login(self, email: str, password: str) -> SessionContext:
        """Log in and reload the session.  Login failures propagate."""
        await self.api.login(email, password)
        return await self.load()

    def logout(self) -> Redirect:
        self.api.token_store.clear()
        self._context = SessionContext()
        return Redirect(LOGIN_PATH)
