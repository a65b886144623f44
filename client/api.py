"""
HTTP client for the auth service plus on-disk bearer token storage.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TOKEN_FILE = "~/.networking/token.json"


class ApiError(Exception):
    """Non-2xx response from the service."""

    def __init__(self, status_code: int, kind: str, message: str) -> None:
        super().__init__(f"{status_code} {kind}: {message}")
        self.status_code = status_code
        self.kind = kind
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            response.status_code,
            str(body.get("error", "http_error")),
            str(body.get("message", response.reason_phrase)),
        )


class NotAuthenticated(Exception):
    """No token is stored locally."""


class TokenStore:
    """Persists the bearer token between runs in a small JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or DEFAULT_TOKEN_FILE).expanduser()

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable token file %s", self.path)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}))
        self.path.chmod(0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ApiClient:
    def __init__(
        self,
        token_store: TokenStore,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token_store = token_store
        self._http = httpx.AsyncClient(
            base_url=base_url or DEFAULT_BASE_URL,
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_store.load()
        if not token:
            raise NotAuthenticated("No stored token")
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, url, **kwargs)
        if response.is_error:
            raise ApiError.from_response(response)
        return response.json()

    async def register(self, name: str, email: str, password: str) -> str:
        data = await self._request(
            "POST",
            "/api/register",
            json={"name": name, "email": email, "password": password},
        )
        self.token_store.save(data["token"])
        return data["token"]

    async def login(self, email: str, password: str) -> str:
        data = await self._request(
            "POST", "/api/login", json={"email": email, "password": password}
        )
        self.token_store.save(data["token"])
        return data["token"]

    async def fetch_profile(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/profile", headers=self._auth_headers())

    async def update_user(self, user_id: str, **fields: Any) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/api/users/{user_id}",
            json=fields,
            headers=self._auth_headers(),
        )
