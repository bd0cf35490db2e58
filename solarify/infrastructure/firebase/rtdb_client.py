"""Firebase Realtime Database REST client (contact messages live here).

Paths map to ``{database_url}/{path}.json``. Authenticates with the same
service account as Firestore, using the Realtime Database OAuth scopes.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import httpx

from solarify.infrastructure.firebase._rest_client import access_token
from solarify.shared.utils.generators import generate_cuid

RTDB_SCOPES = [
    "https://www.googleapis.com/auth/firebase.database",
    "https://www.googleapis.com/auth/userinfo.email",
]


class RealtimeDatabaseClient:
    """Async Realtime Database client (push / get / update)."""

    def __init__(
        self,
        database_url: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = database_url.rstrip("/")
        self._credentials = credentials
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    def _url(self, path: str) -> str:
        return f"{self._base}/{path.strip('/')}.json"

    async def _headers(self) -> dict[str, str]:
        token = await asyncio.to_thread(access_token, self._credentials)
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    async def push(self, path: str, data: dict[str, Any]) -> str:
        """Append a child under path; returns the generated key."""
        resp = await self._http.post(self._url(path), headers=await self._headers(), json=data)
        resp.raise_for_status()
        return resp.json()["name"]

    async def get(self, path: str) -> Any:
        """Return the JSON value at path (None when absent)."""
        resp = await self._http.get(self._url(path), headers=await self._headers())
        resp.raise_for_status()
        return resp.json()

    async def update(self, path: str, data: dict[str, Any]) -> None:
        """Merge children into the node at path."""
        resp = await self._http.patch(self._url(path), headers=await self._headers(), json=data)
        resp.raise_for_status()

    async def ping(self) -> None:
        """Shallow read of the root for health checks."""
        resp = await self._http.get(
            f"{self._base}/.json", params={"shallow": "true"}, headers=await self._headers()
        )
        resp.raise_for_status()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


class InMemoryRealtimeDatabase:
    """Dict-backed stand-in for RealtimeDatabaseClient (memory backend)."""

    def __init__(self) -> None:
        self._root: dict[str, Any] = {}

    def _node(self, path: str, create: bool = False) -> dict[str, Any] | None:
        node: Any = self._root
        for part in [p for p in path.strip("/").split("/") if p]:
            if not isinstance(node, dict):
                return None
            if part not in node:
                if not create:
                    return None
                node[part] = {}
            node = node[part]
        return node

    async def push(self, path: str, data: dict[str, Any]) -> str:
        key = generate_cuid()
        node = self._node(path, create=True)
        assert node is not None
        node[key] = copy.deepcopy(data)
        return key

    async def get(self, path: str) -> Any:
        node = self._node(path)
        return copy.deepcopy(node) if node is not None else None

    async def update(self, path: str, data: dict[str, Any]) -> None:
        node = self._node(path, create=True)
        assert node is not None
        node.update(copy.deepcopy(data))

    async def ping(self) -> None:
        return None

    async def aclose(self) -> None:
        return None

    def clear(self) -> None:
        self._root.clear()
