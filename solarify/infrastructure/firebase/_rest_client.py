"""Async Firestore client over the REST v1 API.

Service-account tokens come from google-auth; every request goes through
one httpx.AsyncClient. The surface mirrors the parts of the official SDK the
repositories use: collection/document references, create/set/update/get/
delete, a server-side increment, and where/order_by/offset/limit queries.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from solarify.infrastructure.firebase._rest_encoding import decode_document, encode_document, to_value

FIRESTORE_SCOPES = ["https://www.googleapis.com/auth/datastore"]
API_ROOT = "https://firestore.googleapis.com/v1"

OPERATORS = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array-contains": "ARRAY_CONTAINS",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}
# SDK spellings with underscores are accepted too
OPERATORS.update({op.replace("-", "_"): value for op, value in list(OPERATORS.items()) if "-" in op})


class DocumentExistsError(Exception):
    """create() hit an existing document id (HTTP 409)."""


def service_account_credentials(info: dict, scopes: list[str] | None = None) -> service_account.Credentials:
    return service_account.Credentials.from_service_account_info(info, scopes=scopes or FIRESTORE_SCOPES)


def access_token(credentials) -> str:
    """Current bearer token, refreshed first when expired. Blocking (google-auth uses requests)."""
    if not credentials.valid:
        credentials.refresh(GoogleAuthRequest())
    return credentials.token


def normalize_direction(direction: str) -> str:
    """'asc'/'desc' in any case -> ASCENDING/DESCENDING."""
    upper = direction.upper()
    if upper in ("ASC", "ASCENDING"):
        return "ASCENDING"
    if upper in ("DESC", "DESCENDING"):
        return "DESCENDING"
    return upper


def _doc_id(resource_name: str) -> str:
    return resource_name.rsplit("/", 1)[-1]


class DocumentSnapshot:
    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path

    @property
    def id(self) -> str:
        return _doc_id(self.path)

    async def get(self) -> DocumentSnapshot | None:
        doc = await self._client.call("GET", self.path)
        if not doc:
            return None
        return DocumentSnapshot(self.id, decode_document(doc.get("fields")))

    async def set(self, data: dict[str, Any]) -> None:
        """Write the whole document, creating it if needed."""
        await self._client.call("PATCH", self.path, json=encode_document(data))

    async def update(self, data: dict[str, Any]) -> None:
        """Overwrite only the given top-level fields; the document must exist."""
        params = [("updateMask.fieldPaths", field) for field in data]
        params.append(("currentDocument.exists", "true"))
        await self._client.call("PATCH", self.path, json=encode_document(data), params=params)

    async def increment(self, field: str, amount: int | float) -> None:
        """Atomic numeric add, applied server-side as a commit field transform."""
        transform = {"fieldPath": field, "increment": to_value(amount)}
        write = {"transform": {"document": self.path, "fieldTransforms": [transform]}}
        await self._client.call("POST", f"{self._client.database_path}:commit", json={"writes": [write]})

    async def delete(self) -> None:
        """No error when the document is already gone."""
        await self._client.call("DELETE", self.path)


class Query:
    """Builds a structuredQuery; filters, ordering and paging run in Firestore."""

    def __init__(self, client: FirestoreRESTClient, collection_path: str):
        self._client = client
        self._parent, self._collection_id = collection_path.rsplit("/", 1)
        self._filters: list[dict] = []
        self._orders: list[dict] = []
        self._offset = 0
        self._limit = 100

    def where(self, field: str, op: str, value: Any) -> Query:
        try:
            firestore_op = OPERATORS[op]
        except KeyError:
            raise ValueError(f"Unsupported filter operator: {op!r}") from None
        self._filters.append({
            "fieldFilter": {"field": {"fieldPath": field}, "op": firestore_op, "value": to_value(value)}
        })
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> Query:
        self._orders.append({"field": {"fieldPath": field}, "direction": normalize_direction(direction)})
        return self

    def offset(self, n: int) -> Query:
        self._offset = n
        return self

    def limit(self, n: int) -> Query:
        self._limit = n
        return self

    def to_structured_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        if len(self._filters) == 1:
            query["where"] = self._filters[0]
        elif self._filters:
            query["where"] = {"compositeFilter": {"op": "AND", "filters": self._filters}}
        if self._orders:
            query["orderBy"] = self._orders
        if self._offset:
            query["offset"] = self._offset
        if self._limit:
            query["limit"] = self._limit
        return query

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        rows = await self._client.call(
            "POST", f"{self._parent}:runQuery", json={"structuredQuery": self.to_structured_query()}
        )
        if isinstance(rows, dict):
            rows = [rows]
        # Rows without "document" only carry readTime (empty result or progress)
        for row in rows or []:
            doc = row.get("document")
            if doc:
                yield DocumentSnapshot(_doc_id(doc.get("name", "")), decode_document(doc.get("fields")))


class CollectionReference:
    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path.rstrip("/")

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self.path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Insert under an explicit id; DocumentExistsError if it is taken."""
        await self._client.call("POST", self.path, json=encode_document(data), params={"documentId": document_id})

    def where(self, field: str, op: str, value: Any) -> Query:
        return Query(self._client, self.path).where(field, op, value)

    def order_by(self, field: str, direction: str = "ASCENDING") -> Query:
        return Query(self._client, self.path).order_by(field, direction)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """First page of the collection, unordered."""
        page = await self._client.call("GET", self.path)
        for doc in (page or {}).get("documents", []):
            yield DocumentSnapshot(_doc_id(doc.get("name", "")), decode_document(doc.get("fields")))


class FirestoreRESTClient:
    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.project_id = project_id
        self._credentials = credentials
        self.database_path = f"projects/{project_id}/databases/(default)"
        self._documents_path = f"{self.database_path}/documents"
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=30.0)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._documents_path}/{collection_id}")

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: Any = None,
    ) -> Any:
        """Authenticated request against API_ROOT/path.

        404 -> None, 409 -> DocumentExistsError, other errors raise
        httpx.HTTPStatusError. Successful calls return the decoded JSON body
        ({} when empty).
        """
        # Token refresh does blocking I/O
        token = await asyncio.to_thread(access_token, self._credentials)
        response = await self._http.request(
            method,
            f"{API_ROOT}/{quote(path, safe='/:()')}",
            json=json,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.status_code == 404:
            return None
        if response.status_code == 409:
            raise DocumentExistsError(path)
        response.raise_for_status()
        return response.json() if response.content else {}

    async def ping(self) -> None:
        """One-document query, used by the health check."""
        async for _ in self.collection("users").order_by("__name__").limit(1).stream():
            break

    async def aclose(self) -> None:
        """Close the HTTP pool unless it was passed in."""
        if self._owns_http:
            await self._http.aclose()
