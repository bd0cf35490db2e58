"""Firestore REST client wire format, exercised against a mocked HTTP transport."""

import json
from datetime import UTC, date, datetime
from types import SimpleNamespace

import httpx
import pytest

from solarify.infrastructure.firebase._rest_client import DocumentExistsError, FirestoreRESTClient
from solarify.infrastructure.firebase._rest_encoding import decode_document, encode_document

DOCS = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents"


def make_client(handler) -> tuple[FirestoreRESTClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    credentials = SimpleNamespace(valid=True, token="test-token")
    return FirestoreRESTClient("demo", credentials, http_client=http), http


def test_encode_document_types() -> None:
    encoded = encode_document({
        "name": "Panel",
        "stock": 3,
        "price": 199.5,
        "active": True,
        "missing": None,
        "tags": ["a", 1],
        "dims": {"w": 1.0},
        "valid_until": date(2025, 6, 30),
        "created_at": datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
    })["fields"]
    assert encoded["stock"] == {"integerValue": "3"}
    assert encoded["price"] == {"doubleValue": 199.5}
    assert encoded["active"] == {"booleanValue": True}
    assert encoded["missing"] == {"nullValue": None}
    assert encoded["valid_until"] == {"stringValue": "2025-06-30"}
    assert encoded["created_at"] == {"timestampValue": "2024-01-02T03:04:05.000000Z"}
    assert encoded["tags"]["arrayValue"]["values"][1] == {"integerValue": "1"}
    assert encoded["dims"]["mapValue"]["fields"]["w"] == {"doubleValue": 1.0}


def test_decode_document_round_values() -> None:
    decoded = decode_document({
        "stock": {"integerValue": "7"},
        "created_at": {"timestampValue": "2024-01-02T03:04:05Z"},
        "tags": {"arrayValue": {}},
        "meta": {"mapValue": {"fields": {"ok": {"booleanValue": False}}}},
    })
    assert decoded["stock"] == 7
    assert decoded["created_at"] == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert decoded["tags"] == []
    assert decoded["meta"] == {"ok": False}
    assert decode_document(None) == {}


def test_encode_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        encode_document({"bad": object()})


async def test_create_posts_document_with_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    client, http = make_client(handler)
    await client.collection("products").create("p1", {"name": "Panel"})
    await http.aclose()

    [request] = seen
    assert request.method == "POST"
    assert request.url.params["documentId"] == "p1"
    assert request.headers["Authorization"] == "Bearer test-token"
    assert json.loads(request.content) == {"fields": {"name": {"stringValue": "Panel"}}}


async def test_create_conflict_raises() -> None:
    client, http = make_client(lambda request: httpx.Response(409, json={}))
    with pytest.raises(DocumentExistsError):
        await client.collection("users").create("u1", {"email": "a@b.c"})
    await http.aclose()


async def test_get_decodes_and_missing_is_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/products/p1"):
            return httpx.Response(
                200, json={"name": f"{DOCS}/products/p1", "fields": {"stock": {"integerValue": "4"}}}
            )
        return httpx.Response(404, json={})

    client, http = make_client(handler)
    snapshot = await client.collection("products").document("p1").get()
    assert snapshot.id == "p1"
    assert snapshot.to_dict() == {"stock": 4}
    assert await client.collection("products").document("nope").get() is None
    await http.aclose()


async def test_update_sends_field_mask() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    client, http = make_client(handler)
    await client.collection("orders").document("o1").update({"status": "shipped"})
    await http.aclose()

    [request] = seen
    assert request.method == "PATCH"
    assert request.url.params.get_list("updateMask.fieldPaths") == ["status"]
    assert request.url.params["currentDocument.exists"] == "true"


async def test_increment_commits_field_transform() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    client, http = make_client(handler)
    await client.collection("products").document("p1").increment("stock", -2)
    await http.aclose()

    [request] = seen
    assert request.url.path.endswith(":commit")
    transform = json.loads(request.content)["writes"][0]["transform"]
    assert transform["document"].endswith("/documents/products/p1")
    assert transform["fieldTransforms"] == [{"fieldPath": "stock", "increment": {"integerValue": "-2"}}]


async def test_query_builds_structured_query() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=[
            {"document": {"name": f"{DOCS}/rfqs/r1", "fields": {"status": {"stringValue": "pending"}}}},
            {"readTime": "2024-01-01T00:00:00Z"},
        ])

    client, http = make_client(handler)
    query = (
        client.collection("rfqs")
        .where("selected_installers", "array-contains", "i1")
        .where("status", "in", ["pending", "viewed"])
        .order_by("created_at", "desc")
        .offset(5)
        .limit(10)
    )
    rows = [s async for s in query.stream()]
    await http.aclose()

    assert [(s.id, s.to_dict()) for s in rows] == [("r1", {"status": "pending"})]
    structured = seen[0]["structuredQuery"]
    assert structured["from"] == [{"collectionId": "rfqs"}]
    filters = structured["where"]["compositeFilter"]["filters"]
    assert [f["fieldFilter"]["op"] for f in filters] == ["ARRAY_CONTAINS", "IN"]
    assert structured["orderBy"] == [{"field": {"fieldPath": "created_at"}, "direction": "DESCENDING"}]
    assert structured["offset"] == 5
    assert structured["limit"] == 10


async def test_unknown_filter_operator() -> None:
    client, http = make_client(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(ValueError):
        client.collection("rfqs").where("status", "~=", "x")
    await http.aclose()
