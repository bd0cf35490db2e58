"""Product catalog and checkout API."""

import pytest

PRODUCT = {
    "name": "400W Mono Panel",
    "description": "High efficiency <b>monocrystalline</b> module",
    "category": "panels",
    "price_value": 250.0,
    "currency_code": "USD",
    "stock": 10,
}


async def _create_product(client, headers, **overrides):
    r = await client.post("/api/v1/products", json={**PRODUCT, **overrides}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_supplier_creates_product_visible_to_anyone(client, make_user):
    supplier, headers = await make_user("supplier", company_name="Bright Supply")
    product = await _create_product(client, headers)

    assert product["supplier_id"] == supplier.id
    assert product["supplier_name"] == "Bright Supply"
    assert product["description"] == "High efficiency monocrystalline module"

    listed = await client.get("/api/v1/products")
    assert listed.status_code == 200
    assert [p["id"] for p in listed.json()] == [product["id"]]

    fetched = await client.get(f"/api/v1/products/{product['id']}")
    assert fetched.json()["name"] == "400W Mono Panel"


@pytest.mark.asyncio
async def test_list_products_filters_by_category(client, make_user):
    _, headers = await make_user("supplier")
    await _create_product(client, headers)
    battery = await _create_product(client, headers, name="Home Battery", category="batteries")

    r = await client.get("/api/v1/products", params={"category": "batteries"})
    assert [p["id"] for p in r.json()] == [battery["id"]]


@pytest.mark.asyncio
async def test_homeowner_cannot_create_product(client, make_user):
    _, headers = await make_user("homeowner")
    r = await client.post("/api/v1/products", json=PRODUCT, headers=headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_negative_price_rejected(client, make_user):
    _, headers = await make_user("supplier")
    r = await client.post(
        "/api/v1/products", json={**PRODUCT, "price_value": -1}, headers=headers
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_only_owner_updates_and_deletes(client, make_user):
    _, owner_headers = await make_user("supplier")
    _, other_headers = await make_user("supplier")
    product = await _create_product(client, owner_headers)
    url = f"/api/v1/products/{product['id']}"

    r = await client.patch(url, json={"price_value": 199.0}, headers=other_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "PERMISSION_DENIED"

    r = await client.patch(url, json={"price_value": 199.0}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["price_value"] == 199.0

    r = await client.patch(url, json={}, headers=owner_headers)
    assert r.status_code == 400

    assert (await client.delete(url, headers=other_headers)).status_code == 403
    assert (await client.delete(url, headers=owner_headers)).status_code == 204
    assert (await client.get(url)).status_code == 404


@pytest.mark.asyncio
async def test_checkout_reserves_stock_and_notifies_supplier(client, make_user):
    supplier, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers)

    r = await client.post(
        "/api/v1/orders",
        json={"items": [
            {"product_id": product["id"], "quantity": 2},
            {"product_id": product["id"], "quantity": 1},
        ]},
        headers=customer_headers,
    )
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["status"] == "pending"
    assert len(order["items"]) == 1
    assert order["items"][0]["quantity"] == 3
    assert order["subtotal"] == 750.0
    assert order["total_amount"] == 750.0
    assert order["supplier_ids"] == [supplier.id]

    stock = (await client.get(f"/api/v1/products/{product['id']}")).json()["stock"]
    assert stock == 7

    mine = await client.get("/api/v1/orders/mine", headers=customer_headers)
    assert [o["id"] for o in mine.json()] == [order["id"]]
    incoming = await client.get("/api/v1/orders/supplier", headers=supplier_headers)
    assert [o["id"] for o in incoming.json()] == [order["id"]]

    notes = await client.get("/api/v1/notifications", headers=supplier_headers)
    assert any(n["type"] == "order_placed" for n in notes.json())


@pytest.mark.asyncio
async def test_checkout_insufficient_stock(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers, stock=1)

    r = await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 2}]},
        headers=customer_headers,
    )
    assert r.status_code == 409
    assert r.json()["error"] == "INSUFFICIENT_STOCK"
    assert (await client.get(f"/api/v1/products/{product['id']}")).json()["stock"] == 1


@pytest.mark.asyncio
async def test_checkout_unknown_product(client, make_user):
    _, headers = await make_user("homeowner")
    r = await client.post(
        "/api/v1/orders", json={"items": [{"product_id": "missing", "quantity": 1}]}, headers=headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_checkout_requires_items(client, make_user):
    _, headers = await make_user("homeowner")
    r = await client.post("/api/v1/orders", json={"items": []}, headers=headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_inquiry_order_starts_as_inquiry(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers)

    r = await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 1}], "inquiry": True},
        headers=customer_headers,
    )
    assert r.json()["status"] == "inquiry"


@pytest.mark.asyncio
async def test_supplier_advances_order_to_completed(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers)
    order = (await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 1}]},
        headers=customer_headers,
    )).json()
    url = f"/api/v1/orders/{order['id']}/status"

    r = await client.patch(url, json={"status": "shipped"}, headers=supplier_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "INVALID_STATUS_TRANSITION"

    r = await client.patch(url, json={"status": "processing"}, headers=customer_headers)
    assert r.status_code == 403

    for status in ("processing", "shipped", "completed"):
        r = await client.patch(url, json={"status": status}, headers=supplier_headers)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == status

    r = await client.patch(url, json={"status": "cancelled"}, headers=supplier_headers)
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_customer_cancel_restores_stock(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers, stock=5)
    order = (await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 4}]},
        headers=customer_headers,
    )).json()

    r = await client.patch(
        f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}, headers=customer_headers
    )
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert (await client.get(f"/api/v1/products/{product['id']}")).json()["stock"] == 5


@pytest.mark.asyncio
async def test_unknown_order_status_is_rejected(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers)
    order = (await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 1}]},
        headers=customer_headers,
    )).json()

    r = await client.patch(
        f"/api/v1/orders/{order['id']}/status", json={"status": "lost"}, headers=supplier_headers
    )
    assert r.status_code == 400
    assert r.json()["details"]["field"] == "status"


@pytest.mark.asyncio
async def test_outsider_cannot_read_order(client, make_user):
    _, supplier_headers = await make_user("supplier")
    _, customer_headers = await make_user("homeowner")
    _, outsider_headers = await make_user("homeowner")
    product = await _create_product(client, supplier_headers)
    order = (await client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": product["id"], "quantity": 1}]},
        headers=customer_headers,
    )).json()

    r = await client.get(f"/api/v1/orders/{order['id']}", headers=outsider_headers)
    assert r.status_code == 403
    r = await client.get(f"/api/v1/orders/{order['id']}", headers=supplier_headers)
    assert r.status_code == 200
