"""RFQ to quote to acceptance flow, with installer notifications."""

from datetime import timedelta

from httpx import AsyncClient

from solarify.infrastructure.firebase.client import get_firestore_client
from solarify.infrastructure.firebase.collections import COLLECTION_QUOTES
from solarify.shared.utils.datetime import utc_now

ADDRESS = {"street": "12 Elm St", "city": "Sacramento", "state": "CA", "zip_code": "95814"}


def rfq_body(installer_ids: list[str], **overrides) -> dict:
    body = {
        "name": "Pat Homeowner",
        "email": "pat@example.com",
        "address": ADDRESS,
        "estimated_system_size_kw": 6,
        "monthly_consumption_kwh": 850,
        "budget_min": 15000,
        "budget_max": 22000,
        "selected_installer_ids": installer_ids,
    }
    body.update(overrides)
    return body


QUOTE_ITEMS = [
    {"description": "Panels", "category": "equipment", "quantity": 15, "unit_price": 400},
    {"description": "Labor", "category": "installation", "quantity": 1, "unit_price": 5000},
    {"description": "Permit", "category": "permit", "quantity": 1, "unit_price": 1000},
]


async def test_full_quote_flow(client: AsyncClient, make_user) -> None:
    homeowner, owner_headers = await make_user("homeowner")
    first, first_headers = await make_user("installer", company_name="Sunny Installs")
    second, second_headers = await make_user("installer")

    created = await client.post(
        "/api/v1/rfqs", json=rfq_body([first.id, second.id]), headers=owner_headers
    )
    assert created.status_code == 201
    rfq = created.json()
    assert rfq["status"] == "pending"
    assert rfq["homeowner_id"] == homeowner.id

    inbox = await client.get("/api/v1/rfqs/pending", headers=first_headers)
    assert [r["id"] for r in inbox.json()] == [rfq["id"]]
    unread = await client.get("/api/v1/notifications/unread-count", headers=first_headers)
    assert unread.json() == {"unread": 1}

    quote_resp = await client.post(
        "/api/v1/quotes",
        json={"rfq_id": rfq["id"], "line_items": QUOTE_ITEMS, "tax_rate": 10},
        headers=first_headers,
    )
    assert quote_resp.status_code == 201
    quote = quote_resp.json()
    assert quote["subtotal"] == 12000
    assert quote["tax_amount"] == 1200
    assert quote["total_amount"] == 13200
    assert quote["price_per_watt"] == 2.0
    assert quote["status"] == "submitted"
    assert quote["installer_name"] == "Sunny Installs"

    other = await client.post(
        "/api/v1/quotes",
        json={"rfq_id": rfq["id"], "line_items": QUOTE_ITEMS[:1]},
        headers=second_headers,
    )
    assert other.status_code == 201

    responded = await client.get(f"/api/v1/rfqs/{rfq['id']}", headers=owner_headers)
    assert responded.json()["status"] == "responded"

    viewed = await client.get(f"/api/v1/quotes/{quote['id']}", headers=owner_headers)
    assert viewed.json()["status"] == "viewed"

    notifications = await client.get("/api/v1/notifications", headers=owner_headers)
    assert {n["type"] for n in notifications.json()} == {"quote_received"}

    accepted = await client.post(f"/api/v1/quotes/{quote['id']}/accept", headers=owner_headers)
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"

    competing = await client.get(f"/api/v1/quotes/{other.json()['id']}", headers=second_headers)
    assert competing.json()["status"] == "rejected"
    closed = await client.get(f"/api/v1/rfqs/{rfq['id']}", headers=owner_headers)
    assert closed.json()["status"] == "closed"

    again = await client.post(f"/api/v1/quotes/{quote['id']}/accept", headers=owner_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "INVALID_STATUS_TRANSITION"


async def test_accepting_expired_quote_is_rejected(client: AsyncClient, make_user) -> None:
    _, owner_headers = await make_user("homeowner")
    installer, installer_headers = await make_user("installer")
    rfq = (await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)).json()
    quote = (
        await client.post(
            "/api/v1/quotes",
            json={"rfq_id": rfq["id"], "line_items": QUOTE_ITEMS, "validity_period_days": 30},
            headers=installer_headers,
        )
    ).json()
    await get_firestore_client().collection(COLLECTION_QUOTES).document(quote["id"]).update(
        {"quote_date": utc_now() - timedelta(days=31)}
    )

    resp = await client.post(f"/api/v1/quotes/{quote['id']}/accept", headers=owner_headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "QUOTE_EXPIRED"
    assert resp.json()["details"] == {"quote_id": quote["id"]}

    listed = await client.get(f"/api/v1/quotes/{quote['id']}", headers=installer_headers)
    assert listed.json()["status"] == "expired"


async def test_rfq_requires_homeowner_role(client: AsyncClient, make_user) -> None:
    installer, headers = await make_user("installer")
    response = await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=headers)
    assert response.status_code == 403


async def test_rfq_rejects_non_installers(client: AsyncClient, make_user) -> None:
    supplier, _ = await make_user("supplier")
    _, headers = await make_user("homeowner")
    response = await client.post("/api/v1/rfqs", json=rfq_body([supplier.id]), headers=headers)
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "selected_installer_ids"}


async def test_rfq_validation(client: AsyncClient, make_user) -> None:
    installer, _ = await make_user("installer")
    _, headers = await make_user("homeowner")
    too_many = await client.post("/api/v1/rfqs", json=rfq_body(["a", "b", "c", "d"]), headers=headers)
    assert too_many.status_code == 422
    inverted = await client.post(
        "/api/v1/rfqs", json=rfq_body([installer.id], budget_min=5000, budget_max=100), headers=headers
    )
    assert inverted.status_code == 422


async def test_rfq_hidden_from_unselected_installers(client: AsyncClient, make_user) -> None:
    selected, _ = await make_user("installer")
    _, outsider_headers = await make_user("installer")
    _, owner_headers = await make_user("homeowner")
    rfq = (await client.post("/api/v1/rfqs", json=rfq_body([selected.id]), headers=owner_headers)).json()

    response = await client.get(f"/api/v1/rfqs/{rfq['id']}", headers=outsider_headers)
    assert response.status_code == 403
    quote = await client.post(
        "/api/v1/quotes", json={"rfq_id": rfq["id"], "line_items": QUOTE_ITEMS}, headers=outsider_headers
    )
    assert quote.status_code == 403


async def test_decline_closes_when_everyone_declines(client: AsyncClient, make_user) -> None:
    installer, installer_headers = await make_user("installer")
    _, owner_headers = await make_user("homeowner")
    rfq = (await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)).json()

    declined = await client.post(f"/api/v1/rfqs/{rfq['id']}/decline", headers=installer_headers)
    assert declined.status_code == 200
    assert declined.json()["declined_installer_ids"] == [installer.id]
    assert declined.json()["status"] == "closed"

    pending = await client.get("/api/v1/rfqs/pending", headers=installer_headers)
    assert pending.json() == []


async def test_draft_quote_hidden_until_submitted(client: AsyncClient, make_user) -> None:
    installer, installer_headers = await make_user("installer")
    _, owner_headers = await make_user("homeowner")
    rfq = (await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)).json()

    draft = await client.post(
        "/api/v1/quotes",
        json={"rfq_id": rfq["id"], "line_items": QUOTE_ITEMS, "draft": True},
        headers=installer_headers,
    )
    assert draft.json()["status"] == "draft"
    assert (await client.get("/api/v1/quotes/received", headers=owner_headers)).json() == []
    assert (await client.get(f"/api/v1/quotes/{draft.json()['id']}", headers=owner_headers)).status_code == 403

    submitted = await client.post(f"/api/v1/quotes/{draft.json()['id']}/submit", headers=installer_headers)
    assert submitted.json()["status"] == "submitted"
    received = await client.get("/api/v1/quotes/received", headers=owner_headers)
    assert [q["id"] for q in received.json()] == [draft.json()["id"]]


async def test_homeowner_closes_rfq_once(client: AsyncClient, make_user) -> None:
    installer, _ = await make_user("installer")
    _, owner_headers = await make_user("homeowner")
    rfq = (await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)).json()
    assert (await client.post(f"/api/v1/rfqs/{rfq['id']}/close", headers=owner_headers)).json()["status"] == "closed"
    assert (await client.post(f"/api/v1/rfqs/{rfq['id']}/close", headers=owner_headers)).status_code == 409


async def test_notifications_mark_read(client: AsyncClient, make_user) -> None:
    installer, installer_headers = await make_user("installer")
    _, owner_headers = await make_user("homeowner")
    await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)
    await client.post("/api/v1/rfqs", json=rfq_body([installer.id]), headers=owner_headers)

    items = (await client.get("/api/v1/notifications", headers=installer_headers)).json()
    assert len(items) == 2
    read = await client.post(f"/api/v1/notifications/{items[0]['id']}/read", headers=installer_headers)
    assert read.json()["is_read"] is True
    assert (await client.get("/api/v1/notifications/unread-count", headers=installer_headers)).json() == {"unread": 1}

    other = await client.post(f"/api/v1/notifications/{items[1]['id']}/read", headers=owner_headers)
    assert other.status_code == 403

    all_read = await client.post("/api/v1/notifications/read-all", headers=installer_headers)
    assert all_read.json() == {"updated": 1}
    unread_only = await client.get("/api/v1/notifications", params={"unread_only": "true"}, headers=installer_headers)
    assert unread_only.json() == []
