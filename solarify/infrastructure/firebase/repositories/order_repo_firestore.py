"""Firestore-backed order repository (implements IOrderRepository)."""

from __future__ import annotations

from dataclasses import asdict

from solarify.application.dtos.order import OrderCreate, OrderItem, OrderResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_ORDERS
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreOrderRepository:
    """Order repository using Firestore. supplier_ids is indexed for supplier views."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_ORDERS)

    def _to_result(self, doc_id: str, data: dict) -> OrderResult:
        return OrderResult(
            id=doc_id,
            customer_id=data.get("customer_id", ""),
            customer_name=data.get("customer_name", ""),
            items=tuple(OrderItem(**item) for item in data.get("items") or []),
            supplier_ids=tuple(data.get("supplier_ids") or ()),
            currency_code=data.get("currency_code", "USD"),
            subtotal=data.get("subtotal", 0.0),
            tax_rate=data.get("tax_rate", 0.0),
            tax_amount=data.get("tax_amount", 0.0),
            total_amount=data.get("total_amount", 0.0),
            status=data.get("status", ""),
            notes=data.get("notes"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    async def create(self, data: OrderCreate) -> OrderResult:
        """Persist a new order."""
        now = utc_now()
        order_id = generate_cuid()
        doc = asdict(data)
        doc["items"] = [asdict(item) for item in data.items]
        doc["supplier_ids"] = list(data.supplier_ids)
        doc.update({"created_at": now, "updated_at": now})
        await self._coll.create(order_id, doc)
        return self._to_result(order_id, doc)

    async def get_by_id(self, order_id: str) -> OrderResult | None:
        """Return order by ID."""
        doc = await self._coll.document(order_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_by_customer(self, customer_id: str, limit: int = 100) -> list[OrderResult]:
        """Return a customer's orders (newest first)."""
        q = (
            self._coll.where("customer_id", "==", customer_id)
            .order_by("created_at", "DESCENDING")
            .limit(limit)
        )
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def list_by_supplier(self, supplier_id: str, limit: int = 100) -> list[OrderResult]:
        """Return orders containing the supplier's items (newest first)."""
        q = (
            self._coll.where("supplier_ids", "array-contains", supplier_id)
            .order_by("created_at", "DESCENDING")
            .limit(limit)
        )
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def update_status(self, order_id: str, status: str) -> None:
        """Set status and updated_at."""
        await self._coll.document(order_id).update({"status": status, "updated_at": utc_now()})
