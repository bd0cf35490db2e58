"""Firestore-backed product repository (implements IProductRepository)."""

from __future__ import annotations

from typing import Any

from solarify.application.dtos.product import ProductResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_PRODUCTS
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreProductRepository:
    """Product repository using Firestore. Stock changes use server-side increments."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_PRODUCTS)

    def _to_result(self, doc_id: str, data: dict) -> ProductResult:
        return ProductResult(
            id=doc_id,
            name=data.get("name", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            price_value=float(data.get("price_value", 0)),
            currency_code=data.get("currency_code", "USD"),
            stock=int(data.get("stock", 0)),
            supplier_id=data.get("supplier_id", ""),
            supplier_name=data.get("supplier_name", ""),
            image_url=data.get("image_url"),
            image_hint=data.get("image_hint"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    async def create(
        self, supplier_id: str, supplier_name: str, fields: dict[str, Any]
    ) -> ProductResult:
        """Persist a product owned by supplier."""
        now = utc_now()
        product_id = generate_cuid()
        doc = {
            **fields,
            "supplier_id": supplier_id,
            "supplier_name": supplier_name,
            "created_at": now,
            "updated_at": now,
        }
        await self._coll.create(product_id, doc)
        return self._to_result(product_id, doc)

    async def get_by_id(self, product_id: str) -> ProductResult | None:
        """Return product by ID."""
        doc = await self._coll.document(product_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_products(
        self,
        category: str | None = None,
        supplier_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ProductResult]:
        """Return products (newest first) with optional filters."""
        q = self._coll.order_by("created_at", "DESCENDING")
        if category:
            q = q.where("category", "==", category)
        if supplier_id:
            q = q.where("supplier_id", "==", supplier_id)
        q = q.offset(skip).limit(limit)
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def update(self, product_id: str, fields: dict[str, Any]) -> ProductResult | None:
        """Merge fields; return updated product or None if missing."""
        ref = self._coll.document(product_id)
        if not await ref.get():
            return None
        await ref.update({**fields, "updated_at": utc_now()})
        return await self.get_by_id(product_id)

    async def delete(self, product_id: str) -> None:
        """Delete product."""
        await self._coll.document(product_id).delete()

    async def adjust_stock(self, product_id: str, delta: int) -> None:
        """Atomically add delta (negative to decrement) to stock."""
        await self._coll.document(product_id).increment("stock", delta)
