"""Firestore-backed promotion repository (implements IPromotionRepository)."""

from __future__ import annotations

from datetime import date
from typing import Any

from solarify.application.dtos.promotion import PromotionResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_PROMOTIONS
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


def _parse_date(value: Any) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


class FirestorePromotionRepository:
    """Promotion repository using Firestore. valid_until is stored as an ISO date string."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_PROMOTIONS)

    def _to_result(self, doc_id: str, data: dict) -> PromotionResult:
        return PromotionResult(
            id=doc_id,
            author_id=data.get("author_id", ""),
            author_name=data.get("author_name", ""),
            author_role=data.get("author_role", ""),
            title=data.get("title", ""),
            content=data.get("content", ""),
            post_date=data["post_date"],
            tags=tuple(data.get("tags") or ()),
            image_url=data.get("image_url"),
            image_hint=data.get("image_hint"),
            discount_offer=data.get("discount_offer"),
            call_to_action_link=data.get("call_to_action_link"),
            call_to_action_text=data.get("call_to_action_text"),
            valid_until=_parse_date(data.get("valid_until")),
        )

    async def create(self, fields: dict[str, Any]) -> PromotionResult:
        """Persist a promotion; post_date is set to now."""
        promotion_id = generate_cuid()
        doc = {**fields, "post_date": utc_now()}
        if isinstance(doc.get("valid_until"), date):
            doc["valid_until"] = doc["valid_until"].isoformat()
        await self._coll.create(promotion_id, doc)
        return self._to_result(promotion_id, doc)

    async def get_by_id(self, promotion_id: str) -> PromotionResult | None:
        """Return promotion by ID."""
        doc = await self._coll.document(promotion_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_promotions(self, limit: int = 100) -> list[PromotionResult]:
        """Return promotions (newest first)."""
        q = self._coll.order_by("post_date", "DESCENDING").limit(limit)
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def delete(self, promotion_id: str) -> None:
        """Delete promotion."""
        await self._coll.document(promotion_id).delete()
