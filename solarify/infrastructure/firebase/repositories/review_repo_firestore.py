"""Firestore-backed review repository (implements IReviewRepository)."""

from __future__ import annotations

from typing import Any

from solarify.application.dtos.review import ReviewResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_REVIEWS
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreReviewRepository:
    """Review repository using Firestore."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_REVIEWS)

    def _to_result(self, doc_id: str, data: dict) -> ReviewResult:
        return ReviewResult(
            id=doc_id,
            user_id=data.get("user_id", ""),
            user_name=data.get("user_name", ""),
            user_email=data.get("user_email", ""),
            target_id=data.get("target_id", ""),
            target_type=data.get("target_type", ""),
            rating=int(data.get("rating", 0)),
            title=data.get("title", ""),
            comment=data.get("comment", ""),
            is_verified=bool(data.get("is_verified", False)),
            helpful_count=int(data.get("helpful_count") or 0),
            is_reported=bool(data.get("is_reported", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    async def create(self, fields: dict[str, Any]) -> ReviewResult:
        """Persist a review."""
        now = utc_now()
        review_id = generate_cuid()
        doc = {
            **fields,
            "helpful_count": 0,
            "is_reported": False,
            "created_at": now,
            "updated_at": now,
        }
        await self._coll.create(review_id, doc)
        return self._to_result(review_id, doc)

    async def get_by_id(self, review_id: str) -> ReviewResult | None:
        """Return review by ID."""
        doc = await self._coll.document(review_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def get_by_user_and_target(
        self, user_id: str, target_type: str, target_id: str
    ) -> ReviewResult | None:
        """Return the user's review of a target, if any."""
        q = (
            self._coll.where("target_id", "==", target_id)
            .where("target_type", "==", target_type)
            .where("user_id", "==", user_id)
            .limit(1)
        )
        async for snapshot in q.stream():
            return self._to_result(snapshot.id, snapshot.to_dict())
        return None

    async def list_by_target(
        self, target_type: str, target_id: str, limit: int = 1000
    ) -> list[ReviewResult]:
        """Return reviews of a target (newest first)."""
        q = (
            self._coll.where("target_id", "==", target_id)
            .where("target_type", "==", target_type)
            .order_by("created_at", "DESCENDING")
            .limit(limit)
        )
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def increment_helpful(self, review_id: str) -> None:
        """Atomically add one to helpful_count."""
        await self._coll.document(review_id).increment("helpful_count", 1)

    async def mark_reported(self, review_id: str) -> None:
        """Flag review for moderation."""
        await self._coll.document(review_id).update({"is_reported": True, "updated_at": utc_now()})
