"""Firestore-backed notification repository (implements INotificationRepository)."""

from __future__ import annotations

from typing import Any

from solarify.application.dtos.notification import NotificationResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_NOTIFICATIONS
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreNotificationRepository:
    """Notification repository using Firestore."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_NOTIFICATIONS)

    def _to_result(self, doc_id: str, data: dict) -> NotificationResult:
        return NotificationResult(
            id=doc_id,
            user_id=data.get("user_id", ""),
            type=data.get("type", ""),
            title=data.get("title", ""),
            message=data.get("message", ""),
            is_read=bool(data.get("is_read", False)),
            created_at=data["created_at"],
            action_url=data.get("action_url"),
            metadata=data.get("metadata") or {},
        )

    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        action_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> NotificationResult:
        """Persist an unread notification."""
        notification_id = generate_cuid()
        doc = {
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "is_read": False,
            "action_url": action_url,
            "metadata": metadata or {},
            "created_at": utc_now(),
        }
        await self._coll.create(notification_id, doc)
        return self._to_result(notification_id, doc)

    async def get_by_id(self, notification_id: str) -> NotificationResult | None:
        """Return notification by ID."""
        doc = await self._coll.document(notification_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 100
    ) -> list[NotificationResult]:
        """Return the user's notifications (newest first)."""
        q = self._coll.where("user_id", "==", user_id)
        if unread_only:
            q = q.where("is_read", "==", False)
        q = q.order_by("created_at", "DESCENDING").limit(limit)
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def count_unread(self, user_id: str) -> int:
        """Return number of unread notifications."""
        q = (
            self._coll.where("user_id", "==", user_id)
            .where("is_read", "==", False)
            .limit(1000)
        )
        return len([s async for s in q.stream()])

    async def mark_read(self, notification_id: str) -> None:
        """Set is_read."""
        await self._coll.document(notification_id).update({"is_read": True})
