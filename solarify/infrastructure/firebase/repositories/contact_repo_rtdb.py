"""Realtime Database contact message store (implements IContactMessageRepository)."""

from __future__ import annotations

from solarify.application.dtos.contact import ContactMessageResult
from solarify.domain.enums import ContactMessageStatus
from solarify.infrastructure.firebase.collections import RTDB_CONTACT_MESSAGES
from solarify.infrastructure.firebase.rtdb_client import RealtimeDatabaseClient
from solarify.shared.utils.datetime import (
    from_timestamp_ms_utc,
    to_timestamp_ms,
    utc_now,
)


class RealtimeContactMessageRepository:
    """Contact messages under the contactMessages node.

    The timestamp is stored as epoch milliseconds, the RTDB server-time format.
    """

    def __init__(self, db: RealtimeDatabaseClient) -> None:
        self._db = db

    def _to_result(self, key: str, data: dict) -> ContactMessageResult:
        return ContactMessageResult(
            id=key,
            name=data.get("name", ""),
            email=data.get("email", ""),
            category=data.get("category", ""),
            subject=data.get("subject", ""),
            message=data.get("message", ""),
            status=data.get("status", ContactMessageStatus.NEW.value),
            timestamp=from_timestamp_ms_utc(int(data.get("timestamp") or 0)),
        )

    async def create(
        self, name: str, email: str, category: str, subject: str, message: str
    ) -> str:
        """Push a message with status 'new'; return its key."""
        return await self._db.push(
            RTDB_CONTACT_MESSAGES,
            {
                "name": name,
                "email": email,
                "category": category,
                "subject": subject,
                "message": message,
                "status": ContactMessageStatus.NEW.value,
                "timestamp": to_timestamp_ms(utc_now()),
            },
        )

    async def list_messages(self, limit: int = 100) -> list[ContactMessageResult]:
        """Return messages (newest first)."""
        node = await self._db.get(RTDB_CONTACT_MESSAGES) or {}
        results = [self._to_result(key, data) for key, data in node.items()]
        results.sort(key=lambda m: m.timestamp, reverse=True)
        return results[:limit]

    async def mark_read(self, message_id: str) -> bool:
        """Set status 'read'. False if the message does not exist."""
        path = f"{RTDB_CONTACT_MESSAGES}/{message_id}"
        if await self._db.get(path) is None:
            return False
        await self._db.update(path, {"status": ContactMessageStatus.READ.value})
        return True
