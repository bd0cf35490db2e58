"""Notification fan-out for marketplace events (RFQ received, quote received, orders)."""

from __future__ import annotations

import logging
from typing import Any

from solarify.application.dtos.notification import NotificationResult
from solarify.application.interfaces.repositories import INotificationRepository
from solarify.domain.enums import NotificationType
from solarify.domain.exceptions import AuthorizationException, ResourceNotFoundException

logger = logging.getLogger(__name__)


class NotificationService:
    """Create and read in-app notifications."""

    def __init__(self, notification_repo: INotificationRepository) -> None:
        self.notification_repo = notification_repo

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        action_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> NotificationResult | None:
        """Best-effort notification: failures are logged and never fail the caller's operation."""
        try:
            return await self.notification_repo.create(
                user_id=user_id,
                type=type.value,
                title=title,
                message=message,
                action_url=action_url,
                metadata=metadata,
            )
        except Exception:
            logger.exception("Notification %s for user %s failed", type.value, user_id)
            return None

    async def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 100
    ) -> list[NotificationResult]:
        return await self.notification_repo.list_for_user(user_id, unread_only, limit)

    async def unread_count(self, user_id: str) -> int:
        return await self.notification_repo.count_unread(user_id)

    async def mark_read(self, user_id: str, notification_id: str) -> NotificationResult:
        """Mark one of the user's notifications read."""
        notification = await self.notification_repo.get_by_id(notification_id)
        if not notification:
            raise ResourceNotFoundException("notification", notification_id)
        if notification.user_id != user_id:
            raise AuthorizationException("notification", "update")
        if not notification.is_read:
            await self.notification_repo.mark_read(notification_id)
        return await self.notification_repo.get_by_id(notification_id) or notification

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read; returns how many changed."""
        unread = await self.notification_repo.list_for_user(user_id, unread_only=True, limit=1000)
        for notification in unread:
            await self.notification_repo.mark_read(notification.id)
        return len(unread)
