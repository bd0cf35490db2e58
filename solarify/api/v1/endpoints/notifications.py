"""The signed-in user's notifications."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from solarify.api.v1.dependencies import CurrentUser, get_notification_service
from solarify.application.services.notification_service import NotificationService
from solarify.core.limiter import limit_writes
from solarify.schemas.notification import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter()

NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    current_user: CurrentUser,
    notifications: NotificationServiceDep,
    unread_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
):
    items = await notifications.list_for_user(current_user.id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.model_validate(n) for n in items]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(current_user: CurrentUser, notifications: NotificationServiceDep):
    return UnreadCountResponse(unread=await notifications.unread_count(current_user.id))


@router.post("/read-all", response_model=MarkAllReadResponse)
@limit_writes
async def mark_all_read(
    request: Request, current_user: CurrentUser, notifications: NotificationServiceDep
):
    return MarkAllReadResponse(updated=await notifications.mark_all_read(current_user.id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
@limit_writes
async def mark_read(
    request: Request,
    notification_id: str,
    current_user: CurrentUser,
    notifications: NotificationServiceDep,
):
    notification = await notifications.mark_read(current_user.id, notification_id)
    return NotificationResponse.model_validate(notification)
