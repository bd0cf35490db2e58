"""Public contact form and the admin inbox."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from solarify.api.v1.dependencies import AdminUser, get_contact_service
from solarify.application.use_cases.contact import ContactService
from solarify.core.constants import MAX_PAGE_SIZE
from solarify.core.limiter import limit_contact, limit_writes
from solarify.schemas.contact import (
    ContactMessageRequest,
    ContactMessageResponse,
    ContactSubmittedResponse,
)

router = APIRouter()

ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]


@router.post("", response_model=ContactSubmittedResponse, status_code=201)
@limit_contact
async def submit_message(
    request: Request,
    body: ContactMessageRequest,
    contact_service: ContactServiceDep,
):
    message_id = await contact_service.submit(
        body.name, body.email, body.category, body.subject, body.message
    )
    return ContactSubmittedResponse(id=message_id)


@router.get("", response_model=list[ContactMessageResponse])
async def list_messages(
    admin: AdminUser,
    contact_service: ContactServiceDep,
    limit: int = Query(MAX_PAGE_SIZE, ge=1, le=1000),
):
    """Newest first."""
    messages = await contact_service.list_messages(limit)
    return [ContactMessageResponse.model_validate(m) for m in messages]


@router.post("/{message_id}/read", status_code=204)
@limit_writes
async def mark_message_read(
    request: Request, message_id: str, admin: AdminUser, contact_service: ContactServiceDep
):
    await contact_service.mark_read(message_id)
    return Response(status_code=204)
