"""Quote API: installers price RFQs; homeowners accept or reject."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from solarify.api.v1.dependencies import (
    CurrentUser,
    HomeownerUser,
    InstallerUser,
    get_quote_service,
)
from solarify.application.use_cases.quotes import QuoteService
from solarify.core.limiter import limit_writes
from solarify.schemas.quote import QuoteCreateRequest, QuoteResponse

router = APIRouter()

QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]


@router.post("", response_model=QuoteResponse, status_code=201)
@limit_writes
async def create_quote(
    request: Request,
    body: QuoteCreateRequest,
    installer: InstallerUser,
    quote_service: QuoteServiceDep,
):
    """Create a quote. Submitted quotes notify the homeowner; drafts do not."""
    quote = await quote_service.create_quote(
        installer,
        body.rfq_id,
        [(li.description, li.category, li.quantity, li.unit_price) for li in body.line_items],
        tax_rate=body.tax_rate,
        validity_period_days=body.validity_period_days,
        currency_code=body.currency_code,
        notes=body.notes,
        terms_and_conditions=body.terms_and_conditions,
        draft=body.draft,
    )
    return QuoteResponse.model_validate(quote)


@router.get("/sent", response_model=list[QuoteResponse])
async def list_sent_quotes(installer: InstallerUser, quote_service: QuoteServiceDep):
    return [QuoteResponse.model_validate(q) for q in await quote_service.list_for_installer(installer.id)]


@router.get("/received", response_model=list[QuoteResponse])
async def list_received_quotes(homeowner: HomeownerUser, quote_service: QuoteServiceDep):
    return [QuoteResponse.model_validate(q) for q in await quote_service.list_for_homeowner(homeowner.id)]


@router.get("/rfq/{rfq_id}", response_model=list[QuoteResponse])
async def list_quotes_for_rfq(rfq_id: str, current_user: CurrentUser, quote_service: QuoteServiceDep):
    quotes = await quote_service.list_for_rfq(current_user, rfq_id)
    return [QuoteResponse.model_validate(q) for q in quotes]


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(quote_id: str, current_user: CurrentUser, quote_service: QuoteServiceDep):
    """Fetch a quote; the homeowner's first view marks it viewed."""
    return QuoteResponse.model_validate(await quote_service.get_quote(current_user, quote_id))


@router.post("/{quote_id}/submit", response_model=QuoteResponse)
@limit_writes
async def submit_quote(
    request: Request, quote_id: str, installer: InstallerUser, quote_service: QuoteServiceDep
):
    return QuoteResponse.model_validate(await quote_service.submit(installer.id, quote_id))


@router.post("/{quote_id}/accept", response_model=QuoteResponse)
@limit_writes
async def accept_quote(
    request: Request, quote_id: str, homeowner: HomeownerUser, quote_service: QuoteServiceDep
):
    """Accept; other open quotes on the RFQ are rejected and the RFQ closes."""
    return QuoteResponse.model_validate(await quote_service.accept(homeowner.id, quote_id))


@router.post("/{quote_id}/reject", response_model=QuoteResponse)
@limit_writes
async def reject_quote(
    request: Request, quote_id: str, homeowner: HomeownerUser, quote_service: QuoteServiceDep
):
    return QuoteResponse.model_validate(await quote_service.reject(homeowner.id, quote_id))
