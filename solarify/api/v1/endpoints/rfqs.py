"""RFQ API: homeowners request quotes; selected installers review and decline."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request

from solarify.api.v1.dependencies import (
    CurrentUser,
    HomeownerUser,
    InstallerUser,
    get_rfq_service,
)
from solarify.application.dtos.rfq import RFQCreate
from solarify.application.dtos.user import Address
from solarify.application.use_cases.rfqs import RFQService
from solarify.core.limiter import limit_writes
from solarify.schemas.rfq import RFQCreateRequest, RFQResponse

router = APIRouter()

RFQServiceDep = Annotated[RFQService, Depends(get_rfq_service)]
SortParam = Literal["newest", "budget"]


@router.post("", response_model=RFQResponse, status_code=201)
@limit_writes
async def create_rfq(
    request: Request,
    body: RFQCreateRequest,
    homeowner: HomeownerUser,
    rfq_service: RFQServiceDep,
):
    """Create an RFQ and notify every selected installer."""
    data = RFQCreate(
        homeowner_id=homeowner.id,
        name=body.name,
        email=body.email,
        phone=body.phone,
        address=Address(**body.address.model_dump()),
        estimated_system_size_kw=body.estimated_system_size_kw,
        monthly_consumption_kwh=body.monthly_consumption_kwh,
        selected_installer_ids=tuple(body.selected_installer_ids),
        budget_min=body.budget_min,
        budget_max=body.budget_max,
        additional_notes=body.additional_notes,
        include_monitoring=body.include_monitoring,
        include_battery_storage=body.include_battery_storage,
    )
    rfq = await rfq_service.create_rfq(homeowner, data)
    return RFQResponse.model_validate(rfq)


@router.get("/mine", response_model=list[RFQResponse])
async def list_my_rfqs(homeowner: HomeownerUser, rfq_service: RFQServiceDep):
    """Homeowner's RFQs, newest first."""
    return [RFQResponse.model_validate(r) for r in await rfq_service.list_for_homeowner(homeowner.id)]


@router.get("/received", response_model=list[RFQResponse])
async def list_received_rfqs(
    installer: InstallerUser,
    rfq_service: RFQServiceDep,
    status: str | None = Query(None),
    sort: SortParam = Query("newest"),
):
    """RFQs where the installer was selected."""
    rfqs = await rfq_service.list_for_installer(installer.id, status=status, sort=sort)
    return [RFQResponse.model_validate(r) for r in rfqs]


@router.get("/pending", response_model=list[RFQResponse])
async def list_pending_rfqs(
    installer: InstallerUser,
    rfq_service: RFQServiceDep,
    sort: SortParam = Query("newest"),
):
    """Pending RFQs the installer has not declined."""
    rfqs = await rfq_service.pending_for_installer(installer.id, sort=sort)
    return [RFQResponse.model_validate(r) for r in rfqs]


@router.get("/{rfq_id}", response_model=RFQResponse)
async def get_rfq(rfq_id: str, current_user: CurrentUser, rfq_service: RFQServiceDep):
    return RFQResponse.model_validate(await rfq_service.get_rfq(current_user, rfq_id))


@router.post("/{rfq_id}/decline", response_model=RFQResponse)
@limit_writes
async def decline_rfq(
    request: Request, rfq_id: str, installer: InstallerUser, rfq_service: RFQServiceDep
):
    return RFQResponse.model_validate(await rfq_service.decline(installer.id, rfq_id))


@router.post("/{rfq_id}/close", response_model=RFQResponse)
@limit_writes
async def close_rfq(
    request: Request, rfq_id: str, homeowner: HomeownerUser, rfq_service: RFQServiceDep
):
    return RFQResponse.model_validate(await rfq_service.close(homeowner.id, rfq_id))
