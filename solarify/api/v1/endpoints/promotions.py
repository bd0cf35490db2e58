"""Promotions posted by installers and suppliers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from solarify.api.v1.dependencies import CurrentUser, get_promotion_service
from solarify.application.use_cases.promotions import PromotionService
from solarify.core.limiter import limit_writes
from solarify.schemas.promotion import PromotionCreateRequest, PromotionResponse

router = APIRouter()

PromotionServiceDep = Annotated[PromotionService, Depends(get_promotion_service)]


@router.get("", response_model=list[PromotionResponse])
async def list_promotions(
    promotion_service: PromotionServiceDep,
    include_expired: bool = Query(False),
):
    """Active promotions (valid_until unset or not yet passed), newest first."""
    promotions = await promotion_service.list_promotions(include_expired=include_expired)
    return [PromotionResponse.model_validate(p) for p in promotions]


@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(promotion_id: str, promotion_service: PromotionServiceDep):
    return PromotionResponse.model_validate(await promotion_service.get_promotion(promotion_id))


@router.post("", response_model=PromotionResponse, status_code=201)
@limit_writes
async def create_promotion(
    request: Request,
    body: PromotionCreateRequest,
    current_user: CurrentUser,
    promotion_service: PromotionServiceDep,
):
    promotion = await promotion_service.create_promotion(current_user, body.model_dump())
    return PromotionResponse.model_validate(promotion)


@router.delete("/{promotion_id}", status_code=204)
@limit_writes
async def delete_promotion(
    request: Request,
    promotion_id: str,
    current_user: CurrentUser,
    promotion_service: PromotionServiceDep,
):
    await promotion_service.delete_promotion(current_user, promotion_id)
    return Response(status_code=204)
