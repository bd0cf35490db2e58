"""User directory and public profiles."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from solarify.api.v1.dependencies import CurrentUser, get_user_service
from solarify.application.services.user_service import UserService
from solarify.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from solarify.schemas.user import PublicProfileResponse

router = APIRouter()


@router.get("", response_model=list[PublicProfileResponse])
async def list_users(
    current_user: CurrentUser,
    user_service: Annotated[UserService, Depends(get_user_service)],
    role: str = Query(..., description="installer, supplier or homeowner"),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """Active users with a role, e.g. installers to invite to an RFQ."""
    users = await user_service.list_by_role(role, skip=skip, limit=limit)
    return [PublicProfileResponse.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_profile(
    user_id: str,
    current_user: CurrentUser,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    user = await user_service.get_public_profile(user_id)
    return PublicProfileResponse.model_validate(user)
