"""Reviews of products, installers and suppliers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from solarify.api.v1.dependencies import CurrentUser, get_review_service
from solarify.application.use_cases.reviews import ReviewService
from solarify.core.limiter import limit_writes
from solarify.schemas.review import ReviewCreateRequest, ReviewResponse, ReviewSummaryResponse

router = APIRouter()

ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]


@router.post("", response_model=ReviewResponse, status_code=201)
@limit_writes
async def create_review(
    request: Request,
    body: ReviewCreateRequest,
    current_user: CurrentUser,
    review_service: ReviewServiceDep,
):
    """One review per user and target; 409 on a second attempt."""
    review = await review_service.create_review(
        current_user, body.target_type, body.target_id, body.rating, body.title, body.comment
    )
    return ReviewResponse.model_validate(review)


@router.get("", response_model=list[ReviewResponse])
async def list_reviews(
    review_service: ReviewServiceDep,
    target_type: str = Query(...),
    target_id: str = Query(...),
):
    reviews = await review_service.list_for_target(target_type, target_id)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.get("/summary", response_model=ReviewSummaryResponse)
async def review_summary(
    review_service: ReviewServiceDep,
    target_type: str = Query(...),
    target_id: str = Query(...),
):
    return ReviewSummaryResponse.model_validate(await review_service.summary(target_type, target_id))


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
@limit_writes
async def mark_helpful(
    request: Request, review_id: str, current_user: CurrentUser, review_service: ReviewServiceDep
):
    return ReviewResponse.model_validate(await review_service.mark_helpful(review_id))


@router.post("/{review_id}/report", response_model=ReviewResponse)
@limit_writes
async def report_review(
    request: Request, review_id: str, current_user: CurrentUser, review_service: ReviewServiceDep
):
    return ReviewResponse.model_validate(await review_service.report(review_id))
