"""Reviews of products, installers and suppliers, with verified-purchase flags."""

from __future__ import annotations

import logging

from solarify.application.dtos.review import ReviewResult, ReviewSummary
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import (
    IOrderRepository,
    IQuoteRepository,
    IReviewRepository,
)
from solarify.domain.enums import OrderStatus, ReviewTargetType
from solarify.domain.exceptions import (
    DuplicateReviewException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)


def summarize(target_type: str, target_id: str, reviews: list[ReviewResult]) -> ReviewSummary:
    """Average (1 decimal, 0 when empty), count and 1-5 star distribution."""
    distribution = {star: 0 for star in range(1, 6)}
    for review in reviews:
        if review.rating in distribution:
            distribution[review.rating] += 1
    total = len(reviews)
    average = round(sum(r.rating for r in reviews) / total, 1) if total else 0.0
    return ReviewSummary(
        target_id=target_id,
        target_type=target_type,
        average_rating=average,
        total_reviews=total,
        rating_distribution=distribution,
    )


class ReviewService:
    """Create, list, summarize and moderate reviews."""

    def __init__(
        self,
        review_repo: IReviewRepository,
        order_repo: IOrderRepository,
        quote_repo: IQuoteRepository,
    ) -> None:
        self.review_repo = review_repo
        self.order_repo = order_repo
        self.quote_repo = quote_repo

    async def _is_verified(self, user_id: str, target_type: str, target_id: str) -> bool:
        if target_type == ReviewTargetType.INSTALLER.value:
            return await self.quote_repo.has_accepted(user_id, target_id)
        completed = [
            o for o in await self.order_repo.list_by_customer(user_id)
            if o.status == OrderStatus.COMPLETED.value
        ]
        if target_type == ReviewTargetType.PRODUCT.value:
            return any(o.contains_product(target_id) for o in completed)
        return any(target_id in o.supplier_ids for o in completed)

    async def create_review(
        self,
        user: UserResult,
        target_type: str,
        target_id: str,
        rating: int,
        title: str,
        comment: str,
    ) -> ReviewResult:
        """One review per user and target; is_verified reflects a completed purchase or accepted quote."""
        if target_type not in ReviewTargetType.values():
            raise ValidationException(f"Unknown review target: {target_type}", field="target_type")
        if not 1 <= rating <= 5:
            raise ValidationException("Rating must be between 1 and 5", field="rating")
        if user.id == target_id:
            raise ValidationException("You cannot review yourself", field="target_id")
        if await self.review_repo.get_by_user_and_target(user.id, target_type, target_id):
            raise DuplicateReviewException(target_type, target_id)
        review = await self.review_repo.create({
            "user_id": user.id,
            "user_name": user.full_name,
            "user_email": user.email,
            "target_id": target_id,
            "target_type": target_type,
            "rating": rating,
            "title": sanitize_text(title) or "",
            "comment": sanitize_text(comment) or "",
            "is_verified": await self._is_verified(user.id, target_type, target_id),
        })
        logger.info("Review %s created for %s %s", review.id, target_type, target_id)
        return review

    async def list_for_target(self, target_type: str, target_id: str) -> list[ReviewResult]:
        return await self.review_repo.list_by_target(target_type, target_id)

    async def summary(self, target_type: str, target_id: str) -> ReviewSummary:
        reviews = await self.review_repo.list_by_target(target_type, target_id)
        return summarize(target_type, target_id, reviews)

    async def mark_helpful(self, review_id: str) -> ReviewResult:
        if not await self.review_repo.get_by_id(review_id):
            raise ResourceNotFoundException("review", review_id)
        await self.review_repo.increment_helpful(review_id)
        return await self.review_repo.get_by_id(review_id)  # type: ignore[return-value]

    async def report(self, review_id: str) -> ReviewResult:
        if not await self.review_repo.get_by_id(review_id):
            raise ResourceNotFoundException("review", review_id)
        await self.review_repo.mark_reported(review_id)
        logger.warning("Review %s reported for moderation", review_id)
        return await self.review_repo.get_by_id(review_id)  # type: ignore[return-value]
