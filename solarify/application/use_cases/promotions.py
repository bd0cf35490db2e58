"""Promotions posted by installers and suppliers."""

from __future__ import annotations

from datetime import date
from typing import Any

from solarify.application.dtos.promotion import PromotionResult
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import IPromotionRepository
from solarify.domain.enums import UserRole
from solarify.domain.exceptions import AuthorizationException, ResourceNotFoundException
from solarify.shared.utils.datetime import utc_today
from solarify.shared.utils.sanitization import sanitize_tags, sanitize_text


def is_active(promotion: PromotionResult, today: date | None = None) -> bool:
    """Active when valid_until is unset or on/after today."""
    return promotion.valid_until is None or promotion.valid_until >= (today or utc_today())


class PromotionService:
    """Create, list, read and delete promotions."""

    def __init__(self, promotion_repo: IPromotionRepository) -> None:
        self.promotion_repo = promotion_repo

    async def create_promotion(self, author: UserResult, fields: dict[str, Any]) -> PromotionResult:
        """Installers and suppliers only; text fields are sanitized."""
        if author.role not in (UserRole.INSTALLER.value, UserRole.SUPPLIER.value):
            raise AuthorizationException("promotion", "create")
        cleaned = dict(fields)
        for key in ("title", "content", "discount_offer", "call_to_action_text", "image_hint"):
            if key in cleaned:
                cleaned[key] = sanitize_text(cleaned[key])
        cleaned["tags"] = sanitize_tags(list(cleaned.get("tags") or []))
        cleaned.update({
            "author_id": author.id,
            "author_name": author.display_name,
            "author_role": author.role,
        })
        return await self.promotion_repo.create(cleaned)

    async def list_promotions(self, include_expired: bool = False) -> list[PromotionResult]:
        promotions = await self.promotion_repo.list_promotions()
        if include_expired:
            return promotions
        today = utc_today()
        return [p for p in promotions if is_active(p, today)]

    async def get_promotion(self, promotion_id: str) -> PromotionResult:
        promotion = await self.promotion_repo.get_by_id(promotion_id)
        if not promotion:
            raise ResourceNotFoundException("promotion", promotion_id)
        return promotion

    async def delete_promotion(self, user: UserResult, promotion_id: str) -> None:
        """Author or admin only."""
        promotion = await self.get_promotion(promotion_id)
        if promotion.author_id != user.id and user.role != UserRole.ADMIN.value:
            raise AuthorizationException("promotion", "delete")
        await self.promotion_repo.delete(promotion_id)
