"""DTOs for promotions."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class PromotionResult:
    """Promotion read-model."""

    id: str
    author_id: str
    author_name: str
    author_role: str
    title: str
    content: str
    post_date: datetime
    tags: tuple[str, ...] = ()
    image_url: str | None = None
    image_hint: str | None = None
    discount_offer: str | None = None
    call_to_action_link: str | None = None
    call_to_action_text: str | None = None
    valid_until: date | None = None
