"""DTOs for reviews and rating summaries."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ReviewResult:
    """Review read-model."""

    id: str
    user_id: str
    user_name: str
    user_email: str
    target_id: str
    target_type: str
    rating: int
    title: str
    comment: str
    is_verified: bool = False
    helpful_count: int = 0
    is_reported: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ReviewSummary:
    """Aggregate rating for a target; distribution is keyed by star (1-5)."""

    target_id: str
    target_type: str
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int] = field(default_factory=dict)
