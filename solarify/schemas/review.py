"""Review API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreateRequest(BaseModel):
    target_id: str = Field(..., min_length=1)
    target_type: str = Field(..., description="product, installer or supplier")
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=200)
    comment: str = Field(..., min_length=1, max_length=5000)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_name: str
    target_id: str
    target_type: str
    rating: int
    title: str
    comment: str
    is_verified: bool
    helpful_count: int
    is_reported: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    target_id: str
    target_type: str
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]
