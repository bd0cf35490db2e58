"""Promotion API schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class PromotionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    image_url: str | None = Field(default=None, max_length=2000)
    image_hint: str | None = Field(default=None, max_length=200)
    discount_offer: str | None = Field(default=None, max_length=200)
    call_to_action_link: str | None = Field(default=None, max_length=2000)
    call_to_action_text: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list, max_length=20)
    valid_until: date | None = None


class PromotionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    author_name: str
    author_role: str
    title: str
    content: str
    post_date: datetime
    tags: list[str]
    image_url: str | None = None
    image_hint: str | None = None
    discount_offer: str | None = None
    call_to_action_link: str | None = None
    call_to_action_text: str | None = None
    valid_until: date | None = None
