"""Product API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

_CURRENCY = r"^[A-Z]{3}$"


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    price_value: float = Field(..., ge=0)
    currency_code: str = Field(default="USD", pattern=_CURRENCY)
    stock: int = Field(default=0, ge=0)
    image_url: str | None = Field(default=None, max_length=2000)
    image_hint: str | None = Field(default=None, max_length=200)


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    price_value: float | None = Field(default=None, ge=0)
    currency_code: str | None = Field(default=None, pattern=_CURRENCY)
    stock: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=2000)
    image_hint: str | None = Field(default=None, max_length=200)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    category: str
    price_value: float
    currency_code: str
    stock: int
    supplier_id: str
    supplier_name: str
    image_url: str | None = None
    image_hint: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
