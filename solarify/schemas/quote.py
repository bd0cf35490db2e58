"""Quote API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LineItemRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., description="equipment, installation or permit")
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)


class QuoteCreateRequest(BaseModel):
    rfq_id: str = Field(..., min_length=1)
    line_items: list[LineItemRequest] = Field(..., min_length=1)
    tax_rate: float = Field(default=0.0, ge=0, le=100)
    validity_period_days: int = Field(default=30, ge=1)
    currency_code: str = Field(default="USD", min_length=3, max_length=3)
    notes: str | None = Field(default=None, max_length=5000)
    terms_and_conditions: str | None = Field(default=None, max_length=10000)
    draft: bool = Field(default=False, description="Save without sending to the homeowner")


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str
    category: str
    quantity: float
    unit_price: float
    total: float


class QuoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    rfq_id: str
    installer_id: str
    installer_name: str | None = None
    homeowner_id: str
    line_items: list[LineItemResponse]
    equipment_cost: float
    installation_cost: float
    permit_cost: float
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    price_per_watt: float | None = None
    validity_period_days: int
    currency_code: str
    status: str
    quote_date: datetime
    notes: str | None = None
    terms_and_conditions: str | None = None
    updated_at: datetime | None = None
