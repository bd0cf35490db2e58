"""Cart checkout and order API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CartItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CheckoutRequest(BaseModel):
    items: list[CartItemRequest] = Field(..., min_length=1)
    notes: str | None = Field(default=None, max_length=2000)
    inquiry: bool = Field(default=False, description="Request a quote instead of placing the order")


class OrderStatusUpdateRequest(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    product_name: str
    supplier_id: str
    supplier_name: str
    unit_price: float
    currency_code: str
    quantity: int
    line_total: float


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    customer_name: str
    items: list[OrderItemResponse]
    supplier_ids: list[str]
    currency_code: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
