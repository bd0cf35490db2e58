"""DTOs for cart checkout and orders."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OrderItem:
    """Order line with product details denormalized at checkout time."""

    product_id: str
    product_name: str
    supplier_id: str
    supplier_name: str
    unit_price: float
    currency_code: str
    quantity: int
    line_total: float


@dataclass(frozen=True)
class OrderCreate:
    """Order payload computed by OrderService.checkout."""

    customer_id: str
    customer_name: str
    items: tuple[OrderItem, ...]
    supplier_ids: tuple[str, ...]
    currency_code: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    status: str
    notes: str | None = None


@dataclass(frozen=True)
class OrderResult:
    """Order read-model."""

    id: str
    customer_id: str
    customer_name: str
    items: tuple[OrderItem, ...]
    supplier_ids: tuple[str, ...]
    currency_code: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def contains_product(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.items)
