"""DTOs for product use cases."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProductResult:
    """Product read-model."""

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
