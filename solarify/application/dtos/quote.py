"""DTOs for quote use cases."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LineItem:
    """One priced row of a quote; total is quantity x unit_price rounded to cents."""

    description: str
    category: str
    quantity: float
    unit_price: float
    total: float


@dataclass(frozen=True)
class QuoteCreate:
    """Quote payload with totals already computed by QuoteService."""

    rfq_id: str
    installer_id: str
    homeowner_id: str
    line_items: tuple[LineItem, ...]
    equipment_cost: float
    installation_cost: float
    permit_cost: float
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    price_per_watt: float | None
    validity_period_days: int
    currency_code: str
    status: str
    notes: str | None = None
    terms_and_conditions: str | None = None


@dataclass(frozen=True)
class QuoteResult:
    """Quote read-model."""

    id: str
    rfq_id: str
    installer_id: str
    homeowner_id: str
    line_items: tuple[LineItem, ...]
    equipment_cost: float
    installation_cost: float
    permit_cost: float
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    price_per_watt: float | None
    validity_period_days: int
    currency_code: str
    status: str
    quote_date: datetime
    notes: str | None = None
    terms_and_conditions: str | None = None
    installer_name: str | None = None
    updated_at: datetime | None = None
