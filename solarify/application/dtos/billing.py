"""DTOs for stored billing cycles."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class BillingCycleResult:
    """A persisted monthly billing cycle (id is '{customer}-{YYYY}-{MM}').

    energy, charges, credits and comparison keep the calculator's camelCase
    payloads so the billing endpoints can return them unchanged.
    """

    id: str
    customer_id: str
    utility_company: str
    rate_schedule_id: str
    nem_policy_id: str
    start_date: date
    end_date: date
    bill_generation_date: date
    due_date: date
    status: str
    is_true_up_period: bool
    energy: dict[str, Any] = field(default_factory=dict)
    charges: dict[str, Any] = field(default_factory=dict)
    credits: dict[str, Any] = field(default_factory=dict)
    comparison: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
