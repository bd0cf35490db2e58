"""Firestore-backed billing cycle and billing history storage."""

from __future__ import annotations

from datetime import date
from typing import Any

from solarify.application.dtos.billing import BillingCycleResult
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import (
    COLLECTION_BILLING_CYCLES,
    COLLECTION_BILLING_HISTORY,
)
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_prefixed_id


def _as_date(value: Any) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


class FirestoreBillingCycleRepository:
    """Billing cycles keyed '{customer}-{YYYY}-{MM}'; dates are ISO strings so ranges compare lexically."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_BILLING_CYCLES)
        self._history = client.collection(COLLECTION_BILLING_HISTORY)

    def _to_result(self, doc_id: str, data: dict) -> BillingCycleResult:
        return BillingCycleResult(
            id=doc_id,
            customer_id=data.get("customer_id", ""),
            utility_company=data.get("utility_company", ""),
            rate_schedule_id=data.get("rate_schedule_id", ""),
            nem_policy_id=data.get("nem_policy_id", ""),
            start_date=_as_date(data["start_date"]),
            end_date=_as_date(data["end_date"]),
            bill_generation_date=_as_date(data["bill_generation_date"]),
            due_date=_as_date(data["due_date"]),
            status=data.get("status", "active"),
            is_true_up_period=bool(data.get("is_true_up_period", False)),
            energy=data.get("energy") or {},
            charges=data.get("charges") or {},
            credits=data.get("credits") or {},
            comparison=data.get("comparison") or {},
            created_at=data.get("created_at"),
        )

    async def save(self, cycle: BillingCycleResult) -> None:
        """Create or overwrite the cycle."""
        await self._coll.document(cycle.id).set({
            "customer_id": cycle.customer_id,
            "utility_company": cycle.utility_company,
            "rate_schedule_id": cycle.rate_schedule_id,
            "nem_policy_id": cycle.nem_policy_id,
            "start_date": cycle.start_date.isoformat(),
            "end_date": cycle.end_date.isoformat(),
            "bill_generation_date": cycle.bill_generation_date.isoformat(),
            "due_date": cycle.due_date.isoformat(),
            "status": cycle.status,
            "is_true_up_period": cycle.is_true_up_period,
            "energy": cycle.energy,
            "charges": cycle.charges,
            "credits": cycle.credits,
            "comparison": cycle.comparison,
            "created_at": cycle.created_at or utc_now(),
        })

    async def get_by_id(self, cycle_id: str) -> BillingCycleResult | None:
        """Return cycle by ID."""
        doc = await self._coll.document(cycle_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_by_customer(
        self,
        customer_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[BillingCycleResult]:
        """Return the customer's cycles starting within [start, end] (oldest first)."""
        q = self._coll.where("customer_id", "==", customer_id)
        if start:
            q = q.where("start_date", ">=", start.isoformat())
        if end:
            q = q.where("start_date", "<=", end.isoformat())
        q = q.order_by("start_date").limit(240)
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def append_history(self, customer_id: str, kind: str, payload: dict[str, Any]) -> str:
        """Record a calculation result (comparison, true-up) in billing history."""
        record_id = generate_prefixed_id(kind)
        await self._history.create(record_id, {
            "customer_id": customer_id,
            "kind": kind,
            "payload": payload,
            "created_at": utc_now(),
        })
        return record_id
