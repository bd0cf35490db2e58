"""Firestore-backed quote repository (implements IQuoteRepository)."""

from __future__ import annotations

from dataclasses import asdict

from solarify.application.dtos.quote import LineItem, QuoteCreate, QuoteResult
from solarify.domain.enums import QuoteStatus
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_QUOTES
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreQuoteRepository:
    """Quote repository using Firestore."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_QUOTES)

    def _to_result(self, doc_id: str, data: dict) -> QuoteResult:
        items = tuple(
            LineItem(
                description=i.get("description", ""),
                category=i.get("category", ""),
                quantity=i.get("quantity", 0),
                unit_price=i.get("unit_price", 0),
                total=i.get("total", 0),
            )
            for i in data.get("line_items") or []
        )
        return QuoteResult(
            id=doc_id,
            rfq_id=data.get("rfq_id", ""),
            installer_id=data.get("installer_id", ""),
            homeowner_id=data.get("homeowner_id", ""),
            line_items=items,
            equipment_cost=data.get("equipment_cost", 0.0),
            installation_cost=data.get("installation_cost", 0.0),
            permit_cost=data.get("permit_cost", 0.0),
            subtotal=data.get("subtotal", 0.0),
            tax_rate=data.get("tax_rate", 0.0),
            tax_amount=data.get("tax_amount", 0.0),
            total_amount=data.get("total_amount", 0.0),
            price_per_watt=data.get("price_per_watt"),
            validity_period_days=int(data.get("validity_period_days", 30)),
            currency_code=data.get("currency_code", "USD"),
            status=data.get("status", QuoteStatus.SUBMITTED.value),
            quote_date=data["quote_date"],
            notes=data.get("notes"),
            terms_and_conditions=data.get("terms_and_conditions"),
            installer_name=data.get("installer_name"),
            updated_at=data.get("updated_at"),
        )

    async def _query(self, field: str, value: str, limit: int) -> list[QuoteResult]:
        q = (
            self._coll.where(field, "==", value)
            .order_by("quote_date", "DESCENDING")
            .limit(limit)
        )
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def create(self, data: QuoteCreate, installer_name: str | None = None) -> QuoteResult:
        """Persist a quote; quote_date is set to now."""
        now = utc_now()
        quote_id = generate_cuid()
        doc = asdict(data)
        doc["line_items"] = [asdict(item) for item in data.line_items]
        doc.update({"installer_name": installer_name, "quote_date": now, "updated_at": now})
        await self._coll.create(quote_id, doc)
        return self._to_result(quote_id, doc)

    async def get_by_id(self, quote_id: str) -> QuoteResult | None:
        """Return quote by ID."""
        doc = await self._coll.document(quote_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_by_rfq(self, rfq_id: str) -> list[QuoteResult]:
        """Return quotes for an RFQ (newest first)."""
        return await self._query("rfq_id", rfq_id, 100)

    async def list_by_installer(self, installer_id: str, limit: int = 100) -> list[QuoteResult]:
        """Return quotes written by an installer (newest first)."""
        return await self._query("installer_id", installer_id, limit)

    async def list_by_homeowner(self, homeowner_id: str, limit: int = 100) -> list[QuoteResult]:
        """Return quotes addressed to a homeowner (newest first)."""
        return await self._query("homeowner_id", homeowner_id, limit)

    async def update_status(self, quote_id: str, status: str) -> None:
        """Set status and updated_at."""
        await self._coll.document(quote_id).update({"status": status, "updated_at": utc_now()})

    async def has_accepted(self, homeowner_id: str, installer_id: str) -> bool:
        """True if the homeowner accepted any quote from the installer."""
        q = (
            self._coll.where("homeowner_id", "==", homeowner_id)
            .where("installer_id", "==", installer_id)
            .where("status", "==", QuoteStatus.ACCEPTED.value)
            .limit(1)
        )
        async for _ in q.stream():
            return True
        return False
