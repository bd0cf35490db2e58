"""Firestore-backed RFQ repository (implements IRFQRepository)."""

from __future__ import annotations

from dataclasses import asdict

from solarify.application.dtos.rfq import RFQCreate, RFQResult
from solarify.application.dtos.user import Address
from solarify.domain.enums import RFQStatus
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_RFQS
from solarify.infrastructure.firebase.repositories.user_repo_firestore import (
    address_from_dict,
)
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


class FirestoreRFQRepository:
    """RFQ repository using Firestore."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._coll = client.collection(COLLECTION_RFQS)

    def _to_result(self, doc_id: str, data: dict) -> RFQResult:
        return RFQResult(
            id=doc_id,
            homeowner_id=data.get("homeowner_id", ""),
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            address=address_from_dict(data.get("address")) or Address(),
            estimated_system_size_kw=float(data.get("estimated_system_size_kw", 0)),
            monthly_consumption_kwh=float(data.get("monthly_consumption_kwh", 0)),
            selected_installer_ids=tuple(data.get("selected_installer_ids") or ()),
            declined_installer_ids=tuple(data.get("declined_installer_ids") or ()),
            status=data.get("status", RFQStatus.PENDING.value),
            budget_min=data.get("budget_min"),
            budget_max=data.get("budget_max"),
            additional_notes=data.get("additional_notes"),
            include_monitoring=bool(data.get("include_monitoring", False)),
            include_battery_storage=bool(data.get("include_battery_storage", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    async def create(self, data: RFQCreate) -> RFQResult:
        """Persist a new RFQ with status pending."""
        now = utc_now()
        rfq_id = generate_cuid()
        doc = asdict(data)
        doc["selected_installer_ids"] = list(data.selected_installer_ids)
        doc.update({
            "declined_installer_ids": [],
            "status": RFQStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        })
        await self._coll.create(rfq_id, doc)
        return self._to_result(rfq_id, doc)

    async def get_by_id(self, rfq_id: str) -> RFQResult | None:
        """Return RFQ by ID."""
        doc = await self._coll.document(rfq_id).get()
        if not doc:
            return None
        return self._to_result(doc.id, doc.to_dict())

    async def list_by_homeowner(self, homeowner_id: str, limit: int = 100) -> list[RFQResult]:
        """Return the homeowner's RFQs (newest first)."""
        q = (
            self._coll.where("homeowner_id", "==", homeowner_id)
            .order_by("created_at", "DESCENDING")
            .limit(limit)
        )
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def list_for_installer(
        self, installer_id: str, status: str | None = None, limit: int = 100
    ) -> list[RFQResult]:
        """Return RFQs that selected the installer (newest first)."""
        q = self._coll.where("selected_installer_ids", "array-contains", installer_id)
        if status:
            q = q.where("status", "==", status)
        q = q.order_by("created_at", "DESCENDING").limit(limit)
        return [self._to_result(s.id, s.to_dict()) async for s in q.stream()]

    async def update_status(self, rfq_id: str, status: str) -> None:
        """Set status and updated_at."""
        await self._coll.document(rfq_id).update({"status": status, "updated_at": utc_now()})

    async def set_declined_installers(
        self, rfq_id: str, declined_installer_ids: list[str], status: str
    ) -> None:
        """Replace declined_installer_ids and status in one write."""
        await self._coll.document(rfq_id).update({
            "declined_installer_ids": declined_installer_ids,
            "status": status,
            "updated_at": utc_now(),
        })
