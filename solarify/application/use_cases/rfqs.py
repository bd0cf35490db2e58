"""RFQ operations: create, read, installer inboxes, decline and close."""

from __future__ import annotations

import logging

from solarify.application.dtos.rfq import RFQCreate, RFQResult
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import IRFQRepository, IUserRepository
from solarify.application.services.notification_service import NotificationService
from solarify.core.constants import RFQ_MAX_INSTALLERS, RFQ_MIN_INSTALLERS
from solarify.domain.enums import NotificationType, RFQStatus, UserRole
from solarify.domain.exceptions import (
    AuthorizationException,
    InvalidStatusTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)

SORT_NEWEST = "newest"
SORT_BUDGET = "budget"


def sort_rfqs(rfqs: list[RFQResult], sort: str = SORT_NEWEST) -> list[RFQResult]:
    """Order RFQs for an installer inbox.

    newest: created_at descending. budget: budget_max (else budget_min)
    descending; RFQs without any budget go last, newest first among ties.
    """
    by_newest = sorted(
        rfqs,
        key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
        reverse=True,
    )
    if sort == SORT_NEWEST:
        return by_newest
    if sort != SORT_BUDGET:
        raise ValidationException(f"Unknown sort: {sort}", field="sort")
    with_budget = [r for r in by_newest if r.budget_sort_value is not None]
    without_budget = [r for r in by_newest if r.budget_sort_value is None]
    with_budget.sort(key=lambda r: r.budget_sort_value, reverse=True)
    return with_budget + without_budget


class RFQService:
    """Homeowner RFQs and installer inboxes."""

    def __init__(
        self,
        rfq_repo: IRFQRepository,
        user_repo: IUserRepository,
        notifications: NotificationService,
    ) -> None:
        self.rfq_repo = rfq_repo
        self.user_repo = user_repo
        self.notifications = notifications

    async def _validate_installers(self, installer_ids: list[str]) -> tuple[str, ...]:
        unique = tuple(dict.fromkeys(installer_ids))
        if not RFQ_MIN_INSTALLERS <= len(unique) <= RFQ_MAX_INSTALLERS:
            raise ValidationException(
                f"Select between {RFQ_MIN_INSTALLERS} and {RFQ_MAX_INSTALLERS} installers",
                field="selected_installer_ids",
            )
        for installer_id in unique:
            installer = await self.user_repo.get_by_id(installer_id)
            if not installer or installer.role != UserRole.INSTALLER.value:
                raise ValidationException(
                    f"Not an installer: {installer_id}", field="selected_installer_ids"
                )
        return unique

    async def create_rfq(self, homeowner: UserResult, data: RFQCreate) -> RFQResult:
        """Create an RFQ and notify every selected installer."""
        if (
            data.budget_min is not None
            and data.budget_max is not None
            and data.budget_min > data.budget_max
        ):
            raise ValidationException(
                "budget_min must not exceed budget_max", field="budget_min"
            )
        installers = await self._validate_installers(list(data.selected_installer_ids))
        payload = RFQCreate(
            homeowner_id=homeowner.id,
            name=sanitize_text(data.name) or "",
            email=data.email,
            phone=data.phone,
            address=data.address,
            estimated_system_size_kw=data.estimated_system_size_kw,
            monthly_consumption_kwh=data.monthly_consumption_kwh,
            selected_installer_ids=installers,
            budget_min=data.budget_min,
            budget_max=data.budget_max,
            additional_notes=sanitize_text(data.additional_notes),
            include_monitoring=data.include_monitoring,
            include_battery_storage=data.include_battery_storage,
        )
        rfq = await self.rfq_repo.create(payload)
        logger.info("RFQ %s created for %d installers", rfq.id, len(installers))
        for installer_id in installers:
            await self.notifications.notify(
                installer_id,
                NotificationType.RFQ_RECEIVED,
                "New quote request",
                f"{rfq.name} requested a quote for a {rfq.estimated_system_size_kw:g} kW system.",
                action_url=f"/installer/rfqs/{rfq.id}",
                metadata={"rfq_id": rfq.id},
            )
        return rfq

    async def get_rfq(self, user: UserResult, rfq_id: str) -> RFQResult:
        """Return RFQ visible to its homeowner, a selected installer or an admin."""
        rfq = await self.rfq_repo.get_by_id(rfq_id)
        if not rfq:
            raise ResourceNotFoundException("rfq", rfq_id)
        if (
            user.role != UserRole.ADMIN.value
            and user.id != rfq.homeowner_id
            and user.id not in rfq.selected_installer_ids
        ):
            raise AuthorizationException("rfq", "read")
        return rfq

    async def list_for_homeowner(self, homeowner_id: str) -> list[RFQResult]:
        return await self.rfq_repo.list_by_homeowner(homeowner_id)

    async def list_for_installer(
        self,
        installer_id: str,
        status: str | None = None,
        sort: str = SORT_NEWEST,
    ) -> list[RFQResult]:
        """Installer inbox with optional status filter and newest/budget ordering."""
        if status is not None and status not in RFQStatus.values():
            raise ValidationException(f"Unknown status: {status}", field="status")
        rfqs = await self.rfq_repo.list_for_installer(installer_id, status=status)
        return sort_rfqs(rfqs, sort)

    async def pending_for_installer(
        self, installer_id: str, sort: str = SORT_NEWEST
    ) -> list[RFQResult]:
        """Pending RFQs the installer has not declined."""
        rfqs = await self.rfq_repo.list_for_installer(
            installer_id, status=RFQStatus.PENDING.value
        )
        return sort_rfqs(
            [r for r in rfqs if installer_id not in r.declined_installer_ids], sort
        )

    async def decline(self, installer_id: str, rfq_id: str) -> RFQResult:
        """Installer declines; the RFQ closes once every selected installer has declined."""
        rfq = await self.rfq_repo.get_by_id(rfq_id)
        if not rfq:
            raise ResourceNotFoundException("rfq", rfq_id)
        if installer_id not in rfq.selected_installer_ids:
            raise AuthorizationException("rfq", "decline")
        if rfq.status == RFQStatus.CLOSED.value:
            raise InvalidStatusTransitionException("rfq", rfq.status, "declined")
        if installer_id in rfq.declined_installer_ids:
            return rfq
        declined = [*rfq.declined_installer_ids, installer_id]
        status = rfq.status
        if set(declined) >= set(rfq.selected_installer_ids):
            status = RFQStatus.CLOSED.value
        await self.rfq_repo.set_declined_installers(rfq_id, declined, status)
        logger.info("Installer %s declined RFQ %s", installer_id, rfq_id)
        return await self.rfq_repo.get_by_id(rfq_id) or rfq

    async def close(self, homeowner_id: str, rfq_id: str) -> RFQResult:
        """Homeowner withdraws or finalizes the RFQ."""
        rfq = await self.rfq_repo.get_by_id(rfq_id)
        if not rfq:
            raise ResourceNotFoundException("rfq", rfq_id)
        if rfq.homeowner_id != homeowner_id:
            raise AuthorizationException("rfq", "close")
        if rfq.status == RFQStatus.CLOSED.value:
            raise InvalidStatusTransitionException("rfq", rfq.status, RFQStatus.CLOSED.value)
        await self.rfq_repo.update_status(rfq_id, RFQStatus.CLOSED.value)
        return await self.rfq_repo.get_by_id(rfq_id) or rfq
