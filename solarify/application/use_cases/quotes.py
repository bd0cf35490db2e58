"""Quote operations: pricing, submission, viewing, acceptance and expiry."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from solarify.application.dtos.quote import LineItem, QuoteCreate, QuoteResult
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import IQuoteRepository, IRFQRepository
from solarify.application.services.notification_service import NotificationService
from solarify.domain.enums import (
    LineItemCategory,
    NotificationType,
    QuoteStatus,
    RFQStatus,
    UserRole,
)
from solarify.domain.exceptions import (
    AuthorizationException,
    InvalidStatusTransitionException,
    QuoteExpiredException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.utils.datetime import ensure_utc, utc_now
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)


def price_line_items(
    items: list[tuple[str, str, float, float]],
) -> tuple[LineItem, ...]:
    """Build LineItems from (description, category, quantity, unit_price) rows."""
    priced = []
    for description, category, quantity, unit_price in items:
        if category not in LineItemCategory.values():
            raise ValidationException(f"Unknown line item category: {category}", field="category")
        if quantity <= 0:
            raise ValidationException("Quantity must be greater than 0", field="quantity")
        if unit_price < 0:
            raise ValidationException("Unit price must not be negative", field="unit_price")
        priced.append(
            LineItem(
                description=sanitize_text(description) or "",
                category=category,
                quantity=quantity,
                unit_price=unit_price,
                total=round(quantity * unit_price, 2),
            )
        )
    return tuple(priced)


def quote_totals(line_items: tuple[LineItem, ...], tax_rate: float) -> dict[str, float]:
    """Cost buckets, subtotal, tax and total for a set of line items.

    subtotal = equipment + installation + permit; total = subtotal + subtotal * tax_rate / 100.
    """
    if not 0 <= tax_rate <= 100:
        raise ValidationException("Tax rate must be between 0 and 100", field="tax_rate")
    costs = {category: 0.0 for category in LineItemCategory.values()}
    for item in line_items:
        costs[item.category] += item.total
    equipment = round(costs[LineItemCategory.EQUIPMENT.value], 2)
    installation = round(costs[LineItemCategory.INSTALLATION.value], 2)
    permit = round(costs[LineItemCategory.PERMIT.value], 2)
    subtotal = round(equipment + installation + permit, 2)
    tax_amount = round(subtotal * tax_rate / 100, 2)
    return {
        "equipment_cost": equipment,
        "installation_cost": installation,
        "permit_cost": permit,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total_amount": round(subtotal + tax_amount, 2),
    }


def is_expired(quote: QuoteResult, now: datetime | None = None) -> bool:
    """True when an open quote is past quote_date + validity_period_days."""
    if quote.status not in {s.value for s in QuoteStatus.open_statuses()}:
        return False
    expires_at = ensure_utc(quote.quote_date) + timedelta(days=quote.validity_period_days)
    return (now or utc_now()) > expires_at


def effective(quote: QuoteResult, now: datetime | None = None) -> QuoteResult:
    """Quote as read by clients: open quotes past validity read as expired."""
    if is_expired(quote, now):
        return replace(quote, status=QuoteStatus.EXPIRED.value)
    return quote


class QuoteService:
    """Installer quotes against RFQs."""

    def __init__(
        self,
        quote_repo: IQuoteRepository,
        rfq_repo: IRFQRepository,
        notifications: NotificationService,
    ) -> None:
        self.quote_repo = quote_repo
        self.rfq_repo = rfq_repo
        self.notifications = notifications

    async def _get(self, quote_id: str) -> QuoteResult:
        quote = await self.quote_repo.get_by_id(quote_id)
        if not quote:
            raise ResourceNotFoundException("quote", quote_id)
        return quote

    async def _notify_homeowner(self, quote: QuoteResult) -> None:
        await self.notifications.notify(
            quote.homeowner_id,
            NotificationType.QUOTE_RECEIVED,
            "New quote received",
            f"{quote.installer_name or 'An installer'} sent a quote for "
            f"{quote.currency_code} {quote.total_amount:,.2f}.",
            action_url=f"/homeowner/quotes/{quote.id}",
            metadata={"quote_id": quote.id, "rfq_id": quote.rfq_id},
        )

    async def create_quote(
        self,
        installer: UserResult,
        rfq_id: str,
        line_items: list[tuple[str, str, float, float]],
        tax_rate: float = 0.0,
        validity_period_days: int = 30,
        currency_code: str = "USD",
        notes: str | None = None,
        terms_and_conditions: str | None = None,
        draft: bool = False,
    ) -> QuoteResult:
        """Price and store a quote. Only a selected, non-declining installer may quote."""
        rfq = await self.rfq_repo.get_by_id(rfq_id)
        if not rfq:
            raise ResourceNotFoundException("rfq", rfq_id)
        if installer.id not in rfq.selected_installer_ids:
            raise AuthorizationException("rfq", "quote")
        if installer.id in rfq.declined_installer_ids:
            raise ValidationException("You declined this RFQ", field="rfq_id")
        if rfq.status == RFQStatus.CLOSED.value:
            raise ValidationException("RFQ is closed", field="rfq_id")
        if not line_items:
            raise ValidationException("At least one line item is required", field="line_items")
        if validity_period_days < 1:
            raise ValidationException(
                "Validity period must be at least 1 day", field="validity_period_days"
            )

        items = price_line_items(line_items)
        totals = quote_totals(items, tax_rate)
        size_watts = rfq.estimated_system_size_kw * 1000
        price_per_watt = round(totals["subtotal"] / size_watts, 2) if size_watts > 0 else None
        status = QuoteStatus.DRAFT if draft else QuoteStatus.SUBMITTED
        quote = await self.quote_repo.create(
            QuoteCreate(
                rfq_id=rfq.id,
                installer_id=installer.id,
                homeowner_id=rfq.homeowner_id,
                line_items=items,
                tax_rate=tax_rate,
                price_per_watt=price_per_watt,
                validity_period_days=validity_period_days,
                currency_code=currency_code.upper(),
                status=status.value,
                notes=sanitize_text(notes),
                terms_and_conditions=sanitize_text(terms_and_conditions),
                **totals,
            ),
            installer_name=installer.display_name,
        )
        logger.info("Quote %s created for RFQ %s (%s)", quote.id, rfq.id, status.value)
        if status is QuoteStatus.SUBMITTED:
            await self._on_submitted(quote)
        return quote

    async def _on_submitted(self, quote: QuoteResult) -> None:
        rfq = await self.rfq_repo.get_by_id(quote.rfq_id)
        if rfq and rfq.status == RFQStatus.PENDING.value:
            await self.rfq_repo.update_status(rfq.id, RFQStatus.RESPONDED.value)
        await self._notify_homeowner(quote)

    async def submit(self, installer_id: str, quote_id: str) -> QuoteResult:
        """Submit a draft quote."""
        quote = await self._get(quote_id)
        if quote.installer_id != installer_id:
            raise AuthorizationException("quote", "submit")
        if quote.status != QuoteStatus.DRAFT.value:
            raise InvalidStatusTransitionException(
                "quote", quote.status, QuoteStatus.SUBMITTED.value
            )
        await self.quote_repo.update_status(quote_id, QuoteStatus.SUBMITTED.value)
        submitted = await self._get(quote_id)
        await self._on_submitted(submitted)
        return submitted

    async def get_quote(self, user: UserResult, quote_id: str) -> QuoteResult:
        """Return quote to its installer, homeowner or an admin.

        The homeowner opening a submitted quote marks it viewed. Drafts are
        visible to the installer only.
        """
        quote = await self._get(quote_id)
        is_admin = user.role == UserRole.ADMIN.value
        if user.id == quote.installer_id or is_admin:
            return effective(quote)
        if user.id != quote.homeowner_id or quote.status == QuoteStatus.DRAFT.value:
            raise AuthorizationException("quote", "read")
        if quote.status == QuoteStatus.SUBMITTED.value and not is_expired(quote):
            await self.quote_repo.update_status(quote_id, QuoteStatus.VIEWED.value)
            quote = replace(quote, status=QuoteStatus.VIEWED.value)
        return effective(quote)

    async def list_for_rfq(self, user: UserResult, rfq_id: str) -> list[QuoteResult]:
        """Quotes on an RFQ; the homeowner sees submitted ones, an installer only their own."""
        rfq = await self.rfq_repo.get_by_id(rfq_id)
        if not rfq:
            raise ResourceNotFoundException("rfq", rfq_id)
        quotes = await self.quote_repo.list_by_rfq(rfq_id)
        if user.role == UserRole.ADMIN.value:
            return [effective(q) for q in quotes]
        if user.id == rfq.homeowner_id:
            return [effective(q) for q in quotes if q.status != QuoteStatus.DRAFT.value]
        if user.id in rfq.selected_installer_ids:
            return [effective(q) for q in quotes if q.installer_id == user.id]
        raise AuthorizationException("rfq", "read")

    async def list_for_installer(self, installer_id: str) -> list[QuoteResult]:
        return [effective(q) for q in await self.quote_repo.list_by_installer(installer_id)]

    async def list_for_homeowner(self, homeowner_id: str) -> list[QuoteResult]:
        quotes = await self.quote_repo.list_by_homeowner(homeowner_id)
        return [effective(q) for q in quotes if q.status != QuoteStatus.DRAFT.value]

    async def accept(self, homeowner_id: str, quote_id: str) -> QuoteResult:
        """Accept a quote: competing open quotes are rejected and the RFQ closes."""
        quote = await self._get(quote_id)
        if quote.homeowner_id != homeowner_id:
            raise AuthorizationException("quote", "accept")
        if is_expired(quote):
            raise QuoteExpiredException(quote_id)
        if quote.status not in {s.value for s in QuoteStatus.open_statuses()}:
            raise InvalidStatusTransitionException(
                "quote", quote.status, QuoteStatus.ACCEPTED.value
            )
        await self.quote_repo.update_status(quote_id, QuoteStatus.ACCEPTED.value)
        open_values = {s.value for s in QuoteStatus.open_statuses()}
        for other in await self.quote_repo.list_by_rfq(quote.rfq_id):
            if other.id != quote_id and other.status in open_values:
                await self.quote_repo.update_status(other.id, QuoteStatus.REJECTED.value)
        await self.rfq_repo.update_status(quote.rfq_id, RFQStatus.CLOSED.value)
        logger.info("Quote %s accepted; RFQ %s closed", quote_id, quote.rfq_id)
        return await self._get(quote_id)

    async def reject(self, homeowner_id: str, quote_id: str) -> QuoteResult:
        """Reject an open quote."""
        quote = await self._get(quote_id)
        if quote.homeowner_id != homeowner_id:
            raise AuthorizationException("quote", "reject")
        current = effective(quote).status
        if current not in {s.value for s in QuoteStatus.open_statuses()}:
            raise InvalidStatusTransitionException(
                "quote", current, QuoteStatus.REJECTED.value
            )
        await self.quote_repo.update_status(quote_id, QuoteStatus.REJECTED.value)
        return await self._get(quote_id)
