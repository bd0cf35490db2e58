"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from solarify.application.dtos.billing import BillingCycleResult
    from solarify.application.dtos.contact import ContactMessageResult
    from solarify.application.dtos.notification import NotificationResult
    from solarify.application.dtos.order import OrderCreate, OrderResult
    from solarify.application.dtos.product import ProductResult
    from solarify.application.dtos.promotion import PromotionResult
    from solarify.application.dtos.quote import QuoteCreate, QuoteResult
    from solarify.application.dtos.review import ReviewResult
    from solarify.application.dtos.rfq import RFQCreate, RFQResult
    from solarify.application.dtos.user import Address, UserResult


class IUserRepository(Protocol):
    """Protocol for user repository (DIP)."""

    async def get_by_id(self, user_id: str) -> UserResult | None:
        """Return user by ID."""

    async def get_by_email(self, email: str) -> UserResult | None:
        """Return user by (lower-cased) email."""

    async def authenticate(self, email: str, password: str) -> UserResult | None:
        """Verify email/password; return user or None. Unknown email costs a hash check too."""

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str,
        company_name: str | None = None,
        phone: str | None = None,
        address: Address | None = None,
    ) -> UserResult:
        """Create user with hashed password; return created user."""

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> UserResult | None:
        """Merge profile fields; return updated user or None if missing."""

    async def list_by_role(self, role: str, skip: int = 0, limit: int = 100) -> list[UserResult]:
        """Return active users with the role, ordered by name."""


class IRFQRepository(Protocol):
    """Protocol for RFQ repository (DIP)."""

    async def create(self, data: RFQCreate) -> RFQResult:
        """Persist a new RFQ with status pending."""

    async def get_by_id(self, rfq_id: str) -> RFQResult | None:
        """Return RFQ by ID."""

    async def list_by_homeowner(self, homeowner_id: str, limit: int = 100) -> list[RFQResult]:
        """Return the homeowner's RFQs (newest first)."""

    async def list_for_installer(
        self, installer_id: str, status: str | None = None, limit: int = 100
    ) -> list[RFQResult]:
        """Return RFQs that selected the installer (newest first)."""

    async def update_status(self, rfq_id: str, status: str) -> None:
        """Set status and updated_at."""

    async def set_declined_installers(
        self, rfq_id: str, declined_installer_ids: list[str], status: str
    ) -> None:
        """Replace declined_installer_ids and status in one write."""


class IQuoteRepository(Protocol):
    """Protocol for quote repository (DIP)."""

    async def create(self, data: QuoteCreate, installer_name: str | None = None) -> QuoteResult:
        """Persist a quote; quote_date is set to now."""

    async def get_by_id(self, quote_id: str) -> QuoteResult | None:
        """Return quote by ID."""

    async def list_by_rfq(self, rfq_id: str) -> list[QuoteResult]:
        """Return quotes for an RFQ (newest first)."""

    async def list_by_installer(self, installer_id: str, limit: int = 100) -> list[QuoteResult]:
        """Return quotes written by an installer (newest first)."""

    async def list_by_homeowner(self, homeowner_id: str, limit: int = 100) -> list[QuoteResult]:
        """Return quotes addressed to a homeowner (newest first)."""

    async def update_status(self, quote_id: str, status: str) -> None:
        """Set status and updated_at."""

    async def has_accepted(self, homeowner_id: str, installer_id: str) -> bool:
        """True if the homeowner accepted any quote from the installer."""


class IProductRepository(Protocol):
    """Protocol for product repository (DIP)."""

    async def create(self, supplier_id: str, supplier_name: str, fields: dict[str, Any]) -> ProductResult:
        """Persist a product owned by supplier."""

    async def get_by_id(self, product_id: str) -> ProductResult | None:
        """Return product by ID."""

    async def list_products(
        self,
        category: str | None = None,
        supplier_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ProductResult]:
        """Return products (newest first) with optional filters."""

    async def update(self, product_id: str, fields: dict[str, Any]) -> ProductResult | None:
        """Merge fields; return updated product or None if missing."""

    async def delete(self, product_id: str) -> None:
        """Delete product."""

    async def adjust_stock(self, product_id: str, delta: int) -> None:
        """Atomically add delta (negative to decrement) to stock."""


class IOrderRepository(Protocol):
    """Protocol for order repository (DIP)."""

    async def create(self, data: OrderCreate) -> OrderResult:
        """Persist a new order."""

    async def get_by_id(self, order_id: str) -> OrderResult | None:
        """Return order by ID."""

    async def list_by_customer(self, customer_id: str, limit: int = 100) -> list[OrderResult]:
        """Return a customer's orders (newest first)."""

    async def list_by_supplier(self, supplier_id: str, limit: int = 100) -> list[OrderResult]:
        """Return orders containing the supplier's items (newest first)."""

    async def update_status(self, order_id: str, status: str) -> None:
        """Set status and updated_at."""


class IReviewRepository(Protocol):
    """Protocol for review repository (DIP)."""

    async def create(self, fields: dict[str, Any]) -> ReviewResult:
        """Persist a review."""

    async def get_by_id(self, review_id: str) -> ReviewResult | None:
        """Return review by ID."""

    async def get_by_user_and_target(
        self, user_id: str, target_type: str, target_id: str
    ) -> ReviewResult | None:
        """Return the user's review of a target, if any."""

    async def list_by_target(
        self, target_type: str, target_id: str, limit: int = 1000
    ) -> list[ReviewResult]:
        """Return reviews of a target (newest first)."""

    async def increment_helpful(self, review_id: str) -> None:
        """Atomically add one to helpful_count."""

    async def mark_reported(self, review_id: str) -> None:
        """Flag review for moderation."""


class IPromotionRepository(Protocol):
    """Protocol for promotion repository (DIP)."""

    async def create(self, fields: dict[str, Any]) -> PromotionResult:
        """Persist a promotion; post_date is set to now."""

    async def get_by_id(self, promotion_id: str) -> PromotionResult | None:
        """Return promotion by ID."""

    async def list_promotions(self, limit: int = 100) -> list[PromotionResult]:
        """Return promotions (newest first)."""

    async def delete(self, promotion_id: str) -> None:
        """Delete promotion."""


class INotificationRepository(Protocol):
    """Protocol for notification repository (DIP)."""

    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        action_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> NotificationResult:
        """Persist an unread notification."""

    async def get_by_id(self, notification_id: str) -> NotificationResult | None:
        """Return notification by ID."""

    async def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 100
    ) -> list[NotificationResult]:
        """Return the user's notifications (newest first)."""

    async def count_unread(self, user_id: str) -> int:
        """Return number of unread notifications."""

    async def mark_read(self, notification_id: str) -> None:
        """Set is_read."""


class IContactMessageRepository(Protocol):
    """Protocol for contact message store (Realtime Database)."""

    async def create(
        self, name: str, email: str, category: str, subject: str, message: str
    ) -> str:
        """Push a message with status 'new'; return its key."""

    async def list_messages(self, limit: int = 100) -> list[ContactMessageResult]:
        """Return messages (newest first)."""

    async def mark_read(self, message_id: str) -> bool:
        """Set status 'read'. False if the message does not exist."""


class IBillingCycleRepository(Protocol):
    """Protocol for billing cycle and billing history storage."""

    async def save(self, cycle: BillingCycleResult) -> None:
        """Create or overwrite the cycle (ids are deterministic per customer and month)."""

    async def get_by_id(self, cycle_id: str) -> BillingCycleResult | None:
        """Return cycle by ID."""

    async def list_by_customer(
        self,
        customer_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[BillingCycleResult]:
        """Return the customer's cycles starting within [start, end] (oldest first)."""

    async def append_history(self, customer_id: str, kind: str, payload: dict[str, Any]) -> str:
        """Record a calculation result (comparison, true-up) in billing history."""
