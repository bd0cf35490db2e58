"""Domain enumerations for the Solarify marketplace.

Enums represent fixed sets of domain values (roles, lifecycle statuses,
notification types). Values are the strings stored in Firestore.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class UserRole(_ValuesMixin, str, Enum):
    """Marketplace role; decides which dashboards and operations a user gets."""

    HOMEOWNER = "homeowner"
    INSTALLER = "installer"
    SUPPLIER = "supplier"
    ADMIN = "admin"


class UserStatus(_ValuesMixin, str, Enum):
    """Account lifecycle status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"


class RFQStatus(_ValuesMixin, str, Enum):
    """RFQ lifecycle: pending until an installer quotes, closed when awarded or withdrawn."""

    PENDING = "pending"
    RESPONDED = "responded"
    CLOSED = "closed"


class QuoteStatus(_ValuesMixin, str, Enum):
    """Quote lifecycle status."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @classmethod
    def open_statuses(cls) -> frozenset["QuoteStatus"]:
        """Statuses a homeowner can still accept or reject."""
        return frozenset({cls.SUBMITTED, cls.VIEWED})


class LineItemCategory(_ValuesMixin, str, Enum):
    """Cost bucket of a quote line item."""

    EQUIPMENT = "equipment"
    INSTALLATION = "installation"
    PERMIT = "permit"


class OrderStatus(_ValuesMixin, str, Enum):
    """Order lifecycle status."""

    INQUIRY = "inquiry"
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReviewTargetType(_ValuesMixin, str, Enum):
    """What a review is about."""

    PRODUCT = "product"
    INSTALLER = "installer"
    SUPPLIER = "supplier"


class NotificationType(_ValuesMixin, str, Enum):
    """In-app notification kinds."""

    RFQ_RECEIVED = "rfq_received"
    QUOTE_RECEIVED = "quote_received"
    ORDER_PLACED = "order_placed"
    ORDER_STATUS_UPDATED = "order_status_updated"
    PROJECT_COMPLETED = "project_completed"
    SYSTEM_ALERT = "system_alert"


class ContactMessageStatus(_ValuesMixin, str, Enum):
    """Admin triage status for contact form submissions."""

    NEW = "new"
    READ = "read"


class PanelType(_ValuesMixin, str, Enum):
    """PV module technology (drives temperature coefficient)."""

    MONOCRYSTALLINE = "monocrystalline"
    POLYCRYSTALLINE = "polycrystalline"
    THIN_FILM = "thin-film"


class NEMPolicyType(_ValuesMixin, str, Enum):
    """Net metering policy generation."""

    NEM_1_0 = "NEM_1.0"
    NEM_2_0 = "NEM_2.0"
    NEM_3_0 = "NEM_3.0"
    NET_BILLING = "net_billing"


class NetMeteringType(_ValuesMixin, str, Enum):
    """How exported energy is credited on a monthly bill."""

    NET_ENERGY_METERING = "net_energy_metering"
    NET_BILLING = "net_billing"
    BUY_ALL_SELL_ALL = "buy_all_sell_all"


class CustomerClass(_ValuesMixin, str, Enum):
    """Utility customer class."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
