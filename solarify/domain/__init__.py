"""Domain layer: enums and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from solarify.domain.enums import (
    LineItemCategory,
    NotificationType,
    OrderStatus,
    QuoteStatus,
    ReviewTargetType,
    RFQStatus,
    UserRole,
    UserStatus,
)
from solarify.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ResourceNotFoundException,
    SolarifyException,
    ValidationException,
)

__all__ = [
    # Enums
    "LineItemCategory",
    "NotificationType",
    "OrderStatus",
    "QuoteStatus",
    "RFQStatus",
    "ReviewTargetType",
    "UserRole",
    "UserStatus",
    # Exceptions
    "AuthenticationException",
    "AuthorizationException",
    "ResourceNotFoundException",
    "SolarifyException",
    "ValidationException",
]
