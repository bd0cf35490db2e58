"""Application ports: repository protocols implemented by infrastructure."""

from solarify.application.interfaces.repositories import (
    IBillingCycleRepository,
    IContactMessageRepository,
    INotificationRepository,
    IOrderRepository,
    IProductRepository,
    IPromotionRepository,
    IQuoteRepository,
    IReviewRepository,
    IRFQRepository,
    IUserRepository,
)

__all__ = [
    "IBillingCycleRepository",
    "IContactMessageRepository",
    "INotificationRepository",
    "IOrderRepository",
    "IProductRepository",
    "IPromotionRepository",
    "IQuoteRepository",
    "IRFQRepository",
    "IReviewRepository",
    "IUserRepository",
]
