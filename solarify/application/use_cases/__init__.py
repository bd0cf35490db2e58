"""Marketplace use cases (one service per aggregate)."""

from solarify.application.use_cases.contact import ContactService
from solarify.application.use_cases.orders import OrderService
from solarify.application.use_cases.products import ProductService
from solarify.application.use_cases.promotions import PromotionService
from solarify.application.use_cases.quotes import QuoteService
from solarify.application.use_cases.reviews import ReviewService
from solarify.application.use_cases.rfqs import RFQService

__all__ = [
    "ContactService",
    "OrderService",
    "ProductService",
    "PromotionService",
    "QuoteService",
    "RFQService",
    "ReviewService",
]
