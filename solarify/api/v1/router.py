"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. Routes get
services and engines from solarify.api.v1.dependencies.
"""

from fastapi import APIRouter

from solarify.api.v1.endpoints import (
    auth,
    calculator,
    contact,
    health,
    monitoring,
    net_metering,
    notifications,
    orders,
    products,
    promotions,
    quotes,
    reviews,
    rfqs,
    solar_billing,
    users,
    utility_rates,
    weather,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(rfqs.router, prefix="/rfqs", tags=["rfqs"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(promotions.router, prefix="/promotions", tags=["promotions"])
api_router.include_router(contact.router, prefix="/contact", tags=["contact"])
api_router.include_router(
    notifications.router, prefix="/notifications", tags=["notifications"]
)
api_router.include_router(
    solar_billing.router, prefix="/solar-billing", tags=["solar-billing"]
)
api_router.include_router(
    net_metering.router, prefix="/net-metering", tags=["net-metering"]
)
api_router.include_router(
    utility_rates.router, prefix="/utility-rates", tags=["utility-rates"]
)
api_router.include_router(
    calculator.router, prefix="/solar-calculator", tags=["solar-calculator"]
)
api_router.include_router(weather.router, prefix="/weather", tags=["weather"])
api_router.include_router(monitoring.router, prefix="/monitoring", tags=["monitoring"])
