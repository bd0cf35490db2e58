"""Presentation-layer dependency injection (composition root).

Routes depend on the providers here, never on infrastructure directly.
Repositories are built over the Firestore / Realtime Database clients
(REST or in-memory, per DATABASE_BACKEND); engines share app.state.cache.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from solarify.application.dtos.user import UserResult
from solarify.application.services.billing_cycle_manager import BillingCycleManager
from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.notification_service import NotificationService
from solarify.application.services.performance_monitor import PerformanceMonitor
from solarify.application.services.solar_billing_calculator import SolarBillingCalculator
from solarify.application.services.solar_calculation_engine import SolarCalculationEngine
from solarify.application.services.user_service import UserService
from solarify.application.services.utility_rate_engine import UtilityRateEngine
from solarify.application.use_cases.contact import ContactService
from solarify.application.use_cases.orders import OrderService
from solarify.application.use_cases.products import ProductService
from solarify.application.use_cases.promotions import PromotionService
from solarify.application.use_cases.quotes import QuoteService
from solarify.application.use_cases.reviews import ReviewService
from solarify.application.use_cases.rfqs import RFQService
from solarify.core.config import get_settings
from solarify.domain.enums import UserRole, UserStatus
from solarify.infrastructure.cache.cache_protocol import CacheProtocol
from solarify.infrastructure.external.weather.client import WeatherClient
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.client import get_firestore_client, get_realtime_db
from solarify.infrastructure.firebase.repositories import (
    FirestoreBillingCycleRepository,
    FirestoreNotificationRepository,
    FirestoreOrderRepository,
    FirestoreProductRepository,
    FirestorePromotionRepository,
    FirestoreQuoteRepository,
    FirestoreReviewRepository,
    FirestoreRFQRepository,
    FirestoreUserRepository,
    RealtimeContactMessageRepository,
)
from solarify.infrastructure.firebase.rtdb_client import RealtimeDatabaseClient
from solarify.infrastructure.security.jwt import create_access_token, verify_token

_NOT_CONFIGURED = "Firebase not configured (set FIREBASE_SERVICE_ACCOUNT_KEY or PATH)"


@dataclass
class AuthSecurity:
    """Token creation provided via DI (no direct infra imports in routes)."""

    def create_access_token(self, user: UserResult) -> str:
        return create_access_token({"sub": user.id, "role": user.role})


def get_auth_security() -> AuthSecurity:
    return AuthSecurity()


def _get_firestore_client_or_raise() -> FirestoreRESTClient:
    client = get_firestore_client()
    if not client:
        raise HTTPException(status_code=503, detail=_NOT_CONFIGURED)
    return client


def _get_realtime_db_or_raise() -> RealtimeDatabaseClient:
    db = get_realtime_db()
    if not db:
        raise HTTPException(status_code=503, detail=_NOT_CONFIGURED)
    return db


Firestore = Annotated[FirestoreRESTClient, Depends(_get_firestore_client_or_raise)]


def get_cache(request: Request) -> CacheProtocol | None:
    """Redis cache from app.state (None when disabled or before lifespan startup)."""
    return getattr(request.app.state, "cache", None)


def get_performance_monitor(request: Request) -> PerformanceMonitor:
    return request.app.state.performance_monitor


# ---- Repositories ----


def get_user_repo(client: Firestore) -> FirestoreUserRepository:
    return FirestoreUserRepository(client)


def get_rfq_repo(client: Firestore) -> FirestoreRFQRepository:
    return FirestoreRFQRepository(client)


def get_quote_repo(client: Firestore) -> FirestoreQuoteRepository:
    return FirestoreQuoteRepository(client)


def get_product_repo(client: Firestore) -> FirestoreProductRepository:
    return FirestoreProductRepository(client)


def get_order_repo(client: Firestore) -> FirestoreOrderRepository:
    return FirestoreOrderRepository(client)


def get_review_repo(client: Firestore) -> FirestoreReviewRepository:
    return FirestoreReviewRepository(client)


def get_promotion_repo(client: Firestore) -> FirestorePromotionRepository:
    return FirestorePromotionRepository(client)


def get_notification_repo(client: Firestore) -> FirestoreNotificationRepository:
    return FirestoreNotificationRepository(client)


def get_billing_cycle_repo(client: Firestore) -> FirestoreBillingCycleRepository:
    return FirestoreBillingCycleRepository(client)


def get_contact_repo(
    db: Annotated[RealtimeDatabaseClient, Depends(_get_realtime_db_or_raise)],
) -> RealtimeContactMessageRepository:
    return RealtimeContactMessageRepository(db)


# ---- Marketplace services ----


def get_user_service(
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
) -> UserService:
    return UserService(user_repo)


def get_notification_service(
    repo: Annotated[FirestoreNotificationRepository, Depends(get_notification_repo)],
) -> NotificationService:
    return NotificationService(repo)


def get_rfq_service(
    rfq_repo: Annotated[FirestoreRFQRepository, Depends(get_rfq_repo)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> RFQService:
    return RFQService(rfq_repo, user_repo, notifications)


def get_quote_service(
    quote_repo: Annotated[FirestoreQuoteRepository, Depends(get_quote_repo)],
    rfq_repo: Annotated[FirestoreRFQRepository, Depends(get_rfq_repo)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> QuoteService:
    return QuoteService(quote_repo, rfq_repo, notifications)


def get_product_service(
    repo: Annotated[FirestoreProductRepository, Depends(get_product_repo)],
) -> ProductService:
    return ProductService(repo)


def get_order_service(
    order_repo: Annotated[FirestoreOrderRepository, Depends(get_order_repo)],
    product_repo: Annotated[FirestoreProductRepository, Depends(get_product_repo)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> OrderService:
    return OrderService(order_repo, product_repo, notifications, tax_rate=get_settings().order_tax_rate)


def get_review_service(
    review_repo: Annotated[FirestoreReviewRepository, Depends(get_review_repo)],
    order_repo: Annotated[FirestoreOrderRepository, Depends(get_order_repo)],
    quote_repo: Annotated[FirestoreQuoteRepository, Depends(get_quote_repo)],
) -> ReviewService:
    return ReviewService(review_repo, order_repo, quote_repo)


def get_promotion_service(
    repo: Annotated[FirestorePromotionRepository, Depends(get_promotion_repo)],
) -> PromotionService:
    return PromotionService(repo)


def get_contact_service(
    repo: Annotated[RealtimeContactMessageRepository, Depends(get_contact_repo)],
) -> ContactService:
    return ContactService(repo)


# ---- Billing and solar engines ----


def get_rate_engine(
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> UtilityRateEngine:
    return UtilityRateEngine(cache=cache)


def get_nem_engine() -> NetMeteringEngine:
    return NetMeteringEngine()


def get_billing_calculator(
    rate_engine: Annotated[UtilityRateEngine, Depends(get_rate_engine)],
    nem_engine: Annotated[NetMeteringEngine, Depends(get_nem_engine)],
) -> SolarBillingCalculator:
    return SolarBillingCalculator(rate_engine, nem_engine)


def get_billing_cycle_manager(
    repo: Annotated[FirestoreBillingCycleRepository, Depends(get_billing_cycle_repo)],
    rate_engine: Annotated[UtilityRateEngine, Depends(get_rate_engine)],
    nem_engine: Annotated[NetMeteringEngine, Depends(get_nem_engine)],
    calculator: Annotated[SolarBillingCalculator, Depends(get_billing_calculator)],
) -> BillingCycleManager:
    return BillingCycleManager(repo, rate_engine, nem_engine, calculator)


async def get_weather_client(
    request: Request,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> AsyncGenerator[WeatherClient, None]:
    """Weather client over the shared HTTP client; a private one is closed after the request."""
    client = WeatherClient(http_client=getattr(request.app.state, "http_client", None), cache=cache)
    try:
        yield client
    finally:
        await client.aclose()


def get_solar_engine(
    weather: Annotated[WeatherClient, Depends(get_weather_client)],
) -> SolarCalculationEngine:
    return SolarCalculationEngine(weather)


# ---- Auth ----

_http_bearer = HTTPBearer(auto_error=False)


async def get_current_user_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
) -> UserResult | None:
    """Current user from the bearer token, or None. Suspended users count as anonymous."""
    if not credentials:
        return None
    try:
        payload = verify_token(credentials.credentials)
    except ValueError:
        return None
    user = await user_repo.get_by_id(payload["sub"])
    if not user or user.status == UserStatus.SUSPENDED.value:
        return None
    return user


async def get_current_user(
    current_user: Annotated[UserResult | None, Depends(get_current_user_optional)],
) -> UserResult:
    if current_user is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def require_role(*roles: UserRole):
    """Dependency factory: require an authenticated user with one of `roles`."""
    allowed = {role.value for role in roles}

    async def _require(
        current_user: Annotated[UserResult, Depends(get_current_user)],
    ) -> UserResult:
        if current_user.role not in allowed:
            raise HTTPException(status_code=403, detail="Forbidden")
        return current_user

    return _require


CurrentUser = Annotated[UserResult, Depends(get_current_user)]
HomeownerUser = Annotated[UserResult, Depends(require_role(UserRole.HOMEOWNER))]
InstallerUser = Annotated[UserResult, Depends(require_role(UserRole.INSTALLER))]
SupplierUser = Annotated[UserResult, Depends(require_role(UserRole.SUPPLIER))]
AdminUser = Annotated[UserResult, Depends(require_role(UserRole.ADMIN))]
