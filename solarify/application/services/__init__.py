"""Application services: users, notifications, billing engines, solar production, monitoring."""

from solarify.application.services.billing_cycle_manager import BillingCycleManager
from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.notification_service import NotificationService
from solarify.application.services.performance_monitor import PerformanceMonitor
from solarify.application.services.solar_billing_calculator import SolarBillingCalculator
from solarify.application.services.solar_calculation_engine import SolarCalculationEngine
from solarify.application.services.user_service import UserService
from solarify.application.services.utility_rate_engine import UtilityRateEngine

__all__ = [
    "BillingCycleManager",
    "NetMeteringEngine",
    "NotificationService",
    "PerformanceMonitor",
    "SolarBillingCalculator",
    "SolarCalculationEngine",
    "UserService",
    "UtilityRateEngine",
]
