"""Business-rule errors raised by use cases, engines and repositories.

Each class carries its machine-readable code and the HTTP status the API
answers with; solarify.core.exception_handlers turns them into
{"error", "message", "details"} bodies.
"""

from typing import Any


class SolarifyException(Exception):
    """Base class. Subclasses set `code` and `http_status`."""

    code: str | None = None
    http_status = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.code or type(self).__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationException(SolarifyException):
    """Input that passed schema validation but breaks a business rule."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)


class AuthenticationException(SolarifyException):
    code = "AUTHENTICATION_ERROR"
    http_status = 401

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AuthorizationException(SolarifyException):
    """Authenticated, but the role or ownership check failed."""

    code = "PERMISSION_DENIED"
    http_status = 403

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        details = {key: value for key, value in (("resource", resource), ("action", action)) if value}
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        super().__init__(message, details=details)


class ResourceNotFoundException(SolarifyException):
    code = "RESOURCE_NOT_FOUND"
    http_status = 404

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class UserAlreadyExistsException(SolarifyException):
    code = "USER_ALREADY_EXISTS"
    http_status = 409

    def __init__(self) -> None:
        super().__init__("Email is already registered")


class DuplicateReviewException(SolarifyException):
    """One review per reviewer and target."""

    code = "DUPLICATE_REVIEW"
    http_status = 409

    def __init__(self, target_type: str, target_id: str) -> None:
        super().__init__(
            f"You have already reviewed this {target_type}",
            details={"target_type": target_type, "target_id": target_id},
        )


class InvalidStatusTransitionException(SolarifyException):
    """Order, quote or RFQ status change not reachable from the current status."""

    code = "INVALID_STATUS_TRANSITION"
    http_status = 409

    def __init__(self, resource_type: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot change {resource_type} status from {current} to {target}",
            details={"resource_type": resource_type, "current": current, "target": target},
        )


class InsufficientStockException(SolarifyException):
    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}",
            details={"product_id": product_id, "requested": requested, "available": available},
        )


class QuoteExpiredException(SolarifyException):
    code = "QUOTE_EXPIRED"
    http_status = 409

    def __init__(self, quote_id: str) -> None:
        super().__init__(f"Quote has expired: {quote_id}", details={"quote_id": quote_id})


class ExternalServiceException(SolarifyException):
    """NREL, NOAA or OpenWeather failed, or its API key is not configured."""

    code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(f"{service} request failed: {reason}", details={"service": service, "reason": reason})


class BillingCalculationException(SolarifyException):
    """Rate or usage inputs that cannot produce a bill; keyword args become details."""

    code = "BILLING_CALCULATION_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, details=details)
