"""Tests for domain exceptions (error_code, message, details) and their HTTP status."""

import pytest

from solarify.core.exception_handlers import status_for
from solarify.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    BillingCalculationException,
    DuplicateReviewException,
    ExternalServiceException,
    InsufficientStockException,
    InvalidStatusTransitionException,
    QuoteExpiredException,
    ResourceNotFoundException,
    SolarifyException,
    UserAlreadyExistsException,
    ValidationException,
)


def test_solarify_exception_default_error_code() -> None:
    """Base SolarifyException uses class name as error_code when not provided."""
    exc = SolarifyException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "SolarifyException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_to_dict_is_the_error_body() -> None:
    exc = SolarifyException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid format", field="email")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "email"}
    assert ValidationException("Invalid").details == {}


def test_authentication_exception() -> None:
    exc = AuthenticationException()
    assert exc.message == "Authentication failed"
    assert exc.error_code == "AUTHENTICATION_ERROR"


def test_authorization_exception_with_resource_and_action() -> None:
    exc = AuthorizationException(resource="rfq", action="decline")
    assert exc.message == "Permission denied: decline on rfq"
    assert exc.error_code == "PERMISSION_DENIED"
    assert exc.details == {"resource": "rfq", "action": "decline"}


def test_authorization_exception_default_message() -> None:
    exc = AuthorizationException()
    assert exc.message == "Permission denied"
    assert exc.details == {}


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("quote", "q-1")
    assert exc.message == "quote not found: q-1"
    assert exc.details == {"resource_type": "quote", "resource_id": "q-1"}


def test_marketplace_exceptions_carry_context() -> None:
    assert InvalidStatusTransitionException("order", "delivered", "pending").details == {
        "resource_type": "order",
        "current": "delivered",
        "target": "pending",
    }
    assert InsufficientStockException("p-1", 5, 2).details["available"] == 2
    assert QuoteExpiredException("q-9").details == {"quote_id": "q-9"}
    assert DuplicateReviewException("product", "p-1").message == "You have already reviewed this product"


def test_external_service_exception() -> None:
    exc = ExternalServiceException("nrel", "HTTP 503")
    assert exc.message == "nrel request failed: HTTP 503"
    assert exc.details == {"service": "nrel", "reason": "HTTP 503"}


def test_billing_calculation_exception_keyword_details() -> None:
    exc = BillingCalculationException("Month must be between 1 and 12", month=13)
    assert exc.error_code == "BILLING_CALCULATION_ERROR"
    assert exc.details == {"month": 13}


@pytest.mark.parametrize(
    "exc, status",
    [
        (ResourceNotFoundException("rfq", "x"), 404),
        (AuthenticationException(), 401),
        (AuthorizationException(), 403),
        (ValidationException("bad"), 400),
        (UserAlreadyExistsException(), 409),
        (DuplicateReviewException("product", "p"), 409),
        (InvalidStatusTransitionException("order", "a", "b"), 409),
        (InsufficientStockException("p", 2, 1), 409),
        (QuoteExpiredException("q"), 409),
        (BillingCalculationException("no data"), 400),
        (ExternalServiceException("noaa", "down"), 502),
        (SolarifyException("unmapped"), 400),
    ],
)
def test_status_for(exc: SolarifyException, status: int) -> None:
    assert status_for(exc) == status
