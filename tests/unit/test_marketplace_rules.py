"""Tests for RFQ inbox ordering and quote pricing/expiry rules."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from solarify.application.dtos.quote import QuoteResult
from solarify.application.dtos.rfq import RFQResult
from solarify.application.dtos.user import Address
from solarify.application.use_cases.quotes import effective, is_expired, price_line_items, quote_totals
from solarify.application.use_cases.rfqs import sort_rfqs
from solarify.domain.exceptions import ValidationException

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def rfq(rfq_id: str, days_ago: int, budget_min=None, budget_max=None) -> RFQResult:
    return RFQResult(
        id=rfq_id,
        homeowner_id="h1",
        name="Home",
        email="h@example.com",
        phone=None,
        address=Address(),
        estimated_system_size_kw=6,
        monthly_consumption_kwh=800,
        selected_installer_ids=("i1",),
        declined_installer_ids=(),
        status="pending",
        budget_min=budget_min,
        budget_max=budget_max,
        created_at=NOW - timedelta(days=days_ago),
    )


def quote(status: str = "submitted", days_old: int = 0, validity: int = 30) -> QuoteResult:
    items = price_line_items([("Panels", "equipment", 20, 300.0)])
    return QuoteResult(
        id="q1",
        rfq_id="r1",
        installer_id="i1",
        homeowner_id="h1",
        line_items=items,
        price_per_watt=1.0,
        validity_period_days=validity,
        currency_code="USD",
        status=status,
        quote_date=NOW - timedelta(days=days_old),
        tax_rate=0.0,
        **{k: v for k, v in quote_totals(items, 0).items()},
    )


def test_sort_newest_first() -> None:
    rfqs = [rfq("old", 5), rfq("new", 1), rfq("mid", 3)]
    assert [r.id for r in sort_rfqs(rfqs)] == ["new", "mid", "old"]


def test_sort_by_budget_puts_unbudgeted_last() -> None:
    rfqs = [
        rfq("none-old", 9),
        rfq("max-20k", 5, budget_max=20_000),
        rfq("min-25k", 4, budget_min=25_000),
        rfq("none-new", 1),
        rfq("max-15k", 2, budget_min=30_000, budget_max=15_000),
    ]
    assert [r.id for r in sort_rfqs(rfqs, "budget")] == [
        "min-25k",
        "max-20k",
        "max-15k",
        "none-new",
        "none-old",
    ]


def test_sort_unknown_raises() -> None:
    with pytest.raises(ValidationException):
        sort_rfqs([], "cheapest")


def test_price_line_items_rounds_totals() -> None:
    items = price_line_items([("<i>Inverter</i>", "equipment", 3, 33.333)])
    assert items[0].description == "Inverter"
    assert items[0].total == 100.0


@pytest.mark.parametrize(
    "row",
    [("x", "marketing", 1, 1), ("x", "equipment", 0, 1), ("x", "permit", 1, -5)],
)
def test_price_line_items_rejects_bad_rows(row) -> None:
    with pytest.raises(ValidationException):
        price_line_items([row])


def test_quote_totals_buckets_and_tax() -> None:
    items = price_line_items([
        ("Panels", "equipment", 20, 300),
        ("Inverter", "equipment", 1, 1500),
        ("Labor", "installation", 1, 4000),
        ("City permit", "permit", 1, 500),
    ])
    totals = quote_totals(items, 7.25)
    assert totals == {
        "equipment_cost": 7500.0,
        "installation_cost": 4000.0,
        "permit_cost": 500.0,
        "subtotal": 12000.0,
        "tax_amount": 870.0,
        "total_amount": 12870.0,
    }


def test_quote_totals_rejects_tax_rate() -> None:
    with pytest.raises(ValidationException):
        quote_totals((), 101)


def test_open_quote_expires_after_validity() -> None:
    assert not is_expired(quote(days_old=29), NOW)
    assert is_expired(quote(days_old=31), NOW)
    assert effective(quote(days_old=31), NOW).status == "expired"


def test_closed_quotes_never_expire() -> None:
    accepted = quote(status="accepted", days_old=90)
    assert not is_expired(accepted, NOW)
    assert effective(accepted, NOW) is accepted


def test_naive_quote_date_treated_as_utc() -> None:
    naive = replace(quote(days_old=31), quote_date=(NOW - timedelta(days=31)).replace(tzinfo=None))
    assert is_expired(naive, NOW)
