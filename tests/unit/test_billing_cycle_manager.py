"""Tests for BillingCycleManager over the in-memory document store."""

from datetime import date

import pytest

from solarify.application.services.billing_cycle_manager import BillingCycleManager, cycle_to_dict
from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.solar_billing_calculator import SolarBillingCalculator
from solarify.application.services.utility_rate_engine import UtilityRateEngine
from solarify.domain.exceptions import BillingCalculationException, ValidationException
from solarify.infrastructure.firebase.memory_client import InMemoryFirestoreClient
from solarify.infrastructure.firebase.repositories.billing_cycle_repo_firestore import (
    FirestoreBillingCycleRepository,
)

FLAT_SCHEDULE = {
    "id": "flat-test",
    "rateStructure": {
        "fixedCharges": {"customerCharge": 10.0},
        "energyCharges": {"flatRate": 0.25},
    },
}


def flow(ts: str, production: float, consumption: float) -> dict:
    return {"timestamp": ts, "production": production, "consumption": consumption}


@pytest.fixture
def manager() -> BillingCycleManager:
    rates = UtilityRateEngine(schedules=[FLAT_SCHEDULE])
    nem = NetMeteringEngine()
    repo = FirestoreBillingCycleRepository(InMemoryFirestoreClient())
    return BillingCycleManager(repo, rates, nem, SolarBillingCalculator(rates, nem))


async def _create(manager: BillingCycleManager, start: date, flows: list[dict]):
    return await manager.create_billing_cycle("cust-1", "PG&E", "flat-test", "CA-NEM1", start, flows)


async def test_cycle_bills_imports_and_credits_exports(manager: BillingCycleManager) -> None:
    cycle = await _create(manager, date(2024, 1, 10), [
        flow("2024-01-05T18:00:00Z", 0, 100),
        flow("2024-01-06T12:00:00Z", 40, 0),
        flow("2024-02-01T12:00:00Z", 500, 0),
    ])
    assert cycle.id == "cust-1-2024-01"
    assert cycle.start_date == date(2024, 1, 1)
    assert cycle.end_date == date(2024, 1, 31)
    assert cycle.due_date == date(2024, 2, 25)
    assert cycle.energy["gridImport"] == 100
    assert cycle.energy["gridExport"] == 40
    assert cycle.charges["energyCharges"]["total"] == 25
    assert cycle.charges["grossCharges"] == 35
    assert cycle.charges["amountDue"] == 25
    assert cycle.credits["carryoverToNext"] == 0
    assert cycle.comparison["preSolarBill"] == 35
    assert cycle.comparison["savings"] == 10
    assert cycle.is_true_up_period is False


async def test_credits_roll_forward_between_cycles(manager: BillingCycleManager) -> None:
    await _create(manager, date(2024, 1, 1), [flow("2024-01-05T18:00:00Z", 0, 100)])
    feb = await _create(manager, date(2024, 2, 1), [flow("2024-02-10T12:00:00Z", 200, 0)])
    assert feb.charges["amountDue"] == 0
    assert feb.credits["earnedThisCycle"] == 50
    assert feb.credits["carryoverToNext"] == 40

    mar = await _create(manager, date(2024, 3, 1), [flow("2024-03-10T18:00:00Z", 0, 100)])
    assert mar.credits["carryoverFromPrevious"] == 40
    assert mar.credits["appliedToCharges"] == 35
    assert mar.credits["carryoverToNext"] == 5
    assert mar.charges["amountDue"] == 0
    assert mar.comparison["yearToDateSavings"] == 45


async def test_cycle_without_readings_in_month_raises(manager: BillingCycleManager) -> None:
    with pytest.raises(BillingCalculationException):
        await _create(manager, date(2024, 5, 1), [flow("2024-04-30T12:00:00Z", 1, 1)])


async def test_december_cycle_is_true_up_period(manager: BillingCycleManager) -> None:
    cycle = await _create(manager, date(2024, 12, 1), [flow("2024-12-02T12:00:00Z", 10, 5)])
    assert cycle.is_true_up_period is True
    assert cycle_to_dict(cycle)["isTrueUpPeriod"] is True
    assert cycle_to_dict(cycle)["daysInCycle"] == 31


async def test_billing_history_and_true_up(manager: BillingCycleManager) -> None:
    await _create(manager, date(2024, 1, 1), [
        flow("2024-01-05T18:00:00Z", 0, 100),
        flow("2024-01-06T12:00:00Z", 40, 0),
    ])
    await _create(manager, date(2024, 2, 1), [flow("2024-02-10T12:00:00Z", 200, 0)])
    await _create(manager, date(2024, 3, 1), [flow("2024-03-10T18:00:00Z", 0, 100)])

    history = await manager.get_billing_history("cust-1", date(2024, 1, 1), date(2024, 12, 31))
    assert [b["id"] for b in history["monthlyBills"]] == ["cust-1-2024-01", "cust-1-2024-02", "cust-1-2024-03"]
    assert history["summary"]["totalBills"] == 3
    assert history["summary"]["totalAmountBilled"] == 25

    true_up = await manager.get_true_up("cust-1", 2024)
    assert true_up["nemPolicyId"] == "CA-NEM1"
    assert true_up["energyTotals"]["netEnergyUsage"] == -40
    assert true_up["excessGeneration"]["compensationAmount"] == 1.6
    assert true_up["financialTotals"]["totalCharges"] == 80
    assert true_up["trueUpBill"]["amountDue"] == 0
    assert true_up["trueUpBill"]["paymentMethod"] == "credit_memo"
    assert true_up["status"] == "pending"

    record_id = await manager.record_true_up(true_up)
    assert record_id.startswith("true_up")


def test_true_up_ignores_cycles_outside_year(manager: BillingCycleManager) -> None:
    cycles = [
        {"id": "a", "startDate": "2023-12-01", "energyData": {"netUsage": -1000}, "billing": {}},
        {"id": "b", "startDate": "2024-06-01", "energyData": {"netUsage": 50},
         "billing": {"grossCharges": 20, "netAmount": 20}, "isTrueUpPeriod": False},
    ]
    result = manager.process_annual_true_up("cust-1", 2024, cycles, "CA-NEM2")
    assert result["billingCycles"] == ["b"]
    assert result["excessGeneration"]["totalExcess"] == 0
    assert result["trueUpBill"]["amountDue"] == 20
    assert result["trueUpBill"]["paymentMethod"] == "standard_billing"


async def test_projections_require_cycles(manager: BillingCycleManager) -> None:
    with pytest.raises(BillingCalculationException):
        await manager.get_projections("nobody")


async def test_projections_from_stored_cycles(manager: BillingCycleManager) -> None:
    await _create(manager, date(2024, 1, 1), [
        flow("2024-01-05T18:00:00Z", 0, 500),
        flow("2024-01-06T12:00:00Z", 300, 0),
    ])
    result = await manager.get_projections("cust-1", 3)
    assert result["customerId"] == "cust-1"
    assert len(result["yearlyProjections"]["expected"]) == 3
    assert result["summary"]["averageAnnualSavings"] > 0


@pytest.mark.parametrize("year", [0, 10_000])
def test_true_up_rejects_year_outside_calendar(manager: BillingCycleManager, year: int) -> None:
    with pytest.raises(ValidationException):
        manager.process_annual_true_up("cust-1", year, [], "CA-NEM2")


def test_true_up_rejects_malformed_cycles(manager: BillingCycleManager) -> None:
    with pytest.raises(ValidationException):
        manager.process_annual_true_up("cust-1", 2024, [5], "CA-NEM2")
    with pytest.raises(ValidationException):
        manager.process_annual_true_up(
            "cust-1", 2024, [{"startDate": "2024-01-01", "energyData": {"production": "lots"}}], "CA-NEM2"
        )
