"""Tests for SolarBillingCalculator: net usage, itemized bills, comparisons and projections."""

import pytest

from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.solar_billing_calculator import (
    MAX_PROJECTION_YEARS,
    PROJECTION_SCENARIOS,
    SolarBillingCalculator,
    compensation_method,
)
from solarify.application.services.utility_rate_engine import UtilityRateEngine
from solarify.domain.exceptions import BillingCalculationException, ResourceNotFoundException

FLAT_SCHEDULE = {
    "id": "flat-test",
    "rateStructure": {
        "fixedCharges": {"customerCharge": 10.0},
        "energyCharges": {"flatRate": 0.25},
    },
}


@pytest.fixture
def calculator() -> SolarBillingCalculator:
    return SolarBillingCalculator(UtilityRateEngine(), NetMeteringEngine())


def test_calculate_net_usage_splits_import_and_export() -> None:
    usage = SolarBillingCalculator.calculate_net_usage({"kWhUsed": 500}, {"kWhProduced": 200})
    assert usage["selfConsumption"] == 200
    assert usage["gridImport"] == 300
    assert usage["gridExport"] == 0
    assert usage["netUsage"] == 300


def test_calculate_net_usage_requires_kwh() -> None:
    with pytest.raises(BillingCalculationException):
        SolarBillingCalculator.calculate_net_usage({"peakKW": 3})


def test_compensation_method_from_policy_type(calculator: SolarBillingCalculator) -> None:
    assert compensation_method(NetMeteringEngine().get_policy("CA-NEM1")) == "net_energy_metering"
    assert compensation_method(NetMeteringEngine().get_policy("CA-NEM3")) == "net_billing"


def test_monthly_bill_without_solar(calculator: SolarBillingCalculator) -> None:
    bill = calculator.calculate_monthly_bill(3, 2024, {"kWhUsed": 400, "peakKW": 2}, FLAT_SCHEDULE)
    assert bill["charges"]["energyCharges"]["total"] == 100
    assert bill["charges"]["fixedCharges"]["total"] == 10
    assert bill["charges"]["taxes"]["total"] == 0
    assert bill["grossBill"] == 110
    assert bill["credits"] is None
    assert bill["amountDue"] == 110
    assert bill["metrics"]["averageDailyUsage"] == 13.33
    assert bill["metrics"]["effectiveRate"] == 0.275


def test_monthly_bill_nem_credits_exports_at_retail(calculator: SolarBillingCalculator) -> None:
    """200 kWh exported at the $0.25 flat rate more than covers the fixed charge."""
    bill = calculator.calculate_monthly_bill(
        6, 2024, {"kWhUsed": 400}, FLAT_SCHEDULE, {"kWhProduced": 600}, "CA-NEM1"
    )
    assert bill["charges"]["energyCharges"]["total"] == 0
    assert bill["credits"]["totalCredits"] == 50
    assert bill["netBill"] == -40
    assert bill["amountDue"] == 0


def test_monthly_bill_net_billing_export_rate(calculator: SolarBillingCalculator) -> None:
    bill = calculator.calculate_monthly_bill(
        6, 2024, {"kWhUsed": 400}, FLAT_SCHEDULE, {"kWhProduced": 450}, "CA-NEM3"
    )
    assert bill["credits"]["netMeteringCredits"]["exportRate"] == 0.08
    assert bill["credits"]["totalCredits"] == 4
    assert bill["amountDue"] == 6


def test_monthly_bill_tiered_schedule_by_id(calculator: SolarBillingCalculator) -> None:
    bill = calculator.calculate_monthly_bill(1, 2024, {"kWhUsed": 500}, "pge-e-1")
    tiers = bill["charges"]["energyCharges"]["tiered"]
    assert [t["charge"] for t in tiers] == [96.0, 80.0]
    assert bill["charges"]["energyCharges"]["total"] == 176


def test_monthly_bill_tou_uses_period_shares(calculator: SolarBillingCalculator) -> None:
    """Monthly totals split 25% per TOU period: 100 kWh at $0.45 and 100 kWh at $0.30."""
    bill = calculator.calculate_monthly_bill(1, 2024, {"kWhUsed": 400}, "pge-e-tou-c")
    assert bill["charges"]["energyCharges"]["total"] == 75


def test_monthly_bill_rejects_bad_month(calculator: SolarBillingCalculator) -> None:
    with pytest.raises(BillingCalculationException):
        calculator.calculate_monthly_bill(13, 2024, {"kWhUsed": 1}, FLAT_SCHEDULE)


def test_monthly_bill_unknown_schedule(calculator: SolarBillingCalculator) -> None:
    with pytest.raises(ResourceNotFoundException):
        calculator.calculate_monthly_bill(1, 2024, {"kWhUsed": 1}, "missing")


def test_monthly_bill_schedule_without_structure(calculator: SolarBillingCalculator) -> None:
    with pytest.raises(BillingCalculationException):
        calculator.calculate_monthly_bill(1, 2024, {"kWhUsed": 1}, {"id": "broken"})


def test_project_future_billing_without_growth() -> None:
    """6000 kWh/yr at $0.30 fully offset by a 5 kW system (1200 kWh/kW/yr)."""
    history = [{"kWhUsed": 500} for _ in range(12)]
    rows = SolarBillingCalculator.project_future_billing(
        history,
        2,
        {"rateEscalation": 0, "usageGrowth": 0, "systemDegradation": 0},
        solar_capacity=5,
        start_year=2024,
    )
    assert [r["year"] for r in rows] == [2025, 2026]
    assert rows[0]["totalBill"] == 1800
    assert rows[0]["postSolarBill"] == 0
    assert rows[0]["savings"] == 1800


def test_project_future_billing_escalates_rates() -> None:
    rows = SolarBillingCalculator.project_future_billing(
        [{"kWhUsed": 1000}], 2, {"rateEscalation": 10, "usageGrowth": 0, "systemDegradation": 0}
    )
    assert rows[0]["totalBill"] == 330
    assert rows[1]["totalBill"] == 363
    assert "savings" not in rows[0]


@pytest.mark.parametrize("years", [0, MAX_PROJECTION_YEARS + 1])
def test_project_future_billing_bounds_years(years: int) -> None:
    with pytest.raises(BillingCalculationException):
        SolarBillingCalculator.project_future_billing([{"kWhUsed": 1}], years, PROJECTION_SCENARIOS["expected"])


def test_project_future_billing_rejects_non_object_rows() -> None:
    with pytest.raises(BillingCalculationException):
        SolarBillingCalculator.project_future_billing([500], 5, PROJECTION_SCENARIOS["expected"])


@pytest.mark.parametrize(
    "row",
    [{"year": 2024, "kWhUsed": 500}, {"month": "May", "year": 2024, "kWhUsed": 500}, 500],
)
def test_comparison_rejects_malformed_usage_rows(calculator: SolarBillingCalculator, row) -> None:
    with pytest.raises(BillingCalculationException):
        calculator.calculate_comparison(
            {"customerId": "c1", "historicalUsage": [row], "solarSystem": {"capacity": 5}}
        )


def test_scenario_projections_all(calculator: SolarBillingCalculator) -> None:
    history = [{"kWhUsed": 600} for _ in range(12)]
    result = calculator.scenario_projections(history, 5, 6.0, "all")
    assert result["scenarios"] == ["conservative", "expected", "optimistic"]
    assert set(result["yearlyProjections"]) == set(PROJECTION_SCENARIOS)
    assert len(result["yearlyProjections"]["expected"]) == 5
    assert result["summary"]["averageAnnualSavings"] > 0
    assert result["summary"]["paybackPeriod"] is not None


def test_scenario_projections_standard_runs_expected(calculator: SolarBillingCalculator) -> None:
    result = calculator.scenario_projections([{"kWhUsed": 600}], 3, None)
    assert result["scenarios"] == ["expected"]
    assert result["summary"]["averageAnnualSavings"] == 0
    assert result["summary"]["netPresentValue"] is None


def test_calculate_comparison(calculator: SolarBillingCalculator) -> None:
    history = [{"month": m, "year": 2024, "kWhUsed": 700} for m in range(1, 13)]
    result = calculator.calculate_comparison(
        {"customerId": "cust-1", "historicalUsage": history, "solarSystem": {"capacity": 6}}
    )
    assert result["calculationId"].startswith("calc_cust-1_")
    assert result["rateScheduleId"] == "pge-e-tou-c"
    assert result["nemPolicyId"] == "CA-NEM3"
    assert len(result["preSolarBilling"]["monthlyBills"]) == 12
    assert len(result["postSolarBilling"]["monthlyBills"]) == 12
    savings = result["savingsAnalysis"]
    assert savings["annualSavings"] > 0
    assert len(savings["cumulativeSavings"]) == 12
    assert result["financialAnalysis"]["systemCost"] == 18000
    assert result["financialAnalysis"]["netSystemCost"] == 12600
    assert result["insights"]["keyFindings"]


def test_calculate_comparison_requires_system_or_production(calculator: SolarBillingCalculator) -> None:
    with pytest.raises(BillingCalculationException):
        calculator.calculate_comparison(
            {"customerId": "c", "historicalUsage": [{"month": 1, "year": 2024, "kWhUsed": 100}]}
        )


def test_calculate_comparison_requires_history(calculator: SolarBillingCalculator) -> None:
    with pytest.raises(BillingCalculationException):
        calculator.calculate_comparison({"customerId": "c", "historicalUsage": []})
