"""Tests for NetMeteringEngine: policies, eligibility, monthly NEM bills and true-up."""

from datetime import date

import pytest

from solarify.application.services.net_metering_engine import (
    NetMeteringEngine,
    check_grandfathering_eligibility,
    normalize_flow,
)
from solarify.domain.exceptions import (
    BillingCalculationException,
    ResourceNotFoundException,
    ValidationException,
)

# January exports 200 kWh net; February imports 300 kWh net.
ENERGY = [
    {"timestamp": "2024-01-15T12:00:00Z", "production": 600, "consumption": 400},
    {"timestamp": "2024-02-15T12:00:00Z", "production": 100, "consumption": 400},
]


@pytest.fixture
def engine() -> NetMeteringEngine:
    return NetMeteringEngine()


def test_normalize_flow_derives_grid_values() -> None:
    flow = normalize_flow({"timestamp": "2024-01-01T00:00:00Z", "production": 5, "consumption": 8})
    assert flow["gridImport"] == 3
    assert flow["gridExport"] == 0
    assert flow["netUsage"] == 3


def test_normalize_flow_requires_timestamp() -> None:
    with pytest.raises(ValidationException):
        normalize_flow({"production": 1, "consumption": 1})


def test_normalize_flow_rejects_non_object() -> None:
    with pytest.raises(ValidationException):
        normalize_flow(5)


def test_available_policies_for_state(engine: NetMeteringEngine) -> None:
    """Policies for utility "All" match any utility."""
    ids = [p["id"] for p in engine.get_available_policies("ca", "Pacific Gas & Electric")]
    assert ids == ["CA-NEM1", "CA-NEM2", "CA-NEM3"]
    assert engine.get_available_policies("NY") == []


def test_get_policy_unknown_raises(engine: NetMeteringEngine) -> None:
    with pytest.raises(ResourceNotFoundException):
        engine.get_policy("XX-NEM9")


def test_grandfathering_rules(engine: NetMeteringEngine) -> None:
    nem2 = engine.get_policy("CA-NEM2")
    assert check_grandfathering_eligibility(nem2, "2020-05-01")
    assert not check_grandfathering_eligibility(nem2, "2024-05-01")
    assert not check_grandfathering_eligibility(nem2, "2020-05-01", system_modifications=True)
    assert not check_grandfathering_eligibility(engine.get_policy("CA-NEM3"), "2024-05-01")


def test_eligibility_current_policy(engine: NetMeteringEngine) -> None:
    """NEM 3.0 has no grandfathering but is open for new installs."""
    result = engine.check_eligibility("CA-NEM3", 10, "residential", "2024-06-01")
    assert result["eligible"] is True
    assert result["enrollmentOpen"] is True
    assert result["grandfatheringEligibility"]["eligible"] is False


def test_eligibility_grandfathered_nem1(engine: NetMeteringEngine) -> None:
    result = engine.check_eligibility("CA-NEM1", 8, "residential", "2015-05-01")
    assert result["eligible"] is True
    assert result["grandfatheringEligibility"]["expiresOn"] == "2035-05-01"


def test_eligibility_closed_policy_and_limits(engine: NetMeteringEngine) -> None:
    assert engine.check_eligibility("CA-NEM1", 8, "residential", "2024-01-01")["eligible"] is False
    oversized = engine.check_eligibility("CA-NEM3", 2000, "residential", "2024-06-01")
    assert oversized["sizeEligibility"]["eligible"] is False
    assert oversized["eligible"] is False
    assert engine.check_eligibility("CA-NEM3", 10, "agricultural", "2024-06-01")["eligible"] is False


def test_eligibility_rejects_non_positive_capacity(engine: NetMeteringEngine) -> None:
    with pytest.raises(ValidationException):
        engine.check_eligibility("CA-NEM3", 0, "residential")


def test_nem1_carries_credit_into_next_month(engine: NetMeteringEngine) -> None:
    """January's $60 export credit pays down February's $90 energy charge."""
    result = engine.calculate("CA-NEM1", ENERGY)
    jan, feb = result["monthlyBilling"]
    assert jan["bills"]["postSolar"] == 0
    assert jan["credits"]["carryoverBalance"] == 60
    assert feb["charges"]["energyCharges"] == 90
    assert feb["credits"]["carryoverApplied"] == 60
    assert feb["bills"]["postSolar"] == 30
    assert feb["bills"]["preSolar"] == 120
    assert result["trueUp"] is None


def test_nem2_adds_non_bypassable_charges_without_carryover(engine: NetMeteringEngine) -> None:
    result = engine.calculate("CA-NEM2", ENERGY)
    jan, feb = result["monthlyBilling"]
    assert jan["charges"]["nonBypassableCharges"] == 8
    assert feb["credits"]["carryoverApplied"] == 0
    assert feb["bills"]["postSolar"] == 98
    true_up = result["trueUp"]
    assert true_up["totalCharges"] == 106
    assert true_up["totalExportCredits"] == 60
    assert true_up["excessGeneration"]["quantity"] == 0
    assert true_up["amountDue"] == 46


def test_nem3_credits_exports_at_avoided_cost(engine: NetMeteringEngine) -> None:
    """Exports earn 25% of retail; a grid benefits charge of 10 kW x $10 applies."""
    jan = engine.calculate("CA-NEM3", ENERGY)["monthlyBilling"][0]
    assert jan["charges"]["gridBenefitsCharge"] == 100
    assert jan["credits"]["exportCredits"] == 15
    assert jan["bills"]["postSolar"] == 93


def test_true_up_compensates_excess_generation(engine: NetMeteringEngine) -> None:
    energy = [{"timestamp": "2024-12-10T12:00:00Z", "production": 1000, "consumption": 500}]
    result = engine.calculate("CA-NEM2", energy)
    assert result["monthlyBilling"][0]["isTrueUpPeriod"] is True
    excess = result["trueUp"]["excessGeneration"]
    assert excess["quantity"] == 500
    assert excess["compensation"] == 20


def test_calculate_requires_energy_data(engine: NetMeteringEngine) -> None:
    with pytest.raises(BillingCalculationException):
        engine.calculate("CA-NEM1", [])


def test_financial_analysis_included_on_request(engine: NetMeteringEngine) -> None:
    result = engine.calculate(
        "CA-NEM1", ENERGY, options={"includeFinancialAnalysis": True, "systemCost": 20000}
    )
    analysis = result["financialAnalysis"]
    assert analysis["systemCost"] == 20000
    assert analysis["simplePaybackYears"] is not None


def test_financial_analysis_without_cost() -> None:
    analysis = NetMeteringEngine.financial_analysis(1000)
    assert analysis["simplePaybackYears"] is None
    assert analysis["netPresentValue"] == analysis["presentValueOfSavings"]
    assert analysis["lifetimeSavings"] < 25000


def test_compare_orders_policies_by_savings(engine: NetMeteringEngine) -> None:
    result = engine.compare(None, ENERGY)
    assert result["bestPolicy"] == "CA-NEM1"
    assert [r["policyId"] for r in result["comparisons"]] == ["CA-NEM1", "CA-NEM2", "CA-NEM3"]


def test_eligibility_accepts_date_objects(engine: NetMeteringEngine) -> None:
    result = engine.check_eligibility("CA-NEM2", 5, "commercial", date(2019, 3, 1))
    assert result["grandfatheringEligibility"]["eligible"] is True


def test_explicit_zero_energy_rate_is_honoured(engine: NetMeteringEngine) -> None:
    months = engine.calculate("CA-NEM2", ENERGY, {"energyRate": 0})["monthlyBilling"]
    assert [m["bills"]["preSolar"] for m in months] == [0, 0]
    assert [m["charges"]["energyCharges"] for m in months] == [0, 0]
    assert months[0]["charges"]["nonBypassableCharges"] == 8.0


def test_calculate_rejects_text_rate(engine: NetMeteringEngine) -> None:
    with pytest.raises(ValidationException) as exc_info:
        engine.calculate("CA-NEM3", ENERGY, {"systemCapacity": "big"})
    assert exc_info.value.details == {"field": "systemCapacity"}


def test_financial_analysis_lifetime_is_bounded(engine: NetMeteringEngine) -> None:
    with pytest.raises(ValidationException):
        engine.calculate("CA-NEM1", ENERGY, options={"includeFinancialAnalysis": True, "systemLifetime": 10_000})
