"""Solar billing calculator: monthly bills with and without solar, savings and projections.

Monthly usage is ``{"month", "year", "kWhUsed", "peakKW"?, "billingDays"?}``
and monthly production is ``{"kWhProduced"}``. Rate schedules and NEM
policies are the documents served by UtilityRateEngine and
NetMeteringEngine; either the document or its id is accepted.
"""

from __future__ import annotations

import logging
from typing import Any

from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.utility_rate_engine import UtilityRateEngine
from solarify.domain.enums import NetMeteringType
from solarify.domain.exceptions import BillingCalculationException
from solarify.shared.telemetry.tracing import add_span_attributes, traced
from solarify.shared.utils.datetime import to_timestamp_ms, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RATE_SCHEDULE_ID = "pge-e-tou-c"
DEFAULT_NEM_POLICY_ID = "CA-NEM3"

BASE_ENERGY_RATE = 0.30
NET_BILLING_EXPORT_RATE = 0.08
TOU_PERIOD_SHARE = 0.25
TAX_SPLIT = {"stateTax": 0.6, "localTax": 0.3, "salesTax": 0.1}

COST_PER_KW = 3000.0
FEDERAL_TAX_CREDIT = 0.30
SYSTEM_LIFETIME_YEARS = 25
PRODUCTION_KWH_PER_KW_YEAR = 1200.0
MAX_PROJECTION_YEARS = 50

PROJECTION_SCENARIOS: dict[str, dict[str, float]] = {
    "conservative": {"rateEscalation": 2.0, "usageGrowth": 1.0, "systemDegradation": 0.8},
    "expected": {"rateEscalation": 3.0, "usageGrowth": 0.0, "systemDegradation": 0.5},
    "optimistic": {"rateEscalation": 4.0, "usageGrowth": 0.0, "systemDegradation": 0.3},
}

_ADDITIONAL_ADDERS = {
    "publicPurpose": "publicPurposePrograms",
    "nuclearDecommissioning": "nuclearDecommissioning",
    "competitionTransition": "competitiveTransition",
    "distributionAccess": "distributionCharges",
    "transmissionAccess": "transmissionCharges",
    "renewableEnergy": "renewableEnergyCharges",
}


def _money(value: float) -> float:
    return round(value, 2)


def _number(value: Any, field: str, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise BillingCalculationException(f"{field} must be a number", field=field) from e


def _usage_period(row: Any) -> tuple[int, int]:
    """(month, year) of a historical usage row."""
    if not isinstance(row, dict):
        raise BillingCalculationException("Historical usage rows must be objects")
    try:
        return int(row["month"]), int(row["year"])
    except (KeyError, TypeError, ValueError) as e:
        raise BillingCalculationException("Historical usage rows need a numeric month and year") from e


def compensation_method(policy: dict[str, Any]) -> str:
    """How a NEM policy credits exports: full retail (NEM) or net billing."""
    compensation = policy.get("compensation") or {}
    method = compensation.get("method")
    if method:
        return method
    if compensation.get("type") == "retail_rate":
        return NetMeteringType.NET_ENERGY_METERING.value
    return NetMeteringType.NET_BILLING.value


class SolarBillingCalculator:
    """Pre-solar versus post-solar billing built on the rate and NEM engines."""

    def __init__(self, rate_engine: UtilityRateEngine, nem_engine: NetMeteringEngine) -> None:
        self._rates = rate_engine
        self._nem = nem_engine

    def _schedule(self, schedule: dict[str, Any] | str) -> dict[str, Any]:
        if isinstance(schedule, str):
            return self._rates.get_schedule(schedule)
        if "rateStructure" not in schedule:
            raise BillingCalculationException("Rate schedule has no rateStructure")
        return schedule

    def _policy(self, policy: dict[str, Any] | str | None) -> dict[str, Any] | None:
        if policy is None or isinstance(policy, dict):
            return policy
        return self._nem.get_policy(policy)

    @staticmethod
    def calculate_net_usage(
        usage_data: dict[str, Any], production_data: dict[str, Any] | None = None
    ) -> dict[str, float]:
        """Self-consumption, grid import/export and net usage for one month."""
        try:
            total = float(usage_data["kWhUsed"])
            production = float((production_data or {}).get("kWhProduced") or 0)
            peak = float(usage_data.get("peakKW") or 0)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise BillingCalculationException("Usage data needs a numeric kWhUsed") from e
        if total < 0 or production < 0:
            raise BillingCalculationException("Usage and production must be non-negative")
        grid_import = max(0.0, total - production)
        grid_export = max(0.0, production - total)
        return {
            "totalKWh": total,
            "peakKW": peak,
            "production": production,
            "selfConsumption": min(total, production),
            "gridImport": grid_import,
            "gridExport": grid_export,
            "netUsage": grid_import - grid_export,
        }

    @staticmethod
    def _energy_charges(usage: dict[str, float], schedule: dict[str, Any]) -> dict[str, Any]:
        energy = schedule["rateStructure"].get("energyCharges") or {}
        billable = max(0.0, usage["netUsage"])
        flat = energy.get("flatRate")
        base = billable * flat if flat else 0.0

        tiered = []
        remaining = billable
        for index, tier in enumerate(energy.get("tieredRates") or [], start=1):
            if remaining <= 0:
                break
            threshold = tier.get("threshold")
            kwh = remaining if threshold is None else min(remaining, threshold)
            tiered.append({
                "tier": index,
                "tierName": tier.get("name", f"Tier {index}"),
                "kWhInTier": kwh,
                "rate": tier["rate"],
                "charge": _money(kwh * tier["rate"]),
            })
            remaining -= kwh

        # Monthly totals carry no interval data, so each TOU period gets a fixed share
        time_of_use = [
            {
                "period": period["id"],
                "periodName": period["name"],
                "kWh": billable * TOU_PERIOD_SHARE,
                "rate": period["rate"],
                "charge": _money(billable * TOU_PERIOD_SHARE * period["rate"]),
            }
            for period in energy.get("timeOfUseRates") or []
        ]
        total = base + sum(t["charge"] for t in tiered) + sum(t["charge"] for t in time_of_use)
        return {"base": _money(base), "tiered": tiered, "timeOfUse": time_of_use, "total": _money(total)}

    @staticmethod
    def _demand_charges(usage: dict[str, float], schedule: dict[str, Any]) -> dict[str, Any]:
        facility = demand = 0.0
        time_of_use = []
        for charge in schedule["rateStructure"].get("demandCharges") or []:
            amount = usage["peakKW"] * charge["rate"]
            if charge["type"] == "facility":
                facility += amount
            elif charge["type"] == "time_of_use":
                time_of_use.append({
                    "period": "peak",
                    "periodName": "Peak Period",
                    "kW": usage["peakKW"],
                    "rate": charge["rate"],
                    "charge": _money(amount),
                })
            else:
                demand += amount
        total = facility + demand + sum(t["charge"] for t in time_of_use)
        return {
            "facilityCharge": _money(facility),
            "demandCharge": _money(demand),
            "timeOfUseDemand": time_of_use,
            "total": _money(total),
        }

    @staticmethod
    def _fixed_charges(schedule: dict[str, Any]) -> dict[str, float]:
        fixed = schedule["rateStructure"].get("fixedCharges") or {}
        customer = fixed.get("customerCharge", 0.0)
        connection = fixed.get("connectionFee", 0.0)
        service = fixed.get("serviceCharge", 0.0)
        return {
            "customerCharge": customer,
            "connectionFee": connection,
            "serviceCharge": service,
            "total": _money(customer + connection + service),
        }

    @staticmethod
    def _additional_charges(usage: dict[str, float], schedule: dict[str, Any]) -> dict[str, float]:
        adders = schedule["rateStructure"].get("additionalCharges") or {}
        kwh = max(0.0, usage["totalKWh"])
        charges = {name: _money(kwh * adders.get(key, 0.0)) for name, key in _ADDITIONAL_ADDERS.items()}
        charges["total"] = _money(kwh * sum(adders.get(key, 0.0) for key in _ADDITIONAL_ADDERS.values()))
        return charges

    @staticmethod
    def _taxes(subtotal: float, schedule: dict[str, Any]) -> dict[str, float]:
        rate = (schedule["rateStructure"].get("additionalCharges") or {}).get("stateAndLocalTaxes", 0.0)
        total = subtotal * rate / 100
        taxes = {name: _money(total * share) for name, share in TAX_SPLIT.items()}
        taxes["total"] = _money(total)
        return taxes

    def _all_charges(self, usage: dict[str, float], schedule: dict[str, Any]) -> dict[str, Any]:
        energy = self._energy_charges(usage, schedule)
        demand = self._demand_charges(usage, schedule)
        fixed = self._fixed_charges(schedule)
        additional = self._additional_charges(usage, schedule)
        subtotal = energy["total"] + demand["total"] + fixed["total"] + additional["total"]
        taxes = self._taxes(subtotal, schedule)
        return {
            "energyCharges": energy,
            "demandCharges": demand,
            "fixedCharges": fixed,
            "additionalCharges": additional,
            "taxes": taxes,
            "totalCharges": _money(subtotal + taxes["total"]),
        }

    @staticmethod
    def _nem_credits(
        usage: dict[str, float], policy: dict[str, Any], schedule: dict[str, Any]
    ) -> dict[str, Any]:
        exported = usage["gridExport"]
        if compensation_method(policy) == NetMeteringType.NET_ENERGY_METERING.value:
            rate = schedule["rateStructure"].get("energyCharges", {}).get("flatRate") or BASE_ENERGY_RATE
        else:
            export_rate = (policy.get("compensation") or {}).get("exportRate")
            rate = export_rate if isinstance(export_rate, (int, float)) else NET_BILLING_EXPORT_RATE
        volumetric = _money(exported * rate)
        return {
            "netMeteringCredits": {"volumetric": volumetric, "exportRate": rate, "total": volumetric},
            "totalCredits": volumetric,
        }

    @staticmethod
    def _metrics(usage: dict[str, float], gross: float) -> dict[str, float]:
        kwh = usage["totalKWh"]
        return {
            "effectiveRate": round(gross / kwh, 4) if kwh > 0 else 0.0,
            "averageDailyUsage": round(kwh / 30, 2),
            "averageDailyCost": _money(gross / 30),
            "loadFactor": round(kwh / 720 / usage["peakKW"], 4) if usage["peakKW"] > 0 else 0.0,
        }

    @traced("solar_billing.monthly")
    def calculate_monthly_bill(
        self,
        month: int,
        year: int,
        usage_data: dict[str, Any],
        rate_schedule: dict[str, Any] | str,
        production_data: dict[str, Any] | None = None,
        nem_policy: dict[str, Any] | str | None = None,
    ) -> dict[str, Any]:
        """Itemized bill for one month; credits apply only with production and a policy."""
        try:
            month, year = int(month), int(year)
        except (TypeError, ValueError) as e:
            raise BillingCalculationException("Month and year must be integers") from e
        if not 1 <= month <= 12:
            raise BillingCalculationException("Month must be between 1 and 12", month=month)
        schedule = self._schedule(rate_schedule)
        policy = self._policy(nem_policy)
        usage = self.calculate_net_usage(usage_data, production_data)
        charges = self._all_charges(usage, schedule)
        credits = self._nem_credits(usage, policy, schedule) if production_data and policy else None
        gross = charges["totalCharges"]
        net = gross - (credits["totalCredits"] if credits else 0.0)
        return {
            "month": month,
            "year": year,
            "billingDays": int(usage_data.get("billingDays") or 30),
            "usage": usage,
            "charges": charges,
            "credits": credits,
            "grossBill": gross,
            "netBill": _money(net),
            "amountDue": _money(max(0.0, net)),
            "metrics": self._metrics(usage, gross),
        }

    @staticmethod
    def _annual_summary(bills: list[dict[str, Any]]) -> dict[str, Any]:
        total_kwh = sum(b["usage"]["totalKWh"] for b in bills)
        total_bill = sum(b["amountDue"] for b in bills)
        peak = max(bills, key=lambda b: b["usage"]["totalKWh"])
        low = min(bills, key=lambda b: b["usage"]["totalKWh"])
        return {
            "totalKWh": total_kwh,
            "totalBill": _money(total_bill),
            "averageMonthlyBill": _money(total_bill / len(bills)),
            "effectiveRate": round(total_bill / total_kwh, 4) if total_kwh else 0.0,
            "chargeBreakdown": {
                key: _money(sum(b["charges"][key]["total"] for b in bills))
                for key in ("energyCharges", "demandCharges", "fixedCharges", "additionalCharges", "taxes")
            },
            "usagePatterns": {
                "peakMonth": {"month": peak["month"], "kWh": peak["usage"]["totalKWh"]},
                "lowMonth": {"month": low["month"], "kWh": low["usage"]["totalKWh"]},
            },
        }

    @staticmethod
    def _savings(pre_bills: list[dict[str, Any]], post_bills: list[dict[str, Any]]) -> dict[str, Any]:
        monthly = []
        for pre, post in zip(pre_bills, post_bills, strict=True):
            savings = pre["amountDue"] - post["amountDue"]
            monthly.append({
                "month": pre["month"],
                "year": pre["year"],
                "preSolarBill": pre["amountDue"],
                "postSolarBill": post["amountDue"],
                "savings": _money(savings),
                "savingsPercent": round(savings / pre["amountDue"] * 100, 1) if pre["amountDue"] > 0 else 0.0,
            })
        total = sum(m["savings"] for m in monthly)
        pre_total = sum(m["preSolarBill"] for m in monthly)
        cumulative, running = [], 0.0
        for m in monthly:
            running += m["savings"]
            cumulative.append(_money(running))
        return {
            "monthlySavings": monthly,
            "annualSavings": _money(total / len(monthly) * 12),
            "cumulativeSavings": cumulative,
            "averageMonthlySavings": _money(total / len(monthly)),
            "savingsPercent": round(total / pre_total * 100, 1) if pre_total > 0 else 0.0,
            "netMeteringCredits": _money(sum((b["credits"] or {}).get("totalCredits", 0.0) for b in post_bills)),
        }

    def _financials(self, capacity_kw: float, annual_savings: float) -> dict[str, Any]:
        system_cost = capacity_kw * COST_PER_KW
        tax_credit = system_cost * FEDERAL_TAX_CREDIT
        net_cost = system_cost - tax_credit
        long_run = self._nem.financial_analysis(annual_savings, net_cost, lifetime_years=SYSTEM_LIFETIME_YEARS)
        return {
            "systemCost": _money(system_cost),
            "incentives": {"federalTaxCredit": _money(tax_credit), "totalIncentives": _money(tax_credit)},
            "netSystemCost": _money(net_cost),
            "paybackAnalysis": {
                "simplePayback": round(net_cost / annual_savings, 1) if annual_savings > 0 else None,
            },
            "financialMetrics": {
                "netPresentValue": long_run["netPresentValue"],
                "totalLifetimeSavings": _money(annual_savings * SYSTEM_LIFETIME_YEARS),
                "annualizedSavings": _money(annual_savings),
            },
        }

    @staticmethod
    def _insights(
        schedule: dict[str, Any],
        policy: dict[str, Any] | None,
        savings: dict[str, Any],
        financials: dict[str, Any],
    ) -> dict[str, list[str]]:
        payback = financials["paybackAnalysis"]["simplePayback"]
        findings = [
            f"Annual savings of ${savings['annualSavings']:,.0f}",
            f"{savings['savingsPercent']:.0f}% bill reduction",
        ]
        recommendations = ["Monitor for rate schedule changes"]
        if payback is not None:
            findings.append(f"{payback:.1f} year payback period")
            if payback <= 10:
                recommendations.insert(0, "System provides strong financial returns")
        if policy and compensation_method(policy) == NetMeteringType.NET_BILLING.value:
            recommendations.append("Consider battery storage to use exports on site")
        structure = schedule["rateStructure"]
        opportunities = []
        if structure.get("energyCharges", {}).get("timeOfUseRates"):
            opportunities.append("Time-of-use rate optimization")
            opportunities.append("Load shifting strategies")
        if structure.get("demandCharges"):
            opportunities.append("Demand charge reduction")
        return {
            "keyFindings": findings,
            "recommendations": recommendations,
            "riskFactors": ["Utility rate changes", "System performance variations", "Policy changes"],
            "optimizationOpportunities": opportunities,
        }

    @traced("solar_billing.comparison")
    def calculate_comparison(self, data: dict[str, Any]) -> dict[str, Any]:
        """Pre-solar versus post-solar bills, savings, financials and insights.

        ``data`` carries customerId, historicalUsage and optionally
        rateScheduleId, nemPolicyId, solarSystem ``{capacity, degradation}``,
        projectedProduction and options ``{rateEscalation, projectionYears}``.
        """
        customer_id = data["customerId"]
        history = data.get("historicalUsage") or []
        if not history or not isinstance(history, list):
            raise BillingCalculationException("Historical usage is required")
        periods = [_usage_period(u) for u in history]
        system = data.get("solarSystem") or {}
        options = data.get("options") or {}
        if not isinstance(system, dict) or not isinstance(options, dict):
            raise BillingCalculationException("solarSystem and options must be objects")
        capacity = _number(system.get("capacity"), "solarSystem.capacity")
        production = data.get("projectedProduction")
        if not production:
            if capacity <= 0:
                raise BillingCalculationException("Solar system required for post-solar billing calculation")
            monthly_kwh = capacity * PRODUCTION_KWH_PER_KW_YEAR / 12
            production = [{"kWhProduced": monthly_kwh} for _ in history]
        if not isinstance(production, list) or len(production) < len(history):
            raise BillingCalculationException("Projected production must cover every usage month")
        add_span_attributes(months=len(history))

        schedule = self._schedule(data.get("rateScheduleId") or DEFAULT_RATE_SCHEDULE_ID)
        policy = self._policy(data.get("nemPolicyId") or DEFAULT_NEM_POLICY_ID)

        pre_bills = [
            self.calculate_monthly_bill(month, year, u, schedule)
            for (month, year), u in zip(periods, history, strict=True)
        ]
        post_bills = [
            self.calculate_monthly_bill(month, year, u, schedule, p, policy)
            for (month, year), u, p in zip(periods, history, production, strict=False)
        ]
        savings = self._savings(pre_bills, post_bills)
        if capacity <= 0:
            produced = sum(bill["usage"]["production"] for bill in post_bills)
            capacity = produced / len(history) * 12 / PRODUCTION_KWH_PER_KW_YEAR
        financials = self._financials(capacity, savings["annualSavings"])

        years = int(_number(options.get("projectionYears"), "options.projectionYears", 10))
        escalation = _number(options.get("rateEscalation"), "options.rateEscalation", 3.0)
        degradation = _number(system.get("degradation"), "solarSystem.degradation", 0.5)
        return {
            "calculationId": f"calc_{customer_id}_{to_timestamp_ms(utc_now())}",
            "customerId": customer_id,
            "calculationDate": utc_now().isoformat(),
            "rateScheduleId": schedule["id"] if "id" in schedule else None,
            "nemPolicyId": policy["id"] if policy else None,
            "preSolarBilling": {
                "monthlyBills": pre_bills,
                "annualSummary": self._annual_summary(pre_bills),
                "projections": self.project_future_billing(
                    history, years, {"rateEscalation": escalation, "usageGrowth": 0, "systemDegradation": 0}
                ),
            },
            "postSolarBilling": {
                "monthlyBills": post_bills,
                "annualSummary": self._annual_summary(post_bills),
                "projections": self.project_future_billing(
                    history,
                    years,
                    {"rateEscalation": escalation, "usageGrowth": 0, "systemDegradation": degradation},
                    solar_capacity=capacity,
                ),
            },
            "savingsAnalysis": savings,
            "financialAnalysis": financials,
            "insights": self._insights(schedule, policy, savings, financials),
        }

    @staticmethod
    def project_future_billing(
        historical_usage: list[dict[str, Any]],
        projection_years: int,
        scenario: dict[str, float],
        solar_capacity: float | None = None,
        start_year: int | None = None,
    ) -> list[dict[str, Any]]:
        """Yearly bills under rate escalation, usage growth and panel degradation.

        The base bill is annual kWh at the base energy rate; with a solar
        capacity the post-solar bill covers only the unmet usage.
        """
        if not 1 <= projection_years <= MAX_PROJECTION_YEARS:
            raise BillingCalculationException(
                f"projectionYears must be between 1 and {MAX_PROJECTION_YEARS}",
                projection_years=projection_years,
            )
        escalation = float(scenario.get("rateEscalation", 0)) / 100
        growth = float(scenario.get("usageGrowth", 0)) / 100
        degradation = float(scenario.get("systemDegradation", 0)) / 100
        if not isinstance(historical_usage, list) or not all(isinstance(u, dict) for u in historical_usage):
            raise BillingCalculationException("Historical usage must be a list of objects")
        base_kwh = sum(_number(u.get("kWhUsed"), "kWhUsed") for u in historical_usage)
        first_year = start_year or utc_now().year
        projections = []
        for offset in range(1, projection_years + 1):
            rate_multiplier = (1 + escalation) ** offset
            kwh = base_kwh * (1 + growth) ** offset
            bill = kwh * BASE_ENERGY_RATE * rate_multiplier
            row: dict[str, Any] = {
                "year": first_year + offset,
                "totalKWh": round(kwh, 1),
                "totalBill": _money(bill),
                "averageMonthlyBill": _money(bill / 12),
                "rateEscalation": escalation * 100,
            }
            if solar_capacity:
                produced = solar_capacity * PRODUCTION_KWH_PER_KW_YEAR * (1 - degradation) ** offset
                post = max(0.0, kwh - produced) * BASE_ENERGY_RATE * rate_multiplier
                row.update({
                    "systemDegradation": degradation * 100,
                    "adjustedProduction": round(produced, 1),
                    "postSolarBill": _money(post),
                    "savings": _money(bill - post),
                })
            projections.append(row)
        return projections

    def scenario_projections(
        self,
        historical_usage: list[dict[str, Any]],
        projection_years: int,
        solar_capacity: float | None,
        scenarios: str = "standard",
    ) -> dict[str, Any]:
        """Projections per named scenario ("all" runs conservative, expected and optimistic)."""
        names = list(PROJECTION_SCENARIOS) if scenarios == "all" else ["expected"]
        yearly = {
            name: self.project_future_billing(
                historical_usage, projection_years, PROJECTION_SCENARIOS[name], solar_capacity
            )
            for name in names
        }
        expected = yearly["expected"]
        total_savings = sum(row.get("savings", 0.0) for row in expected)
        average = total_savings / len(expected)
        net_cost = (solar_capacity or 0) * COST_PER_KW * (1 - FEDERAL_TAX_CREDIT)
        npv = self._nem.financial_analysis(average, net_cost, lifetime_years=projection_years) if average else None
        return {
            "projectionYears": projection_years,
            "scenarios": names,
            "yearlyProjections": yearly,
            "summary": {
                "totalLifetimeSavings": _money(total_savings),
                "averageAnnualSavings": _money(average),
                "paybackPeriod": round(net_cost / average, 1) if average > 0 and net_cost else None,
                "netPresentValue": npv["netPresentValue"] if npv else None,
            },
        }
