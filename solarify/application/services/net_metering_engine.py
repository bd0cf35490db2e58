"""Net energy metering (NEM) engine.

Applies a NEM policy to monthly energy flows: per-month charges and export
credits, pre-solar versus post-solar bills, the annual true-up and an
optional long-run financial view. Energy flows are JSON readings
``{"timestamp", "production", "consumption", "gridImport"?, "gridExport"?,
"netUsage"?}`` in kWh; missing grid values are derived from production and
consumption.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any

from solarify.application.services.utility_rate_engine import parse_reading_time
from solarify.domain.enums import CustomerClass
from solarify.domain.exceptions import (
    BillingCalculationException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.telemetry.tracing import add_span_attributes, traced
from solarify.shared.utils.datetime import utc_today

logger = logging.getLogger(__name__)

TRUE_UP_MONTH = 12

DEFAULT_ENERGY_RATE = 0.30
DEFAULT_NON_BYPASSABLE_RATE = 0.02
DEFAULT_SYSTEM_CAPACITY_KW = 10.0
DEFAULT_GRID_BENEFITS_RATE = 10.0
DEFAULT_EXCESS_GENERATION_RATE = 0.04
AVOIDED_COST_FRACTION = 0.25

DEFAULT_DISCOUNT_RATE = 6.0
DEFAULT_SYSTEM_LIFETIME_YEARS = 25
MAX_SYSTEM_LIFETIME_YEARS = 50
ANNUAL_DEGRADATION = 0.005
INSTALLED_COST_PER_WATT = 3.0

_ALL_CLASSES = CustomerClass.values()

NEM_POLICIES: list[dict[str, Any]] = [
    {
        "id": "CA-NEM1",
        "name": "California NEM 1.0",
        "version": "1.0",
        "state": "CA",
        "utilityCompany": "All",
        "effectiveDate": "2009-01-01",
        "expirationDate": "2016-06-30",
        "customerClasses": _ALL_CLASSES,
        "grandfathering": {"enabled": True, "years": 20},
        "sizeLimit": {"maxCapacity": 1000, "unit": "kW"},
        "compensation": {"type": "retail_rate", "creditCarryover": True},
        "nonBypassableCharges": False,
        "gridBenefitsCharge": False,
        "trueUp": {"frequency": "annual", "month": TRUE_UP_MONTH},
    },
    {
        "id": "CA-NEM2",
        "name": "California NEM 2.0",
        "version": "2.0",
        "state": "CA",
        "utilityCompany": "All",
        "effectiveDate": "2016-07-01",
        "expirationDate": "2023-04-14",
        "customerClasses": _ALL_CLASSES,
        "grandfathering": {"enabled": True, "years": 20},
        "sizeLimit": {"maxCapacity": 1000, "unit": "kW"},
        "compensation": {"type": "retail_rate", "creditCarryover": False},
        "nonBypassableCharges": True,
        "gridBenefitsCharge": False,
        "trueUp": {"frequency": "annual", "month": TRUE_UP_MONTH},
    },
    {
        "id": "CA-NEM3",
        "name": "California Net Billing Tariff (NEM 3.0)",
        "version": "3.0",
        "state": "CA",
        "utilityCompany": "All",
        "effectiveDate": "2023-04-15",
        "expirationDate": None,
        "customerClasses": _ALL_CLASSES,
        "grandfathering": {"enabled": False, "years": 0},
        "sizeLimit": {"maxCapacity": 1000, "unit": "kW"},
        "compensation": {"type": "avoided_cost", "creditCarryover": False},
        "nonBypassableCharges": True,
        "gridBenefitsCharge": True,
        "trueUp": {"frequency": "annual", "month": TRUE_UP_MONTH},
    },
]


def _num(value: Any, field: str) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError) as e:
        raise ValidationException(f"{field} must be a number", field=field) from e


def _rate(rates: dict[str, Any], key: str, default: float) -> float:
    """Rate from the caller's rate data; only a missing value falls back to the default."""
    value = rates.get(key)
    return default if value is None else _num(value, key)


def normalize_flow(entry: dict[str, Any]) -> dict[str, Any]:
    """Fill in grid import, export and net usage for one energy flow reading."""
    if not isinstance(entry, dict):
        raise ValidationException("Energy data entries must be objects", field="energyData")
    if "timestamp" not in entry:
        raise ValidationException("Energy data entries need a timestamp", field="timestamp")
    production = _num(entry.get("production"), "production")
    consumption = _num(entry.get("consumption"), "consumption")
    grid_import = entry.get("gridImport")
    grid_export = entry.get("gridExport")
    grid_import = (
        max(0.0, consumption - production) if grid_import is None else _num(grid_import, "gridImport")
    )
    grid_export = (
        max(0.0, production - consumption) if grid_export is None else _num(grid_export, "gridExport")
    )
    net = entry.get("netUsage")
    return {
        "timestamp": parse_reading_time(entry["timestamp"]),
        "production": production,
        "consumption": consumption,
        "gridImport": grid_import,
        "gridExport": grid_export,
        "netUsage": grid_import - grid_export if net is None else _num(net, "netUsage"),
    }


def _parse_date(value: date | str | None, field: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValidationException(f"{field} must be an ISO date", field=field) from e


def check_grandfathering_eligibility(
    policy: dict[str, Any],
    installation_date: date | str,
    system_modifications: bool = False,
    today: date | None = None,
) -> bool:
    """Whether a system installed on installation_date keeps this policy.

    Policies without grandfathering and modified systems never qualify.
    Otherwise the system must have been installed by the policy's expiration
    (open-ended policies use today).
    """
    if not policy.get("grandfathering", {}).get("enabled"):
        return False
    if system_modifications:
        return False
    installed = _parse_date(installation_date, "installationDate")
    expiration = _parse_date(policy.get("expirationDate"), "expirationDate") or today or utc_today()
    return installed <= expiration


def _add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year + years, day=28)


def _accepts_new_installs(policy: dict[str, Any], installed: date) -> bool:
    effective = _parse_date(policy.get("effectiveDate"), "effectiveDate")
    expiration = _parse_date(policy.get("expirationDate"), "expirationDate")
    if effective and installed < effective:
        return False
    return not (expiration and installed > expiration)


class NetMeteringEngine:
    """NEM policy catalog and monthly or annual NEM bill calculation."""

    def __init__(self, policies: list[dict[str, Any]] | None = None) -> None:
        self._policies = {p["id"]: p for p in (policies or NEM_POLICIES)}

    def get_policy(self, policy_id: str) -> dict[str, Any]:
        policy = self._policies.get(policy_id)
        if policy is None:
            raise ResourceNotFoundException("nem_policy", policy_id)
        return copy.deepcopy(policy)

    def get_available_policies(self, state: str, utility: str | None = None) -> list[dict[str, Any]]:
        """Policies for a state; a policy for utility "All" matches any utility."""
        state = state.upper()
        return [
            copy.deepcopy(p)
            for p in self._policies.values()
            if p["state"] == state
            and (not utility or p["utilityCompany"] in ("All", utility))
        ]

    def check_eligibility(
        self,
        policy_id: str,
        system_capacity: float,
        customer_class: str,
        installation_date: date | str | None = None,
        system_modifications: bool = False,
    ) -> dict[str, Any]:
        """Grandfathering, size and customer-class eligibility for one policy."""
        policy = self.get_policy(policy_id)
        if system_capacity <= 0:
            raise ValidationException("systemCapacity must be positive", field="systemCapacity")
        installed = _parse_date(installation_date, "installationDate") or utc_today()

        grandfathered = check_grandfathering_eligibility(policy, installed, system_modifications)
        years = policy["grandfathering"]["years"]
        grandfathering = {
            "eligible": grandfathered,
            "years": years,
            "expiresOn": _add_years(installed, years).isoformat()
            if grandfathered
            else None,
        }
        max_capacity = policy["sizeLimit"]["maxCapacity"]
        size = {
            "eligible": system_capacity <= max_capacity,
            "systemCapacity": system_capacity,
            "maxCapacity": max_capacity,
        }
        class_ok = customer_class in policy.get("customerClasses", _ALL_CLASSES)
        enrollment_open = _accepts_new_installs(policy, installed)
        return {
            "policy": {"id": policy["id"], "name": policy["name"], "version": policy["version"]},
            "grandfatheringEligibility": grandfathering,
            "sizeEligibility": size,
            "customerClassEligible": class_ok,
            "enrollmentOpen": enrollment_open,
            "eligible": size["eligible"] and class_ok and (grandfathered or enrollment_open),
        }

    @staticmethod
    def _group_by_month(energy_data: list[dict[str, Any]]) -> list[tuple[str, dict[str, float]]]:
        months: dict[tuple[int, int], dict[str, float]] = defaultdict(
            lambda: dict.fromkeys(
                ("production", "consumption", "gridImport", "gridExport", "netUsage"), 0.0
            )
        )
        for entry in energy_data:
            flow = normalize_flow(entry)
            when: datetime = flow["timestamp"]
            bucket = months[(when.year, when.month)]
            for key in bucket:
                bucket[key] += flow[key]
        return [(f"{year:04d}-{month:02d}", totals) for (year, month), totals in sorted(months.items())]

    @staticmethod
    def _monthly_charges(
        version: str, energy: dict[str, float], rates: dict[str, Any]
    ) -> tuple[dict[str, float], float]:
        energy_rate = _rate(rates, "energyRate", DEFAULT_ENERGY_RATE)
        fixed = _rate(rates, "fixedCharge", 0.0)
        net = energy["netUsage"]
        charges = {
            "energyCharges": max(0.0, net * energy_rate),
            "fixedCharges": fixed,
            "nonBypassableCharges": 0.0,
            "gridBenefitsCharge": 0.0,
        }
        if version in ("2.0", "3.0"):
            nbc_rate = _rate(rates, "nonBypassableRate", DEFAULT_NON_BYPASSABLE_RATE)
            charges["nonBypassableCharges"] = energy["consumption"] * nbc_rate
        if version == "3.0":
            capacity = _rate(rates, "systemCapacity", DEFAULT_SYSTEM_CAPACITY_KW)
            charges["gridBenefitsCharge"] = capacity * _rate(
                rates, "gridBenefitsRate", DEFAULT_GRID_BENEFITS_RATE
            )
            export_credit = energy["gridExport"] * energy_rate * AVOIDED_COST_FRACTION
        else:
            export_credit = max(0.0, -net * energy_rate)
        charges["totalCharges"] = sum(charges.values())
        return charges, export_credit

    def _monthly_billing(
        self, policy: dict[str, Any], energy_data: list[dict[str, Any]], rates: dict[str, Any]
    ) -> list[dict[str, Any]]:
        version = policy["version"]
        carryover = policy["compensation"].get("creditCarryover", False)
        energy_rate = _rate(rates, "energyRate", DEFAULT_ENERGY_RATE)
        balance = 0.0
        months = []
        for label, energy in self._group_by_month(energy_data):
            charges, export_credit = self._monthly_charges(version, energy, rates)
            applied = balance if carryover else 0.0
            net_bill = charges["totalCharges"] - export_credit - applied
            post_solar = max(0.0, net_bill)
            balance = max(0.0, -net_bill) if carryover else 0.0
            pre_solar = energy["consumption"] * energy_rate + charges["fixedCharges"]
            months.append(
                {
                    "month": label,
                    "isTrueUpPeriod": int(label[5:]) == policy["trueUp"]["month"],
                    "energy": {k: round(v, 3) for k, v in energy.items()},
                    "charges": {k: round(v, 2) for k, v in charges.items()},
                    "credits": {
                        "exportCredits": round(export_credit, 2),
                        "carryoverApplied": round(applied, 2),
                        "carryoverBalance": round(balance, 2),
                    },
                    "bills": {
                        "preSolar": round(pre_solar, 2),
                        "postSolar": round(post_solar, 2),
                        "savings": round(pre_solar - post_solar, 2),
                    },
                }
            )
        return months

    @staticmethod
    def _true_up(months: list[dict[str, Any]], rates: dict[str, Any]) -> dict[str, Any]:
        total_charges = sum(m["charges"]["totalCharges"] for m in months)
        total_export = sum(m["credits"]["exportCredits"] for m in months)
        net_usage = sum(m["energy"]["netUsage"] for m in months)
        excess_kwh = max(0.0, -net_usage)
        compensation = excess_kwh * _rate(rates, "excessGenerationRate", DEFAULT_EXCESS_GENERATION_RATE)
        credits_used = min(total_charges, compensation)
        net_amount = total_charges - total_export
        return {
            "period": {"startMonth": months[0]["month"], "endMonth": months[-1]["month"]},
            "energyTotals": {
                key: round(sum(m["energy"][key] for m in months), 3)
                for key in ("production", "consumption", "gridImport", "gridExport", "netUsage")
            },
            "totalCharges": round(total_charges, 2),
            "totalExportCredits": round(total_export, 2),
            "netAmount": round(net_amount, 2),
            "excessGeneration": {
                "quantity": round(excess_kwh, 3),
                "compensation": round(compensation, 2),
            },
            "credits": {
                "newCredits": round(compensation, 2),
                "creditsUsed": round(credits_used, 2),
                "remainingCredit": round(max(0.0, compensation - total_charges), 2),
            },
            "amountDue": round(max(0.0, net_amount - credits_used), 2),
        }

    @staticmethod
    def _annual_summary(months: list[dict[str, Any]]) -> dict[str, Any]:
        post = sum(m["bills"]["postSolar"] for m in months)
        pre = sum(m["bills"]["preSolar"] for m in months)
        return {
            "months": len(months),
            "totalProduction": round(sum(m["energy"]["production"] for m in months), 3),
            "totalConsumption": round(sum(m["energy"]["consumption"] for m in months), 3),
            "totalPreSolarBills": round(pre, 2),
            "totalPostSolarBills": round(post, 2),
            "totalBillSavings": round(pre - post, 2),
            "averageMonthlyBill": round(post / len(months), 2),
        }

    @staticmethod
    def financial_analysis(
        annual_savings: float,
        system_cost: float | None = None,
        discount_rate: float = DEFAULT_DISCOUNT_RATE,
        lifetime_years: int = DEFAULT_SYSTEM_LIFETIME_YEARS,
    ) -> dict[str, Any]:
        """NPV of degrading annual savings, less the system cost when known."""
        rate = discount_rate / 100
        yearly = [annual_savings * (1 - ANNUAL_DEGRADATION) ** (y - 1) for y in range(1, lifetime_years + 1)]
        present_value = sum(s / (1 + rate) ** y for y, s in enumerate(yearly, start=1))
        npv = present_value - (system_cost or 0.0)
        payback = system_cost / annual_savings if system_cost and annual_savings > 0 else None
        return {
            "annualSavings": round(annual_savings, 2),
            "lifetimeSavings": round(sum(yearly), 2),
            "presentValueOfSavings": round(present_value, 2),
            "systemCost": round(system_cost, 2) if system_cost else None,
            "netPresentValue": round(npv, 2),
            "simplePaybackYears": round(payback, 1) if payback is not None else None,
            "discountRate": discount_rate,
            "systemLifetime": lifetime_years,
        }

    @traced("net_metering.calculate")
    def calculate(
        self,
        policy_id: str,
        energy_data: list[dict[str, Any]],
        rate_data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Monthly NEM billing, true-up and annual summary for a policy.

        Raises:
            ResourceNotFoundException: unknown policy.
            BillingCalculationException: no energy data.
        """
        policy = self.get_policy(policy_id)
        if not energy_data:
            raise BillingCalculationException("Energy data is required", policy_id=policy_id)
        if not isinstance(energy_data, list):
            raise ValidationException("Energy data must be a list of readings", field="energyData")
        rates = rate_data or {}
        if not isinstance(rates, dict):
            raise ValidationException("Rate data must be an object", field="rateData")
        options = options or {}
        if not isinstance(options, dict):
            raise ValidationException("Options must be an object", field="options")
        add_span_attributes(policy_id=policy_id, readings=len(energy_data))

        months = self._monthly_billing(policy, energy_data, rates)
        summary = self._annual_summary(months)
        result: dict[str, Any] = {
            "policyId": policy["id"],
            "policyName": policy["name"],
            "version": policy["version"],
            "calculationPeriod": {"startMonth": months[0]["month"], "endMonth": months[-1]["month"]},
            "monthlyBilling": months,
            "trueUp": self._true_up(months, rates) if policy["version"] != "1.0" else None,
            "annualSummary": summary,
        }
        if options.get("includeFinancialAnalysis"):
            annual = summary["totalBillSavings"] / summary["months"] * 12
            capacity = _rate(rates, "systemCapacity", DEFAULT_SYSTEM_CAPACITY_KW)
            lifetime = int(_rate(options, "systemLifetime", DEFAULT_SYSTEM_LIFETIME_YEARS))
            if not 1 <= lifetime <= MAX_SYSTEM_LIFETIME_YEARS:
                raise ValidationException(
                    f"systemLifetime must be between 1 and {MAX_SYSTEM_LIFETIME_YEARS}", field="systemLifetime"
                )
            result["financialAnalysis"] = self.financial_analysis(
                annual,
                _rate(options, "systemCost", capacity * 1000 * INSTALLED_COST_PER_WATT),
                _rate(options, "discountRate", DEFAULT_DISCOUNT_RATE),
                lifetime,
            )
        logger.debug("NEM calculation for %s over %d months", policy_id, len(months))
        return result

    def compare(
        self,
        policy_ids: list[str] | None,
        energy_data: list[dict[str, Any]],
        rate_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run the same energy flows through several policies, best savings first."""
        ids = policy_ids or list(self._policies)
        rows = []
        for policy_id in ids:
            result = self.calculate(policy_id, energy_data, rate_data)
            rows.append(
                {
                    "policyId": result["policyId"],
                    "policyName": result["policyName"],
                    "version": result["version"],
                    "annualSummary": result["annualSummary"],
                    "trueUpAmountDue": result["trueUp"]["amountDue"] if result["trueUp"] else None,
                }
            )
        rows.sort(key=lambda r: r["annualSummary"]["totalBillSavings"], reverse=True)
        return {"comparisons": rows, "bestPolicy": rows[0]["policyId"] if rows else None}
