"""Billing cycle manager: monthly cycles, stored history, annual true-up and projections.

Cycles are created from interval energy flows (see net_metering_engine) and
persisted per customer with deterministic ids ``{customer}-{YYYY}-{MM}``.
Credits earned on exports roll forward from one cycle to the next until the
December true-up settles them.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from datetime import MAXYEAR, MINYEAR, date, timedelta
from typing import Any

from solarify.application.dtos.billing import BillingCycleResult
from solarify.application.interfaces.repositories import IBillingCycleRepository
from solarify.application.services.net_metering_engine import (
    AVOIDED_COST_FRACTION,
    DEFAULT_EXCESS_GENERATION_RATE,
    DEFAULT_NON_BYPASSABLE_RATE,
    TRUE_UP_MONTH,
    NetMeteringEngine,
    normalize_flow,
)
from solarify.application.services.solar_billing_calculator import (
    BASE_ENERGY_RATE,
    DEFAULT_NEM_POLICY_ID,
    PRODUCTION_KWH_PER_KW_YEAR,
    SolarBillingCalculator,
)
from solarify.application.services.utility_rate_engine import (
    UtilityRateEngine,
    match_tou_period,
)
from solarify.domain.exceptions import BillingCalculationException, ValidationException
from solarify.shared.telemetry.tracing import traced
from solarify.shared.utils.datetime import utc_now, utc_today

logger = logging.getLogger(__name__)

BILL_GENERATION_DELAY_DAYS = 5
PAYMENT_DUE_DAYS = 25
INTERVAL_HOURS = 0.25  # 15-minute readings


def _round_values(values: dict[str, float], digits: int = 2) -> dict[str, float]:
    return {k: round(v, digits) for k, v in values.items()}


def _cycle_id(customer_id: str, start: date) -> str:
    return f"{customer_id}-{start.year:04d}-{start.month:02d}"


def _calendar_year(year: int) -> tuple[date, date]:
    if not MINYEAR <= year <= MAXYEAR:
        raise ValidationException(f"trueUpYear must be between {MINYEAR} and {MAXYEAR}", field="trueUpYear")
    return date(year, 1, 1), date(year, 12, 31)


def _previous_month(start: date) -> date:
    return (start.replace(day=1) - timedelta(days=1)).replace(day=1)


def cycle_to_dict(cycle: BillingCycleResult) -> dict[str, Any]:
    """Wire form of a stored cycle (camelCase, ISO dates)."""
    return {
        "id": cycle.id,
        "customerId": cycle.customer_id,
        "utilityCompany": cycle.utility_company,
        "rateScheduleId": cycle.rate_schedule_id,
        "nemPolicyId": cycle.nem_policy_id,
        "cycleType": "monthly",
        "startDate": cycle.start_date.isoformat(),
        "endDate": cycle.end_date.isoformat(),
        "daysInCycle": (cycle.end_date - cycle.start_date).days + 1,
        "billGeneratedDate": cycle.bill_generation_date.isoformat(),
        "paymentDueDate": cycle.due_date.isoformat(),
        "status": cycle.status,
        "isTrueUpPeriod": cycle.is_true_up_period,
        "energyData": cycle.energy,
        "billing": cycle.charges,
        "credits": cycle.credits,
        "comparison": cycle.comparison,
        "createdAt": cycle.created_at.isoformat() if cycle.created_at else None,
    }


class BillingCycleManager:
    """Create, store and settle monthly solar billing cycles."""

    def __init__(
        self,
        repo: IBillingCycleRepository,
        rate_engine: UtilityRateEngine,
        nem_engine: NetMeteringEngine,
        calculator: SolarBillingCalculator,
    ) -> None:
        self._repo = repo
        self._rates = rate_engine
        self._nem = nem_engine
        self._calculator = calculator

    @staticmethod
    def _aggregate(flows: list[dict[str, Any]]) -> dict[str, float]:
        totals = dict.fromkeys(("production", "consumption", "gridImport", "gridExport", "netUsage"), 0.0)
        peak = 0.0
        for flow in flows:
            for key in totals:
                totals[key] += flow[key]
            peak = max(peak, flow["consumption"] / INTERVAL_HOURS)
        return {**totals, "peakDemand": peak}

    @staticmethod
    def _rate_at(schedule: dict[str, Any], flow: dict[str, Any]) -> float:
        energy = schedule["rateStructure"].get("energyCharges") or {}
        periods = energy.get("timeOfUseRates")
        if periods:
            period = match_tou_period(periods, flow["timestamp"])
            if period:
                return period["rate"]
        if energy.get("flatRate"):
            return energy["flatRate"]
        tiers = energy.get("tieredRates")
        return tiers[0]["rate"] if tiers else BASE_ENERGY_RATE

    def _billing(
        self,
        flows: list[dict[str, Any]],
        energy: dict[str, float],
        schedule: dict[str, Any],
        policy: dict[str, Any],
    ) -> tuple[dict[str, Any], float]:
        structure = schedule["rateStructure"]
        import_cost = sum(f["gridImport"] * self._rate_at(schedule, f) for f in flows)
        export_value = sum(f["gridExport"] * self._rate_at(schedule, f) for f in flows)
        pre_solar_energy = sum(f["consumption"] * self._rate_at(schedule, f) for f in flows)
        if policy["version"] == "3.0":
            export_value *= AVOIDED_COST_FRACTION

        demand = sum(energy["peakDemand"] * c["rate"] for c in structure.get("demandCharges") or [])
        fixed_cfg = structure.get("fixedCharges") or {}
        fixed = sum(fixed_cfg.get(k, 0.0) for k in ("customerCharge", "connectionFee", "serviceCharge"))
        non_bypassable = (
            energy["consumption"] * DEFAULT_NON_BYPASSABLE_RATE if policy.get("nonBypassableCharges") else 0.0
        )
        tax_rate = (structure.get("additionalCharges") or {}).get("stateAndLocalTaxes", 0.0) / 100
        taxes = (import_cost + demand + fixed + non_bypassable) * tax_rate
        gross = import_cost + demand + fixed + non_bypassable + taxes
        billing = {
            "energyCharges": {"consumption": round(import_cost, 2), "total": round(import_cost, 2)},
            "demandCharges": {"facility": round(demand, 2), "total": round(demand, 2)},
            "fixedCharges": {"total": round(fixed, 2)},
            "additionalCharges": _round_values(
                {"nonBypassable": non_bypassable, "taxes": taxes, "total": non_bypassable + taxes}
            ),
            "exportCredits": {"volumetric": round(export_value, 2), "total": round(export_value, 2)},
            "grossCharges": round(gross, 2),
        }
        pre_solar = (pre_solar_energy + demand + fixed) * (1 + tax_rate)
        return billing, pre_solar

    @traced("billing_cycles.create")
    async def create_billing_cycle(
        self,
        customer_id: str,
        utility_company: str,
        rate_schedule_id: str,
        nem_policy_id: str | None,
        start_date: date,
        energy_data: list[dict[str, Any]],
    ) -> BillingCycleResult:
        """Bill one calendar month of energy flows and store it as a cycle.

        Credits carried out of the previous month's cycle are applied first;
        unused credits roll into the next cycle.
        """
        schedule = self._rates.get_schedule(rate_schedule_id)
        policy = self._nem.get_policy(nem_policy_id or DEFAULT_NEM_POLICY_ID)
        start = start_date.replace(day=1)
        end = start.replace(day=monthrange(start.year, start.month)[1])

        flows = [
            f for f in (normalize_flow(e) for e in energy_data)
            if start <= f["timestamp"].date() <= end
        ]
        if not flows:
            raise BillingCalculationException(
                "No energy data falls within the billing cycle", start_date=start.isoformat()
            )
        energy = self._aggregate(flows)
        billing, pre_solar = self._billing(flows, energy, schedule, policy)

        previous = await self._repo.get_by_id(_cycle_id(customer_id, _previous_month(start)))
        carried_in = float(previous.credits.get("carryoverToNext", 0.0)) if previous else 0.0
        earned = billing["exportCredits"]["total"]
        available = carried_in + earned
        applied = min(available, billing["grossCharges"])
        amount_due = billing["grossCharges"] - applied
        billing.update({
            "totalCredits": round(applied, 2),
            "netAmount": round(billing["grossCharges"] - available, 2),
            "amountDue": round(amount_due, 2),
        })
        credits = _round_values({
            "carryoverFromPrevious": carried_in,
            "earnedThisCycle": earned,
            "appliedToCharges": applied,
            "carryoverToNext": available - applied,
        })

        savings = pre_solar - amount_due
        year_to_date = savings + sum(
            c.comparison.get("savings", 0.0)
            for c in await self._repo.list_by_customer(customer_id, date(start.year, 1, 1), _previous_month(start))
            if c.start_date < start
        )
        comparison = {
            "preSolarBill": round(pre_solar, 2),
            "savings": round(savings, 2),
            "savingsPercent": round(savings / pre_solar * 100, 1) if pre_solar > 0 else 0.0,
            "yearToDateSavings": round(year_to_date, 2),
        }

        cycle = BillingCycleResult(
            id=_cycle_id(customer_id, start),
            customer_id=customer_id,
            utility_company=utility_company,
            rate_schedule_id=rate_schedule_id,
            nem_policy_id=policy["id"],
            start_date=start,
            end_date=end,
            bill_generation_date=end + timedelta(days=BILL_GENERATION_DELAY_DAYS),
            due_date=end + timedelta(days=PAYMENT_DUE_DAYS),
            status="draft",
            is_true_up_period=start.month == TRUE_UP_MONTH,
            energy=_round_values(energy, 3),
            charges=billing,
            credits=credits,
            comparison=comparison,
            created_at=utc_now(),
        )
        await self._repo.save(cycle)
        logger.info("Billing cycle %s created (%d readings)", cycle.id, len(flows))
        return cycle

    def process_annual_true_up(
        self,
        customer_id: str,
        true_up_year: int,
        billing_cycles: list[dict[str, Any]],
        nem_policy: dict[str, Any] | str,
    ) -> dict[str, Any]:
        """Settle a calendar year of cycles (wire form) under a NEM policy.

        Excess generation (net export over the year) is paid out at the
        policy's excess generation rate and offsets the unpaid balance.
        """
        policy = self._nem.get_policy(nem_policy) if isinstance(nem_policy, str) else nem_policy
        if not isinstance(policy, dict):
            raise ValidationException("NEM policy must be an ID or an object", field="nemPolicy")
        start, end = _calendar_year(true_up_year)
        if not isinstance(billing_cycles, list):
            raise ValidationException("Billing cycles must be a list", field="billingCycles")
        try:
            cycles = [
                c for c in billing_cycles
                if start <= date.fromisoformat(str(c["startDate"])[:10]) <= end
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationException("Billing cycles need an ISO startDate", field="billingCycles") from e
        cycles.sort(key=lambda c: str(c["startDate"]))

        def cycle_sum(section: str, key: str) -> float:
            try:
                return sum(float((c.get(section) or {}).get(key, 0.0)) for c in cycles)
            except (AttributeError, TypeError, ValueError) as e:
                raise ValidationException(f"Billing cycle {section}.{key} must be a number", field=section) from e

        def energy_sum(key: str) -> float:
            return cycle_sum("energyData", key)

        def billing_sum(key: str) -> float:
            return cycle_sum("billing", key)

        energy_totals = {
            "totalProduction": energy_sum("production"),
            "totalConsumption": energy_sum("consumption"),
            "totalImport": energy_sum("gridImport"),
            "totalExport": energy_sum("gridExport"),
            "netEnergyUsage": energy_sum("netUsage"),
        }
        financial_totals = {
            "totalCharges": billing_sum("grossCharges"),
            "totalCredits": billing_sum("totalCredits"),
            "totalPayments": billing_sum("amountDue"),
            "netPosition": billing_sum("netAmount"),
        }
        try:
            rate = float(policy.get("excessGenerationRate") or DEFAULT_EXCESS_GENERATION_RATE)
        except (TypeError, ValueError) as e:
            raise ValidationException("excessGenerationRate must be a number", field="nemPolicy") from e
        excess_kwh = max(0.0, -energy_totals["netEnergyUsage"])
        compensation = excess_kwh * rate
        net_amount = financial_totals["netPosition"] - compensation
        production = energy_totals["totalProduction"]
        return {
            "id": f"{customer_id}-{true_up_year}-true-up",
            "customerId": customer_id,
            "utilityCompany": cycles[0].get("utilityCompany", "") if cycles else "",
            "nemPolicyId": policy.get("id"),
            "periodYear": true_up_year,
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "totalDays": (end - start).days + 1,
            "billingCycles": [c.get("id") for c in cycles],
            "energyTotals": _round_values(energy_totals, 3),
            "financialTotals": _round_values(financial_totals),
            "excessGeneration": {
                "totalExcess": round(excess_kwh, 3),
                "compensationRate": rate,
                "compensationAmount": round(compensation, 2),
            },
            "trueUpBill": {
                "amountDue": round(max(0.0, net_amount), 2),
                "paymentMethod": "standard_billing" if net_amount > 0 else "credit_memo",
                "netAmount": round(net_amount, 2),
            },
            "analysis": {
                "selfConsumptionRate": round((production - energy_totals["totalExport"]) / production * 100, 1)
                if production > 0
                else 0.0,
                "exportRate": round(energy_totals["totalExport"] / production * 100, 1) if production > 0 else 0.0,
            },
            "status": "calculated" if any(c.get("isTrueUpPeriod") for c in cycles) else "pending",
        }

    async def record_true_up(self, result: dict[str, Any]) -> str:
        """Store a processed true-up in the customer's billing history."""
        return await self._repo.append_history(result["customerId"], "true_up", result)

    async def record_comparison(self, result: dict[str, Any]) -> str:
        return await self._repo.append_history(result["customerId"], "comparison", result)

    async def get_billing_history(
        self, customer_id: str, start: date | None = None, end: date | None = None
    ) -> dict[str, Any]:
        """Stored cycles for a customer with bill and savings totals."""
        start = start or date(utc_today().year - 1, 1, 1)
        end = end or utc_today()
        cycles = await self._repo.list_by_customer(customer_id, start, end)
        bills = [c.charges.get("amountDue", 0.0) for c in cycles]
        savings = [c.comparison.get("savings", 0.0) for c in cycles]
        count = len(cycles)
        return {
            "customerId": customer_id,
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "monthlyBills": [cycle_to_dict(c) for c in cycles],
            "summary": {
                "totalBills": count,
                "totalAmountBilled": round(sum(bills), 2),
                "totalSavings": round(sum(savings), 2),
                "averageMonthlyBill": round(sum(bills) / count, 2) if count else 0.0,
                "averageMonthlySavings": round(sum(savings) / count, 2) if count else 0.0,
            },
        }

    async def get_true_up(self, customer_id: str, true_up_year: int) -> dict[str, Any]:
        """True-up computed from the customer's stored cycles for the year."""
        cycles = await self._repo.list_by_customer(customer_id, *_calendar_year(true_up_year))
        policy_id = cycles[-1].nem_policy_id if cycles else DEFAULT_NEM_POLICY_ID
        return self.process_annual_true_up(
            customer_id, true_up_year, [cycle_to_dict(c) for c in cycles], policy_id
        )

    async def get_projections(
        self, customer_id: str, projection_years: int = 10, scenarios: str = "standard"
    ) -> dict[str, Any]:
        """Multi-year projections from the last twelve stored cycles."""
        cycles = (await self._repo.list_by_customer(customer_id))[-12:]
        if not cycles:
            raise BillingCalculationException("No billing cycles found for customer", customer_id=customer_id)
        usage = [{"kWhUsed": c.energy.get("consumption", 0.0)} for c in cycles]
        production = sum(float(c.energy.get("production", 0.0)) for c in cycles)
        capacity = production / len(cycles) * 12 / PRODUCTION_KWH_PER_KW_YEAR if production else None
        # Fewer than twelve months of history is scaled to a full year
        scale = 12 / len(cycles)
        usage = [{"kWhUsed": u["kWhUsed"] * scale} for u in usage]
        result = self._calculator.scenario_projections(usage, projection_years, capacity, scenarios)
        return {"customerId": customer_id, **result}
