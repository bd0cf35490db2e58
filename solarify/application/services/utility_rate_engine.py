"""Utility rate engine: rate schedule lookup, time-of-use matching and bill calculation.

Rate schedules are JSON documents (camelCase keys, ISO date strings) so they
can be cached, returned by the API and posted back by clients unchanged.
Usage data is a list of interval readings ``{"timestamp", "kWh", "kW"?}``.
TOU periods are matched on the wall-clock time of the reading as sent.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from solarify.core.config import get_settings
from solarify.domain.exceptions import (
    BillingCalculationException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.infrastructure.cache.cache_protocol import CacheProtocol
from solarify.infrastructure.cache.keys import rates_key
from solarify.shared.telemetry.tracing import add_span_attributes, traced
from solarify.shared.utils.datetime import ensure_utc, utc_today

logger = logging.getLogger(__name__)

ALL_MONTHS = list(range(1, 13))
ALL_DAYS = list(range(7))
WEEKDAYS = [1, 2, 3, 4, 5]

# Bay Area zip codes served by the built-in PG&E schedules
PGE_ZIP_CODES = ["94105", "95110", "94301"]

_PGE_TERRITORY = {
    "states": ["CA"],
    "counties": ["San Francisco", "Santa Clara"],
    "cities": ["San Francisco", "San Jose", "Palo Alto"],
    "zipCodes": PGE_ZIP_CODES,
}

_PGE_ADDITIONAL = {"publicPurposePrograms": 0.00263, "stateAndLocalTaxes": 8.5}

# Built-in schedules; effective/expiration dates are ISO strings.
SAMPLE_RATE_SCHEDULES: list[dict[str, Any]] = [
    {
        "id": "pge-e-tou-c",
        "utilityCompany": "Pacific Gas & Electric",
        "utilityId": "PGE",
        "rateName": "E-TOU-C",
        "rateCode": "E-TOUC",
        "description": "Time-of-Use Residential Service (peak 4-9 p.m. weekdays)",
        "customerClass": "residential",
        "serviceTerritory": _PGE_TERRITORY,
        "rateStructure": {
            "type": "time_of_use",
            "version": "2024.1",
            "currency": "USD",
            "fixedCharges": {"connectionFee": 0.32877, "customerCharge": 10.0},
            "energyCharges": {
                "timeOfUseRates": [
                    {
                        "id": "peak",
                        "name": "Peak",
                        "period": "peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": WEEKDAYS,
                        "startTime": "16:00",
                        "endTime": "20:59",
                        "rate": 0.45,
                        "season": "all",
                    },
                    {
                        "id": "off-peak",
                        "name": "Off-Peak",
                        "period": "off_peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": ALL_DAYS,
                        "startTime": "00:00",
                        "endTime": "23:59",
                        "rate": 0.30,
                        "season": "all",
                    },
                ],
            },
            "additionalCharges": _PGE_ADDITIONAL,
        },
        "netMetering": {
            "available": True,
            "policy": "net_energy_metering",
            "creditRate": 0.30,
            "rolloverPolicy": "annual",
            "maxSystemSize": 1000,
            "aggregateCap": 5,
        },
        "schedule": {"effectiveDate": "2024-01-01", "expirationDate": None},
        "optimization": {
            "solarFriendly": True,
            "batteryOptimized": True,
            "evFriendly": False,
            "demandResponseEligible": False,
            "timeOfUseOptimized": True,
        },
    },
    {
        "id": "pge-e-1",
        "utilityCompany": "Pacific Gas & Electric",
        "utilityId": "PGE",
        "rateName": "E-1",
        "rateCode": "E1",
        "description": "Residential Tiered Service",
        "customerClass": "residential",
        "serviceTerritory": _PGE_TERRITORY,
        "rateStructure": {
            "type": "tiered",
            "version": "2024.1",
            "currency": "USD",
            "fixedCharges": {"connectionFee": 0.32877, "customerCharge": 10.0},
            "energyCharges": {
                "tieredRates": [
                    {"name": "Baseline", "threshold": 300, "rate": 0.32},
                    {"name": "Above Baseline", "threshold": None, "rate": 0.40},
                ],
            },
            "additionalCharges": _PGE_ADDITIONAL,
        },
        "netMetering": {
            "available": True,
            "policy": "net_energy_metering",
            "creditRate": 0.32,
            "rolloverPolicy": "annual",
            "maxSystemSize": 1000,
            "aggregateCap": 5,
        },
        "schedule": {"effectiveDate": "2024-01-01", "expirationDate": None},
        "optimization": {
            "solarFriendly": False,
            "batteryOptimized": False,
            "evFriendly": False,
            "demandResponseEligible": False,
            "timeOfUseOptimized": False,
        },
    },
    {
        "id": "pge-ev2-a",
        "utilityCompany": "Pacific Gas & Electric",
        "utilityId": "PGE",
        "rateName": "EV2-A",
        "rateCode": "EV2A",
        "description": "Home Charging EV2-A (low overnight rates)",
        "customerClass": "residential",
        "serviceTerritory": _PGE_TERRITORY,
        "rateStructure": {
            "type": "time_of_use",
            "version": "2024.1",
            "currency": "USD",
            "fixedCharges": {"connectionFee": 0.32877, "customerCharge": 12.0},
            "energyCharges": {
                "timeOfUseRates": [
                    {
                        "id": "ev-off-peak",
                        "name": "Off-Peak",
                        "period": "off_peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": ALL_DAYS,
                        "startTime": "00:00",
                        "endTime": "14:59",
                        "rate": 0.25,
                        "season": "all",
                    },
                    {
                        "id": "ev-partial-peak",
                        "name": "Partial-Peak",
                        "period": "mid_peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": ALL_DAYS,
                        "startTime": "15:00",
                        "endTime": "15:59",
                        "rate": 0.42,
                        "season": "all",
                    },
                    {
                        "id": "ev-peak",
                        "name": "Peak",
                        "period": "peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": ALL_DAYS,
                        "startTime": "16:00",
                        "endTime": "20:59",
                        "rate": 0.52,
                        "season": "all",
                    },
                    {
                        "id": "ev-late",
                        "name": "Late Partial-Peak",
                        "period": "mid_peak",
                        "months": ALL_MONTHS,
                        "daysOfWeek": ALL_DAYS,
                        "startTime": "21:00",
                        "endTime": "23:59",
                        "rate": 0.42,
                        "season": "all",
                    },
                ],
            },
            "additionalCharges": _PGE_ADDITIONAL,
        },
        "netMetering": {
            "available": True,
            "policy": "net_billing",
            "creditRate": 0.08,
            "rolloverPolicy": "annual",
            "maxSystemSize": 1000,
            "aggregateCap": 5,
        },
        "schedule": {"effectiveDate": "2024-01-01", "expirationDate": None},
        "optimization": {
            "solarFriendly": False,
            "batteryOptimized": True,
            "evFriendly": True,
            "demandResponseEligible": True,
            "timeOfUseOptimized": True,
        },
    },
]

# Built-in utility provider directory for the providers lookup
UTILITY_PROVIDERS: list[dict[str, Any]] = [
    {
        "id": "PGE",
        "name": "Pacific Gas & Electric",
        "shortName": "PG&E",
        "type": "investor_owned",
        "states": ["CA"],
        "primaryState": "CA",
        "cities": ["San Francisco", "San Jose", "Palo Alto"],
        "zipCodes": PGE_ZIP_CODES,
        "website": "https://www.pge.com",
        "netMeteringAvailable": True,
        "currentNemPolicy": "CA-NEM3",
    },
    {
        "id": "SCE",
        "name": "Southern California Edison",
        "shortName": "SCE",
        "type": "investor_owned",
        "states": ["CA"],
        "primaryState": "CA",
        "cities": ["Irvine", "Long Beach", "Santa Ana"],
        "zipCodes": ["92602", "90802", "92701"],
        "website": "https://www.sce.com",
        "netMeteringAvailable": True,
        "currentNemPolicy": "CA-NEM3",
    },
    {
        "id": "SDGE",
        "name": "San Diego Gas & Electric",
        "shortName": "SDG&E",
        "type": "investor_owned",
        "states": ["CA"],
        "primaryState": "CA",
        "cities": ["San Diego", "Chula Vista"],
        "zipCodes": ["92101", "91910"],
        "website": "https://www.sdge.com",
        "netMeteringAvailable": True,
        "currentNemPolicy": "CA-NEM3",
    },
]


def parse_reading_time(value: str | datetime) -> datetime:
    """Parse a reading timestamp, keeping its wall-clock time and offset."""
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationException(f"Invalid timestamp: {value}", field="timestamp") from e


def _parse_hhmm(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError as e:
        raise ValidationException(f"Invalid time of day: {value}", field="startTime") from e


def is_time_in_range(moment: time, start: str, end: str) -> bool:
    """Inclusive HH:MM range check; start > end wraps past midnight."""
    start_t, end_t = _parse_hhmm(start), _parse_hhmm(end)
    current = moment.replace(second=0, microsecond=0, tzinfo=None)
    if start_t > end_t:
        return current >= start_t or current <= end_t
    return start_t <= current <= end_t


def js_day_of_week(moment: datetime) -> int:
    """Day of week with Sunday = 0 (the convention used in schedule documents)."""
    return (moment.weekday() + 1) % 7


def get_tou_period(
    schedule: dict[str, Any], moment: datetime | str
) -> dict[str, Any] | None:
    """Return the first TOU period whose month, weekday and time range match."""
    periods = schedule.get("rateStructure", {}).get("energyCharges", {}).get("timeOfUseRates")
    return match_tou_period(periods or [], moment)


def match_tou_period(
    periods: list[dict[str, Any]], moment: datetime | str
) -> dict[str, Any] | None:
    when = parse_reading_time(moment)
    for period in periods:
        if when.month not in period.get("months", ALL_MONTHS):
            continue
        if js_day_of_week(when) not in period.get("daysOfWeek", ALL_DAYS):
            continue
        if is_time_in_range(when.time(), period["startTime"], period["endTime"]):
            return period
    return None


def _is_active(schedule: dict[str, Any], today: date) -> bool:
    window = schedule.get("schedule", {})
    effective = window.get("effectiveDate")
    expiration = window.get("expirationDate")
    if effective and date.fromisoformat(effective[:10]) > today:
        return False
    return not (expiration and date.fromisoformat(expiration[:10]) < today)


def _non_negative(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def _objects(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def validate_schedule(schedule: dict[str, Any]) -> dict[str, Any]:
    """Structural checks on a rate schedule document.

    Returns ``{"isValid", "errors", "warnings"}``; never raises for bad data.
    """
    errors: list[str] = []
    warnings: list[str] = []
    structure = schedule.get("rateStructure")
    if not isinstance(structure, dict):
        return {"isValid": False, "errors": ["rateStructure is required"], "warnings": []}

    fixed = structure.get("fixedCharges") or {}
    if not isinstance(fixed, dict):
        errors.append("fixedCharges must be an object")
        fixed = {}
    for key, value in fixed.items():
        if not _non_negative(value):
            errors.append(f"fixedCharges.{key} must be a non-negative number")

    energy = structure.get("energyCharges") or {}
    if not isinstance(energy, dict):
        errors.append("energyCharges must be an object")
        energy = {}
    if not any(energy.get(k) for k in ("flatRate", "tieredRates", "timeOfUseRates")):
        errors.append("energyCharges needs flatRate, tieredRates or timeOfUseRates")
    flat = energy.get("flatRate")
    if flat is not None and not _non_negative(flat):
        errors.append("energyCharges.flatRate must be a non-negative number")
    tiers = _objects(energy.get("tieredRates"))
    for index, tier in enumerate(tiers):
        if not isinstance(tier, dict):
            errors.append(f"tieredRates[{index}] must be an object")
            continue
        threshold = tier.get("threshold")
        if threshold is None and index != len(tiers) - 1:
            errors.append(f"tieredRates[{index}] only the last tier may be unbounded")
        elif threshold is not None and (not _non_negative(threshold) or threshold == 0):
            errors.append(f"tieredRates[{index}].threshold must be positive")
        if not _non_negative(tier.get("rate")):
            errors.append(f"tieredRates[{index}].rate must be non-negative")
    for index, period in enumerate(_objects(energy.get("timeOfUseRates"))):
        label = f"timeOfUseRates[{index}]"
        if not isinstance(period, dict):
            errors.append(f"{label} must be an object")
            continue
        for key in ("startTime", "endTime"):
            try:
                time.fromisoformat(str(period.get(key)))
            except ValueError:
                errors.append(f"{label}.{key} must be HH:MM")
        if any(m not in ALL_MONTHS for m in _objects(period.get("months"))):
            errors.append(f"{label}.months must be 1-12")
        if any(d not in ALL_DAYS for d in _objects(period.get("daysOfWeek"))):
            errors.append(f"{label}.daysOfWeek must be 0-6 (Sunday = 0)")
        if not _non_negative(period.get("rate")):
            errors.append(f"{label}.rate must be non-negative")

    for index, charge in enumerate(_objects(structure.get("demandCharges"))):
        if not isinstance(charge, dict) or charge.get("type") not in (
            "facility", "time_of_use", "coincident_peak", "non_coincident_peak"
        ):
            warnings.append(f"demandCharges[{index}].type is not recognized")

    window = schedule.get("schedule") or {}
    effective = window.get("effectiveDate") if isinstance(window, dict) else None
    expiration = window.get("expirationDate") if isinstance(window, dict) else None
    try:
        if effective and expiration and date.fromisoformat(expiration[:10]) < date.fromisoformat(effective[:10]):
            errors.append("schedule.expirationDate is before effectiveDate")
        if expiration and date.fromisoformat(expiration[:10]) < utc_today():
            warnings.append("Rate schedule has expired")
    except (TypeError, ValueError):
        errors.append("schedule dates must be ISO dates")
    net_metering = schedule.get("netMetering")
    if not (isinstance(net_metering, dict) and net_metering.get("available")):
        warnings.append("Net metering is not available on this schedule")
    return {"isValid": not errors, "errors": errors, "warnings": warnings}


class UtilityRateEngine:
    """Rate schedule lookup, TOU matching, bill calculation and rate optimization."""

    def __init__(
        self,
        schedules: list[dict[str, Any]] | None = None,
        cache: CacheProtocol | None = None,
    ) -> None:
        self._schedules = {s["id"]: s for s in (schedules or SAMPLE_RATE_SCHEDULES)}
        self._cache = cache

    def get_schedule(self, schedule_id: str) -> dict[str, Any]:
        """Return a copy of the schedule or raise ResourceNotFoundException."""
        schedule = self._schedules.get(schedule_id)
        if schedule is None:
            raise ResourceNotFoundException("rate_schedule", schedule_id)
        return copy.deepcopy(schedule)

    def list_providers(self, zip_code: str | None = None, state: str | None = None) -> list[dict[str, Any]]:
        """Utility providers serving a zip code, else a state."""
        if zip_code:
            return [copy.deepcopy(p) for p in UTILITY_PROVIDERS if zip_code in p["zipCodes"]]
        if state:
            return [copy.deepcopy(p) for p in UTILITY_PROVIDERS if state.upper() in p["states"]]
        raise ValidationException("Either state or zipCode is required", field="zipCode")

    def _search_local(
        self, zip_code: str, customer_class: str, utility_company: str | None
    ) -> list[dict[str, Any]]:
        today = utc_today()
        matches = [
            copy.deepcopy(s)
            for s in self._schedules.values()
            if zip_code in s.get("serviceTerritory", {}).get("zipCodes", [])
            and s.get("customerClass", "residential") == customer_class
            and (not utility_company or utility_company.lower() in s.get("utilityCompany", "").lower())
            and _is_active(s, today)
        ]
        # Solar-friendly schedules first, otherwise keep catalog order
        matches.sort(key=lambda s: not s.get("optimization", {}).get("solarFriendly", False))
        return matches

    @traced("utility_rates.search")
    async def search_rates(
        self,
        zip_code: str,
        customer_class: str = "residential",
        utility_company: str | None = None,
    ) -> list[dict[str, Any]]:
        """Active schedules serving the zip code. Residential unfiltered lookups are cached."""
        add_span_attributes(zip_code=zip_code)
        cacheable = self._cache is not None and not utility_company and customer_class == "residential"
        key = rates_key(zip_code) if cacheable else None
        if key and self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return cached
        schedules = self._search_local(zip_code, customer_class, utility_company)
        if key and self._cache is not None and schedules:
            await self._cache.set(key, schedules, ttl=get_settings().cache_ttl_utility_rates)
        logger.debug("Found %d rate schedules for %s", len(schedules), zip_code)
        return schedules

    def tou_periods_at(self, schedule_id: str, moment: datetime | str) -> list[dict[str, Any]]:
        """TOU periods of a schedule with isCurrentPeriod set for the given moment."""
        schedule = self.get_schedule(schedule_id)
        periods = schedule["rateStructure"]["energyCharges"].get("timeOfUseRates") or []
        current = match_tou_period(periods, moment)
        current_id = current["id"] if current else None
        return [{**p, "isCurrentPeriod": p["id"] == current_id} for p in periods]

    def _usage_breakdown(
        self, usage: list[dict[str, Any]], schedule: dict[str, Any]
    ) -> dict[str, Any]:
        total_kwh = sum(float(r.get("kWh", 0)) for r in usage)
        peak_kw = max((float(r.get("kW") or 0) for r in usage), default=0.0)
        energy = schedule["rateStructure"]["energyCharges"]

        tou_breakdown: dict[str, dict[str, float]] = {}
        periods = energy.get("timeOfUseRates") or []
        for period in periods:
            tou_breakdown.setdefault(period["name"], {"kWh": 0.0, "cost": 0.0})
        for reading in usage:
            period = match_tou_period(periods, reading["timestamp"]) if periods else None
            if period:
                bucket = tou_breakdown[period["name"]]
                kwh = float(reading.get("kWh", 0))
                bucket["kWh"] += kwh
                bucket["cost"] += kwh * period["rate"]

        tiered_breakdown: dict[str, dict[str, float]] = {}
        remaining = total_kwh
        for tier in energy.get("tieredRates") or []:
            if remaining <= 0:
                break
            threshold = tier.get("threshold")
            tier_kwh = remaining if threshold is None else min(remaining, threshold)
            tiered_breakdown[tier["name"]] = {
                "kWh": tier_kwh,
                "rate": tier["rate"],
                "cost": tier_kwh * tier["rate"],
            }
            remaining -= tier_kwh

        return {
            "totalKWh": total_kwh,
            "peakKW": peak_kw,
            "timeOfUseBreakdown": tou_breakdown or None,
            "tieredBreakdown": tiered_breakdown or None,
        }

    def _charges(self, usage: dict[str, Any], schedule: dict[str, Any]) -> dict[str, Any]:
        structure = schedule["rateStructure"]
        fixed_cfg = structure.get("fixedCharges") or {}
        fixed = {
            "connectionFee": fixed_cfg.get("connectionFee", 0.0),
            "customerCharge": fixed_cfg.get("customerCharge", 0.0),
            "facilityCharge": fixed_cfg.get("facilityCharge", 0.0) * usage["peakKW"],
            "serviceCharge": fixed_cfg.get("serviceCharge", 0.0),
        }
        fixed["total"] = sum(fixed.values())

        flat_rate = structure["energyCharges"].get("flatRate")
        base = usage["totalKWh"] * flat_rate if flat_rate else 0.0
        tou = sum(p["cost"] for p in (usage["timeOfUseBreakdown"] or {}).values())
        tiered = sum(t["cost"] for t in (usage["tieredBreakdown"] or {}).values())
        energy = {"base": base, "timeOfUse": tou, "tiered": tiered, "total": base + tou + tiered}

        demand = {"facility": 0.0, "timeOfUse": 0.0, "coincidentPeak": 0.0}
        if usage["peakKW"]:
            for charge in structure.get("demandCharges") or []:
                amount = usage["peakKW"] * charge["rate"]
                if charge["type"] == "facility":
                    demand["facility"] += amount
                elif charge["type"] == "time_of_use":
                    demand["timeOfUse"] += amount
                elif charge["type"] in ("coincident_peak", "non_coincident_peak"):
                    demand["coincidentPeak"] += amount
        demand["total"] = sum(demand.values())

        adders = structure.get("additionalCharges") or {}
        public_purpose = usage["totalKWh"] * adders.get("publicPurposePrograms", 0.0)
        per_kwh_other = sum(
            adders.get(key, 0.0)
            for key in (
                "nuclearDecommissioning",
                "competitiveTransition",
                "distributionCharges",
                "transmissionCharges",
                "renewableEnergyCharges",
            )
        )
        other = usage["totalKWh"] * per_kwh_other
        taxes = (fixed["total"] + energy["total"] + demand["total"]) * adders.get(
            "stateAndLocalTaxes", 0.0
        ) / 100
        additional = {
            "publicPurpose": public_purpose,
            "taxes": taxes,
            "other": other,
            "total": public_purpose + taxes + other,
        }
        total = fixed["total"] + energy["total"] + demand["total"] + additional["total"]
        return {
            "fixedCharges": fixed,
            "energyCharges": energy,
            "demandCharges": demand,
            "additionalCharges": additional,
            "netMeteringCredits": 0.0,
            "totalBill": total,
        }

    @staticmethod
    def _rate_analysis(
        usage: dict[str, Any], charges: dict[str, Any], schedule: dict[str, Any]
    ) -> dict[str, Any]:
        energy = schedule["rateStructure"]["energyCharges"]
        effective = charges["totalBill"] / usage["totalKWh"] if usage["totalKWh"] else 0.0
        opportunities = []
        if energy.get("timeOfUseRates"):
            opportunities.append("Shift usage to off-peak hours")
        if schedule["rateStructure"].get("demandCharges"):
            opportunities.append("Reduce peak demand usage")
        return {
            "effectiveRate": effective,
            "marginalRate": energy.get("flatRate") or effective,
            "optimalUsageProfile": "Load shifting recommended",
            "savingsOpportunities": opportunities,
        }

    def calculate_bill(
        self,
        schedule: dict[str, Any] | str,
        usage_data: list[dict[str, Any]],
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        """Bill for readings within [start, end] under a schedule (document or id)."""
        if isinstance(schedule, str):
            schedule = self.get_schedule(schedule)
        if "rateStructure" not in schedule:
            raise BillingCalculationException("Rate schedule has no rateStructure")
        start_utc, end_utc = ensure_utc(start), ensure_utc(end)
        if end_utc < start_utc:
            raise BillingCalculationException("Billing period end is before its start")
        period_usage = [
            r for r in usage_data
            if start_utc <= ensure_utc(parse_reading_time(r["timestamp"])) <= end_utc
        ]
        usage = self._usage_breakdown(period_usage, schedule)
        charges = self._charges(usage, schedule)
        return {
            "billingPeriod": {
                "startDate": start.isoformat(),
                "endDate": end.isoformat(),
                "daysInPeriod": max(1, -(-(end_utc - start_utc) // timedelta(days=1))),
            },
            "usage": usage,
            "charges": charges,
            "rateAnalysis": self._rate_analysis(usage, charges, schedule),
        }

    def annual_cost(self, schedule: dict[str, Any], usage_data: list[dict[str, Any]]) -> float:
        """Sum of monthly bills for every calendar month present in the usage."""
        months: dict[tuple[int, int], list[dict[str, Any]]] = defaultdict(list)
        for reading in usage_data:
            when = ensure_utc(parse_reading_time(reading["timestamp"]))
            months[(when.year, when.month)].append(reading)
        total = 0.0
        for (year, month), readings in sorted(months.items()):
            month_start = datetime(year, month, 1, tzinfo=UTC)
            next_month = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=UTC)
            bill = self.calculate_bill(
                schedule, readings, month_start, next_month - timedelta(microseconds=1)
            )
            total += bill["charges"]["totalBill"]
        return total

    @traced("utility_rates.optimize")
    async def optimize_rates(
        self,
        zip_code: str,
        usage_data: list[dict[str, Any]],
        customer_class: str = "residential",
        system_specs: dict[str, Any] | None = None,
        current_schedule_id: str | None = None,
    ) -> dict[str, Any]:
        """Cost every candidate schedule and recommend up to three cheaper ones.

        The current rate is current_schedule_id when given, else the first
        (solar-friendly) schedule returned by search_rates.
        """
        if not usage_data:
            raise BillingCalculationException("Usage data is required")
        candidates = await self.search_rates(zip_code, customer_class)
        if not candidates:
            raise BillingCalculationException(
                f"No rate schedules found for zip code: {zip_code}", zip_code=zip_code
            )
        costed = [(s, self.annual_cost(s, usage_data)) for s in candidates]
        current, current_cost = costed[0]
        if current_schedule_id:
            for schedule, cost in costed:
                if schedule["id"] == current_schedule_id:
                    current, current_cost = schedule, cost
                    break
            else:
                raise ResourceNotFoundException("rate_schedule", current_schedule_id)

        alternatives = sorted(
            ((s, c) for s, c in costed if s["id"] != current["id"] and c < current_cost),
            key=lambda pair: pair[1],
        )[:3]
        recommended = [
            {
                "scheduleId": schedule["id"],
                "rateName": schedule["rateName"],
                "annualCost": round(cost, 2),
                "potentialSavings": round(current_cost - cost, 2),
                "savingsPercentage": round((current_cost - cost) / current_cost * 100, 2)
                if current_cost
                else 0.0,
                "reason": self._optimization_reason(schedule),
            }
            for schedule, cost in alternatives
        ]
        result: dict[str, Any] = {
            "currentRate": {
                "scheduleId": current["id"],
                "rateName": current["rateName"],
                "annualCost": round(current_cost, 2),
            },
            "recommendedRates": recommended,
            "optimizationStrategies": self._strategies(current),
        }
        battery = (system_specs or {}).get("batteryCapacity")
        if battery and "time_of_use" in current["rateStructure"]["type"]:
            result["batteryOptimization"] = {
                "recommendedCapacity": battery,
                "chargingSchedule": [{"startTime": "00:00", "endTime": "06:00", "season": "all"}],
                "dischargingSchedule": [{"startTime": "16:00", "endTime": "21:00", "season": "all"}],
                "estimatedSavings": 800,
                "paybackPeriod": 7,
            }
        return result

    @staticmethod
    def _optimization_reason(schedule: dict[str, Any]) -> str:
        optimization = schedule.get("optimization", {})
        if optimization.get("solarFriendly"):
            return "Solar-friendly rate with beneficial net metering terms"
        if optimization.get("timeOfUseOptimized"):
            return "Time-of-use rate optimal for load shifting"
        return "Lower overall energy costs"

    @staticmethod
    def _strategies(schedule: dict[str, Any]) -> list[dict[str, Any]]:
        strategies = []
        if schedule["rateStructure"]["energyCharges"].get("timeOfUseRates"):
            strategies.append({
                "type": "load_shifting",
                "description": "Shift energy usage to off-peak hours",
                "potentialSavings": 500,
                "priority": "high",
            })
        if schedule["rateStructure"].get("demandCharges"):
            strategies.append({
                "type": "demand_reduction",
                "description": "Reduce peak demand usage",
                "potentialSavings": 300,
                "priority": "medium",
            })
        return strategies
