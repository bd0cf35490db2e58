"""Solar PV production and financial estimates from monthly irradiance.

Irradiance values are monthly averages in kWh/m²/day (equivalently, peak sun
hours). Sun geometry is evaluated at solar noon on the middle day of each
month, which is enough for monthly energy estimates.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from solarify.application.dtos.solar import Location, MonthlyIrradiance, SystemSpec
from solarify.domain.enums import PanelType
from solarify.domain.exceptions import ValidationException
from solarify.infrastructure.external.weather.client import WeatherClient
from solarify.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)

DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
HOURS_PER_YEAR = 8760

GROUND_ALBEDO = 0.2
NOCT = 45.0
STC_TEMPERATURE = 25.0
DAYLIGHT_HOURS = 12.0
MIN_DERATE = 0.5

TEMPERATURE_COEFFICIENTS = {
    PanelType.MONOCRYSTALLINE.value: -0.40,
    PanelType.POLYCRYSTALLINE.value: -0.45,
    PanelType.THIN_FILM.value: -0.25,
}

DEFAULT_LOSSES = {
    "wiring": 2.0,
    "soiling": 2.0,
    "shading": 3.0,
    "mismatch": 2.0,
    "availability": 3.0,
}

CO2_KG_PER_KWH = 0.4
COST_PER_WATT = 3.0
FEDERAL_TAX_CREDIT = 0.30
DEFAULT_UTILITY_RATE = 0.12
RATE_ESCALATION = 3.0
DISCOUNT_RATE = 6.0
ANNUAL_DEGRADATION = 0.5
SYSTEM_LIFETIME_YEARS = 25

MAX_GHI = 12.0


def validate_inputs(
    location: Location, system: SystemSpec, irradiance: list[MonthlyIrradiance]
) -> None:
    """Raise ValidationException on the first out-of-range input."""
    if not -90 <= location.latitude <= 90:
        raise ValidationException("Latitude must be between -90 and 90", field="latitude")
    if not -180 <= location.longitude <= 180:
        raise ValidationException("Longitude must be between -180 and 180", field="longitude")
    if system.capacity_kw <= 0:
        raise ValidationException("System capacity must be positive", field="capacity")
    if not 0 <= system.tilt <= 90:
        raise ValidationException("Tilt must be between 0 and 90 degrees", field="tilt")
    if not 0 <= system.azimuth <= 360:
        raise ValidationException("Azimuth must be between 0 and 360 degrees", field="azimuth")
    if system.panel_type not in TEMPERATURE_COEFFICIENTS:
        raise ValidationException(f"Unknown panel type '{system.panel_type}'", field="panelType")
    if not 0 < system.inverter_efficiency <= 100:
        raise ValidationException("Inverter efficiency must be a percentage", field="inverterEfficiency")
    for name, loss in system.losses.items():
        if not 0 <= loss < 100:
            raise ValidationException(f"Loss '{name}' must be between 0 and 100", field="losses")
    if len(irradiance) != 12:
        raise ValidationException("Irradiance data must cover exactly 12 months", field="irradiance")
    for expected, entry in enumerate(irradiance, start=1):
        if entry.month != expected:
            raise ValidationException("Irradiance months must be ordered 1 through 12", field="irradiance")
        if not 0 <= entry.ghi <= MAX_GHI:
            raise ValidationException(
                f"GHI for month {entry.month} must be between 0 and {MAX_GHI:g}", field="irradiance"
            )
        if entry.dni < 0 or entry.dhi < 0:
            raise ValidationException(
                f"Irradiance for month {entry.month} must not be negative", field="irradiance"
            )


def solar_declination(day_of_year: float) -> float:
    """Solar declination in degrees (Cooper's equation)."""
    return 23.45 * math.sin(math.radians(360 * (284 + day_of_year) / 365))


def noon_sun_position(latitude: float, month: int) -> tuple[float, float]:
    """(elevation, azimuth) in degrees at solar noon mid-month."""
    declination = solar_declination(month * 30.4 - 15)
    elevation = max(0.0, 90 - abs(latitude - declination))
    azimuth = 180.0 if latitude >= declination else 0.0
    return elevation, azimuth


def incidence_cosine(tilt: float, surface_azimuth: float, sun_elevation: float, sun_azimuth: float) -> float:
    """Cosine of the angle between the sun and the panel normal, clamped at 0."""
    tilt_r = math.radians(tilt)
    elev_r = math.radians(sun_elevation)
    value = math.sin(elev_r) * math.cos(tilt_r) + math.cos(elev_r) * math.sin(tilt_r) * math.cos(
        math.radians(sun_azimuth - surface_azimuth)
    )
    return max(0.0, value)


def plane_of_array(ghi: float, dni: float, dhi: float, tilt: float, cos_incidence: float) -> float:
    """Daily plane-of-array irradiance: beam + isotropic sky diffuse + ground reflected."""
    cos_tilt = math.cos(math.radians(tilt))
    beam = dni * cos_incidence
    diffuse = dhi * (1 + cos_tilt) / 2
    reflected = ghi * GROUND_ALBEDO * (1 - cos_tilt) / 2
    return max(0.0, beam + diffuse + reflected)


def cell_temperature(ambient: float, poa_daily: float) -> float:
    """NOCT model using the average daylight irradiance in W/m²."""
    irradiance_w = poa_daily * 1000 / DAYLIGHT_HOURS
    return ambient + (NOCT - 20) / 800 * irradiance_w


def temperature_derate(cell_temp: float, panel_type: str) -> float:
    coefficient = TEMPERATURE_COEFFICIENTS[panel_type]
    return max(MIN_DERATE, 1 + coefficient / 100 * (cell_temp - STC_TEMPERATURE))


def system_derate(losses: dict[str, float]) -> float:
    """Product of (1 - loss%) over every loss, floored at 0.5."""
    derate = 1.0
    for loss in losses.values():
        derate *= 1 - loss / 100
    return max(MIN_DERATE, derate)


def financial_summary(
    annual_production: float,
    capacity_kw: float,
    utility_rate: float = DEFAULT_UTILITY_RATE,
    lifetime_years: int = SYSTEM_LIFETIME_YEARS,
) -> dict[str, Any]:
    """Installed cost, incentives, payback, NPV, ROI and LCOE for the system."""
    system_cost = capacity_kw * 1000 * COST_PER_WATT
    incentives = system_cost * FEDERAL_TAX_CREDIT
    net_cost = system_cost - incentives
    first_year_savings = annual_production * utility_rate

    lifetime_savings = 0.0
    present_value = 0.0
    cumulative = 0.0
    payback_years: float | None = None
    for year in range(lifetime_years):
        production = annual_production * (1 - ANNUAL_DEGRADATION / 100) ** year
        savings = production * utility_rate * (1 + RATE_ESCALATION / 100) ** year
        lifetime_savings += savings
        present_value += savings / (1 + DISCOUNT_RATE / 100) ** (year + 1)
        if payback_years is None and savings > 0 and cumulative + savings >= net_cost:
            payback_years = year + (net_cost - cumulative) / savings
        cumulative += savings

    lifetime_production = annual_production * lifetime_years
    return {
        "systemCost": round(system_cost, 2),
        "incentives": round(incentives, 2),
        "netCost": round(net_cost, 2),
        "utilityRate": utility_rate,
        "annualSavings": round(first_year_savings, 2),
        "lifetimeSavings": round(lifetime_savings, 2),
        "paybackPeriod": round(payback_years, 1) if payback_years is not None else None,
        "netPresentValue": round(present_value - net_cost, 2),
        "roi": round((lifetime_savings - net_cost) / net_cost * 100, 1) if net_cost else 0.0,
        "lcoe": round(net_cost / lifetime_production, 4) if lifetime_production else 0.0,
    }


def irradiance_from_tmy(tmy: dict[str, Any]) -> list[MonthlyIrradiance]:
    """Convert WeatherClient.get_tmy() monthly averages into calculator input."""
    return [
        MonthlyIrradiance(
            month=int(m["month"]),
            ghi=float(m["globalHorizontalIrradiance"]),
            dni=float(m["directNormalIrradiance"]),
            dhi=float(m["diffuseHorizontalIrradiance"]),
            temperature=float(m["ambientTemperature"]),
            wind_speed=float(m.get("windSpeed") or 1.0),
        )
        for m in tmy.get("monthlyAverages", [])
    ]


class SolarCalculationEngine:
    """Estimates monthly and annual AC production for a PV system."""

    def __init__(self, weather_client: WeatherClient | None = None) -> None:
        self._weather = weather_client

    @traced("solar.calculate")
    def calculate(
        self,
        location: Location,
        system: SystemSpec,
        irradiance: list[MonthlyIrradiance],
        utility_rate: float | None = None,
        data_source: str = "provided",
    ) -> dict[str, Any]:
        validate_inputs(location, system, irradiance)
        losses = {**DEFAULT_LOSSES, **system.losses}
        derate = system_derate(losses)
        inverter = system.inverter_efficiency / 100

        monthly = []
        reference_yield = 0.0
        for entry in irradiance:
            days = DAYS_IN_MONTH[entry.month - 1]
            elevation, sun_azimuth = noon_sun_position(location.latitude, entry.month)
            cos_inc = incidence_cosine(system.tilt, system.azimuth, elevation, sun_azimuth)
            poa = plane_of_array(entry.ghi, entry.dni, entry.dhi, system.tilt, cos_inc)
            t_cell = cell_temperature(entry.temperature, poa)
            t_derate = temperature_derate(t_cell, system.panel_type)
            dc = poa * system.capacity_kw * t_derate * days
            ac = dc * derate * inverter
            reference_yield += poa * days
            monthly.append({
                "month": entry.month,
                "days": days,
                "poaIrradiance": round(poa, 3),
                "cellTemperature": round(t_cell, 1),
                "temperatureDerate": round(t_derate, 4),
                "dcEnergy": round(dc, 1),
                "acEnergy": round(ac, 1),
            })

        annual = sum(m["acEnergy"] for m in monthly)
        specific_yield = annual / system.capacity_kw
        add_span_attributes(count=len(monthly))
        return {
            "location": {"latitude": location.latitude, "longitude": location.longitude},
            "system": {
                "capacity": system.capacity_kw,
                "panelType": system.panel_type,
                "tilt": system.tilt,
                "azimuth": system.azimuth,
                "inverterEfficiency": system.inverter_efficiency,
                "panelEfficiency": system.panel_efficiency,
                "losses": losses,
            },
            "monthlyProduction": monthly,
            "annualProduction": round(annual, 1),
            "systemDerate": round(derate, 4),
            "capacityFactor": round(annual / (system.capacity_kw * HOURS_PER_YEAR) * 100, 2),
            "specificYield": round(specific_yield, 1),
            "performanceRatio": round(specific_yield / reference_yield, 3) if reference_yield else 0.0,
            "co2Offset": round(annual * CO2_KG_PER_KWH, 1),
            "financials": financial_summary(
                annual, system.capacity_kw, utility_rate if utility_rate is not None else DEFAULT_UTILITY_RATE
            ),
            "dataSource": data_source,
        }

    async def calculate_production(
        self,
        location: Location,
        system: SystemSpec,
        irradiance: list[MonthlyIrradiance] | None = None,
        utility_rate: float | None = None,
    ) -> dict[str, Any]:
        """Like calculate(), fetching TMY irradiance when none is supplied."""
        if irradiance:
            return self.calculate(location, system, irradiance, utility_rate)
        if self._weather is None:
            raise ValidationException("Irradiance data is required", field="irradiance")
        tmy = await self._weather.get_tmy(location.latitude, location.longitude)
        logger.info("Using TMY irradiance for %.4f,%.4f", location.latitude, location.longitude)
        return self.calculate(location, system, irradiance_from_tmy(tmy), utility_rate, data_source="nrel-tmy")
