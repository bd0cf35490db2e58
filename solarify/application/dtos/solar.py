"""DTOs for the solar production calculator."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SystemSpec:
    """PV system description. Efficiencies and losses are percentages."""

    capacity_kw: float
    panel_type: str = "monocrystalline"
    tilt: float = 30.0
    azimuth: float = 180.0
    inverter_efficiency: float = 96.0
    panel_efficiency: float = 20.0
    losses: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthlyIrradiance:
    """Monthly average irradiance in kWh/m²/day and ambient temperature in °C."""

    month: int
    ghi: float
    dni: float
    dhi: float
    temperature: float
    wind_speed: float = 1.0
