"""Solar production calculator and weather schemas.

Request bodies use the camelCase names the calculator pages send.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solarify.application.dtos.solar import Location, MonthlyIrradiance, SystemSpec
from solarify.domain.enums import PanelType


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LocationSchema(_CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_dto(self) -> Location:
        return Location(self.latitude, self.longitude)


class SystemSchema(_CamelModel):
    capacity: float = Field(..., ge=1, le=1000, description="DC capacity in kW")
    panel_type: PanelType = Field(default=PanelType.MONOCRYSTALLINE, alias="panelType")
    tilt: float = Field(default=30.0, ge=0, le=90)
    azimuth: float = Field(default=180.0, ge=0, le=360)
    inverter_efficiency: float = Field(default=96.0, ge=80, le=100, alias="inverterEfficiency")
    panel_efficiency: float = Field(default=20.0, ge=10, le=25, alias="panelEfficiency")
    losses: dict[str, float] = Field(default_factory=dict)

    def to_dto(self) -> SystemSpec:
        return SystemSpec(
            capacity_kw=self.capacity,
            panel_type=self.panel_type.value,
            tilt=self.tilt,
            azimuth=self.azimuth,
            inverter_efficiency=self.inverter_efficiency,
            panel_efficiency=self.panel_efficiency,
            losses=dict(self.losses),
        )


class MonthlyIrradianceSchema(_CamelModel):
    month: int = Field(..., ge=1, le=12)
    ghi: float = Field(..., ge=0, le=12)
    dni: float = Field(..., ge=0)
    dhi: float = Field(..., ge=0)
    temperature: float = Field(default=20.0)
    wind_speed: float = Field(default=1.0, ge=0, alias="windSpeed")

    def to_dto(self) -> MonthlyIrradiance:
        return MonthlyIrradiance(
            self.month, self.ghi, self.dni, self.dhi, self.temperature, self.wind_speed
        )


class SolarCalculationRequest(_CamelModel):
    location: LocationSchema
    system: SystemSchema
    irradiance: list[MonthlyIrradianceSchema] | None = Field(
        default=None, description="12 months; fetched from NREL TMY when omitted"
    )
    utility_rate: float | None = Field(default=None, gt=0, alias="utilityRate")

    @field_validator("irradiance")
    @classmethod
    def twelve_months(cls, value: list[MonthlyIrradianceSchema] | None):
        if value is not None and [m.month for m in value] != list(range(1, 13)):
            raise ValueError("irradiance must list months 1 through 12 in order")
        return value
