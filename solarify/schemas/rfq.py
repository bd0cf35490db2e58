"""RFQ API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from solarify.core.constants import RFQ_MAX_INSTALLERS, RFQ_MIN_INSTALLERS
from solarify.schemas.user import AddressSchema


class RFQCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=32)
    address: AddressSchema
    estimated_system_size_kw: float = Field(..., ge=1, le=1000)
    monthly_consumption_kwh: float = Field(..., ge=0, le=50000)
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    additional_notes: str | None = Field(default=None, max_length=5000)
    include_monitoring: bool = False
    include_battery_storage: bool = False
    selected_installer_ids: list[str] = Field(
        ..., min_length=RFQ_MIN_INSTALLERS, max_length=RFQ_MAX_INSTALLERS
    )

    @model_validator(mode="after")
    def budget_range(self) -> "RFQCreateRequest":
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValueError("budget_min must not exceed budget_max")
        return self


class RFQResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    homeowner_id: str
    name: str
    email: str
    phone: str | None = None
    address: AddressSchema
    estimated_system_size_kw: float
    monthly_consumption_kwh: float
    budget_min: float | None = None
    budget_max: float | None = None
    additional_notes: str | None = None
    include_monitoring: bool
    include_battery_storage: bool
    selected_installer_ids: list[str]
    declined_installer_ids: list[str]
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
