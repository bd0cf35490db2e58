"""DTOs for RFQ use cases."""

from dataclasses import dataclass
from datetime import datetime

from solarify.application.dtos.user import Address


@dataclass(frozen=True)
class RFQCreate:
    """Validated RFQ payload handed to the repository."""

    homeowner_id: str
    name: str
    email: str
    phone: str | None
    address: Address
    estimated_system_size_kw: float
    monthly_consumption_kwh: float
    selected_installer_ids: tuple[str, ...]
    budget_min: float | None = None
    budget_max: float | None = None
    additional_notes: str | None = None
    include_monitoring: bool = False
    include_battery_storage: bool = False


@dataclass(frozen=True)
class RFQResult:
    """RFQ read-model."""

    id: str
    homeowner_id: str
    name: str
    email: str
    phone: str | None
    address: Address
    estimated_system_size_kw: float
    monthly_consumption_kwh: float
    selected_installer_ids: tuple[str, ...]
    declined_installer_ids: tuple[str, ...]
    status: str
    budget_min: float | None = None
    budget_max: float | None = None
    additional_notes: str | None = None
    include_monitoring: bool = False
    include_battery_storage: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def budget_sort_value(self) -> float | None:
        """Budget used for ordering: the upper bound, falling back to the lower."""
        if self.budget_max is not None:
            return self.budget_max
        return self.budget_min
