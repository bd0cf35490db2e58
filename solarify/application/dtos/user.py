"""DTOs for user use cases (no password fields)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Address:
    """Postal address stored denormalized on users and RFQs."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"


@dataclass(frozen=True)
class UserResult:
    """User read-model (result of get_by_id, create_user, etc.)."""

    id: str
    email: str
    full_name: str
    role: str
    status: str
    company_name: str | None = None
    phone: str | None = None
    address: Address | None = None
    bio: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Company name for businesses, else the person's name."""
        return self.company_name or self.full_name
