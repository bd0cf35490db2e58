"""User API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AddressSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"


class UserUpdate(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    company_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=32)
    bio: str | None = Field(default=None, max_length=2000)
    address: AddressSchema | None = None


class UserResponse(BaseModel):
    """Own account view (includes contact details)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    full_name: str
    role: str
    status: str
    company_name: str | None = None
    phone: str | None = None
    address: AddressSchema | None = None
    bio: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PublicProfileResponse(BaseModel):
    """Profile shown to other users (no email or phone)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    role: str
    company_name: str | None = None
    bio: str | None = None
    address: AddressSchema | None = None
    created_at: datetime | None = None
