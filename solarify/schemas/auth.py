"""Auth API schemas."""

from pydantic import BaseModel, EmailStr, Field

from solarify.schemas.user import AddressSchema


class RegisterRequest(BaseModel):
    """Public sign-up. Admin accounts cannot be registered."""

    email: EmailStr
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    full_name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., description="homeowner, installer or supplier")
    company_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=32)
    address: AddressSchema | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
