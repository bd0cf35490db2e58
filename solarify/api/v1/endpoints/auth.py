"""Auth API: register, login and the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from solarify.api.v1.dependencies import (
    AuthSecurity,
    CurrentUser,
    get_auth_security,
    get_user_repo,
    get_user_service,
)
from solarify.application.dtos.user import Address
from solarify.application.services.user_service import UserService
from solarify.core.limiter import limit_auth, limit_writes
from solarify.infrastructure.firebase.repositories import FirestoreUserRepository
from solarify.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from solarify.schemas.user import UserResponse, UserUpdate

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
@limit_auth
async def register(
    request: Request,
    body: RegisterRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Create a homeowner, installer or supplier account."""
    user = await user_service.register(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        company_name=body.company_name,
        phone=body.phone,
        address=Address(**body.address.model_dump()) if body.address else None,
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
@limit_auth
async def login(
    request: Request,
    body: LoginRequest,
    user_repo: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
    security: Annotated[AuthSecurity, Depends(get_auth_security)],
):
    """Exchange email and password for a bearer token.

    Unknown email and wrong password give the same 401.
    """
    user = await user_repo.authenticate(body.email, body.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=security.create_access_token(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
@limit_writes
async def update_me(
    request: Request,
    body: UserUpdate,
    current_user: CurrentUser,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Update profile fields; email, role and status are not editable."""
    fields = body.model_dump(exclude_unset=True)
    if fields.get("address") is not None:
        fields["address"] = Address(**fields["address"])
    user = await user_service.update_profile(current_user.id, fields)
    return UserResponse.model_validate(user)
