"""User application service: registration, profile updates and directory lookups."""

from __future__ import annotations

from typing import Any

from solarify.application.dtos.user import Address, UserResult
from solarify.application.interfaces.repositories import IUserRepository
from solarify.domain.enums import UserRole, UserStatus
from solarify.domain.exceptions import (
    ResourceNotFoundException,
    UserAlreadyExistsException,
    ValidationException,
)
from solarify.shared.utils.sanitization import sanitize_text

MIN_PASSWORD_LENGTH = 8

_PROFILE_FIELDS = frozenset({"full_name", "company_name", "phone", "address", "bio"})


class UserService:
    """Register users and manage profiles."""

    def __init__(self, user_repo: IUserRepository) -> None:
        self._user_repo = user_repo

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str,
        company_name: str | None = None,
        phone: str | None = None,
        address: Address | None = None,
    ) -> UserResult:
        """Create an account. Admin accounts cannot be self-registered."""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationException(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )
        if role not in UserRole.values():
            raise ValidationException(f"Unknown role: {role}", field="role")
        if role == UserRole.ADMIN.value:
            raise ValidationException("Admin accounts cannot be registered", field="role")
        if await self._user_repo.get_by_email(email):
            raise UserAlreadyExistsException()
        return await self._user_repo.create_user(
            email=email,
            password=password,
            full_name=sanitize_text(full_name) or "",
            role=role,
            company_name=sanitize_text(company_name),
            phone=phone,
            address=address,
        )

    async def get_user(self, user_id: str) -> UserResult:
        """Return user or raise ResourceNotFoundException."""
        user = await self._user_repo.get_by_id(user_id)
        if not user:
            raise ResourceNotFoundException("user", user_id)
        return user

    async def get_public_profile(self, user_id: str) -> UserResult:
        """Return an active user's profile (suspended accounts are hidden)."""
        user = await self.get_user(user_id)
        if user.status == UserStatus.SUSPENDED.value:
            raise ResourceNotFoundException("user", user_id)
        return user

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> UserResult:
        """Update profile fields (email, role and status are not editable here)."""
        unknown = set(fields) - _PROFILE_FIELDS
        if unknown:
            raise ValidationException(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
            )
        if not fields:
            raise ValidationException("At least one profile field is required")
        cleaned = {
            key: sanitize_text(value) if key in ("full_name", "company_name", "bio") else value
            for key, value in fields.items()
        }
        updated = await self._user_repo.update_profile(user_id, cleaned)
        if not updated:
            raise ResourceNotFoundException("user", user_id)
        return updated

    async def list_by_role(self, role: str, skip: int = 0, limit: int = 100) -> list[UserResult]:
        """Directory listing, e.g. installers a homeowner can invite to an RFQ."""
        if role not in UserRole.values() or role == UserRole.ADMIN.value:
            raise ValidationException(f"Cannot list users with role: {role}", field="role")
        return await self._user_repo.list_by_role(role, skip=skip, limit=limit)
