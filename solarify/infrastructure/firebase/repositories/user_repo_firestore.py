"""Users collection. Implements IUserRepository.

Emails are stored lower-cased and trimmed so lookups are case-insensitive.
bcrypt runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from functools import lru_cache
from typing import Any

from solarify.application.dtos.user import Address, UserResult
from solarify.domain.enums import UserStatus
from solarify.infrastructure.firebase._rest_client import FirestoreRESTClient
from solarify.infrastructure.firebase.collections import COLLECTION_USERS
from solarify.infrastructure.security.password import get_password_hash, verify_password
from solarify.shared.utils.datetime import utc_now
from solarify.shared.utils.generators import generate_cuid


@lru_cache(maxsize=1)
def _decoy_hash() -> str:
    # Unknown emails still pay for one bcrypt check, so response time does not reveal them
    return get_password_hash("decoy-password-never-matches")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def address_from_dict(data: dict | None) -> Address | None:
    if not data:
        return None
    return Address(
        street=data.get("street", ""),
        city=data.get("city", ""),
        state=data.get("state", ""),
        zip_code=data.get("zip_code", ""),
        country=data.get("country", "US"),
    )


def _user_from_doc(doc_id: str, data: dict) -> UserResult:
    return UserResult(
        id=doc_id,
        email=data.get("email", ""),
        full_name=data.get("full_name", ""),
        role=data.get("role", ""),
        status=data.get("status", UserStatus.ACTIVE.value),
        company_name=data.get("company_name"),
        phone=data.get("phone"),
        address=address_from_dict(data.get("address")),
        bio=data.get("bio"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


class FirestoreUserRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._users = client.collection(COLLECTION_USERS)

    async def _raw_by_email(self, email: str) -> tuple[str, dict] | None:
        async for snapshot in self._users.where("email", "==", _normalize_email(email)).limit(1).stream():
            return snapshot.id, snapshot.to_dict()
        return None

    async def get_by_id(self, user_id: str) -> UserResult | None:
        snapshot = await self._users.document(user_id).get()
        return _user_from_doc(snapshot.id, snapshot.to_dict()) if snapshot else None

    async def get_by_email(self, email: str) -> UserResult | None:
        found = await self._raw_by_email(email)
        return _user_from_doc(*found) if found else None

    async def authenticate(self, email: str, password: str) -> UserResult | None:
        """User for a matching email and password; None otherwise or when suspended."""
        found = await self._raw_by_email(email)
        if found is None:
            await asyncio.to_thread(verify_password, password, await asyncio.to_thread(_decoy_hash))
            return None
        user_id, data = found
        if not await asyncio.to_thread(verify_password, password, data.get("hashed_password", "")):
            return None
        if data.get("status") == UserStatus.SUSPENDED.value:
            return None
        return _user_from_doc(user_id, data)

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str,
        company_name: str | None = None,
        phone: str | None = None,
        address: Address | None = None,
    ) -> UserResult:
        user_id = generate_cuid()
        now = utc_now()
        data: dict[str, Any] = {
            "email": _normalize_email(email),
            "hashed_password": await asyncio.to_thread(get_password_hash, password),
            "full_name": full_name,
            "role": role,
            "status": UserStatus.ACTIVE.value,
            "company_name": company_name,
            "phone": phone,
            "address": asdict(address) if address else None,
            "bio": None,
            "created_at": now,
            "updated_at": now,
        }
        await self._users.create(user_id, data)
        return _user_from_doc(user_id, data)

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> UserResult | None:
        """Merge the given profile fields; None when the user does not exist."""
        ref = self._users.document(user_id)
        if await ref.get() is None:
            return None
        changes = {**fields, "updated_at": utc_now()}
        if isinstance(changes.get("address"), Address):
            changes["address"] = asdict(changes["address"])
        await ref.update(changes)
        return await self.get_by_id(user_id)

    async def list_by_role(self, role: str, skip: int = 0, limit: int = 100) -> list[UserResult]:
        """Active users with the role, by name (installer and supplier directories)."""
        query = (
            self._users.where("role", "==", role)
            .where("status", "==", UserStatus.ACTIVE.value)
            .order_by("full_name")
            .offset(skip)
            .limit(limit)
        )
        return [_user_from_doc(s.id, s.to_dict()) async for s in query.stream()]
