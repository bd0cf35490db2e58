"""Pytest configuration and fixtures for solarify.

Tests run against the in-memory document store (DATABASE_BACKEND=memory),
with Redis and telemetry off. Environment is set before solarify.main is
imported because the module builds the app at import time.
"""

import os

os.environ["DATABASE_BACKEND"] = "memory"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ.pop("NREL_API_KEY", None)
os.environ.pop("OPENWEATHER_API_KEY", None)

from collections.abc import Awaitable, Callable  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from solarify.application.dtos.user import UserResult  # noqa: E402
from solarify.core.config import get_settings  # noqa: E402
from solarify.core.limiter import limiter  # noqa: E402
from solarify.infrastructure.firebase.client import (  # noqa: E402
    get_firestore_client,
    get_realtime_db,
)
from solarify.infrastructure.firebase.repositories import FirestoreUserRepository  # noqa: E402
from solarify.infrastructure.security.jwt import create_access_token  # noqa: E402
from solarify.main import app  # noqa: E402

TEST_PASSWORD = "SolarPanel123!"

UserFactory = Callable[..., Awaitable[tuple[UserResult, dict[str, str]]]]


@pytest.fixture(autouse=True)
def _isolated_state():
    """Fresh document stores, rate limits and request samples for every test."""
    get_settings.cache_clear()
    get_firestore_client().clear()
    get_realtime_db().clear()
    limiter.reset()
    app.state.performance_monitor.clear()
    yield


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers_for(user: UserResult) -> dict[str, str]:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user() -> UserFactory:
    """Create a user directly in the store; returns (user, auth headers).

    Admins cannot self-register, so every role goes through the repository.
    """
    counter = {"n": 0}

    async def _make(
        role: str,
        full_name: str | None = None,
        company_name: str | None = None,
    ) -> tuple[UserResult, dict[str, str]]:
        counter["n"] += 1
        repo = FirestoreUserRepository(get_firestore_client())
        user = await repo.create_user(
            email=f"{role}{counter['n']}@example.com",
            password=TEST_PASSWORD,
            full_name=full_name or f"Test {role.title()} {counter['n']}",
            role=role,
            company_name=company_name,
        )
        return user, auth_headers_for(user)

    return _make
