"""Tests for auth endpoints: register, login, current user and the user directory."""

from httpx import AsyncClient

TEST_PASSWORD = "SolarPanel123!"


def _register_body(**overrides) -> dict:
    body = {
        "email": "owner@example.com",
        "password": TEST_PASSWORD,
        "full_name": "Olive Owner",
        "role": "homeowner",
        "address": {"street": "1 Sun St", "city": "Fresno", "state": "CA", "zip_code": "93701"},
    }
    body.update(overrides)
    return body


async def test_register_then_login(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json=_register_body())
    assert response.status_code == 201
    user = response.json()
    assert user["email"] == "owner@example.com"
    assert user["role"] == "homeowner"
    assert user["status"] == "active"
    assert user["address"]["city"] == "Fresno"
    assert "password" not in user and "password_hash" not in user

    login = await client.post(
        "/api/v1/auth/login", json={"email": "owner@example.com", "password": TEST_PASSWORD}
    )
    assert login.status_code == 200
    token = login.json()
    assert token["token_type"] == "bearer"

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]


async def test_register_duplicate_email_returns_409(client: AsyncClient) -> None:
    assert (await client.post("/api/v1/auth/register", json=_register_body())).status_code == 201
    response = await client.post("/api/v1/auth/register", json=_register_body(full_name="Other"))
    assert response.status_code == 409
    assert response.json()["error"] == "USER_ALREADY_EXISTS"


async def test_register_admin_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json=_register_body(role="admin"))
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "role"}


async def test_register_unknown_role_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json=_register_body(role="wizard"))
    assert response.status_code == 400


async def test_register_short_password_returns_422(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/register", json=_register_body(password="short"))
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_login_missing_body_returns_422(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/login", json={})
    assert response.status_code == 422


async def test_login_wrong_password_returns_401(client: AsyncClient, make_user) -> None:
    user, _ = await make_user("installer")
    response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "WrongPass999"})
    assert response.status_code == 401
    assert response.json() == {"error": "HTTP_ERROR", "message": "Invalid email or password"}
    unknown = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "x"})
    assert unknown.status_code == 401


async def test_me_requires_token(client: AsyncClient) -> None:
    assert (await client.get("/api/v1/auth/me")).status_code == 401
    bad = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401
    assert bad.headers["WWW-Authenticate"] == "Bearer"


async def test_update_me(client: AsyncClient, make_user) -> None:
    _, headers = await make_user("installer")
    response = await client.patch(
        "/api/v1/auth/me",
        json={"company_name": "Bright Roofs", "bio": "<b>NABCEP</b> certified"},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "Bright Roofs"
    assert "<b>" not in data["bio"]
    assert "NABCEP" in data["bio"]


async def test_update_me_requires_a_field(client: AsyncClient, make_user) -> None:
    _, headers = await make_user("homeowner")
    response = await client.patch("/api/v1/auth/me", json={}, headers=headers)
    assert response.status_code == 400


async def test_user_directory_hides_contact_details(client: AsyncClient, make_user) -> None:
    installer, _ = await make_user("installer", company_name="SunCo")
    _, headers = await make_user("homeowner")
    response = await client.get("/api/v1/users", params={"role": "installer"}, headers=headers)
    assert response.status_code == 200
    profiles = response.json()
    assert [p["id"] for p in profiles] == [installer.id]
    assert "email" not in profiles[0]

    profile = await client.get(f"/api/v1/users/{installer.id}", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["company_name"] == "SunCo"

    missing = await client.get("/api/v1/users/nope", headers=headers)
    assert missing.status_code == 404


async def test_auth_rate_limit(client: AsyncClient) -> None:
    statuses = [
        (await client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "x"})).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429
