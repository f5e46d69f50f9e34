"""Tests for authentication endpoints: register, operator sign-up, login, me, refresh."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.auth.jwt import decode_token
from safari_connector.models.operator import Operator
from safari_connector.models.user import User
from tests.factories import headers_for

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# POST /api/v1/auth/register
# ---------------------------------------------------------------------------


class TestRegister:
    """Tests for traveller registration."""

    async def test_register_success(self, client: AsyncClient) -> None:
        unique = uuid.uuid4().hex[:8]
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": f"newuser-{unique}@test.com",
                "password": "securepass123",
                "name": "New User",
                "phone": "+255700000000",
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["user"]["email"] == f"newuser-{unique}@test.com"
        assert data["user"]["role"] == "traveller"
        assert data["user"]["phone"] == "+255700000000"
        assert data["user"]["is_active"] is True
        assert data["tokens"]["token_type"] == "bearer"
        assert decode_token(data["tokens"]["access_token"])["role"] == "traveller"

    async def test_register_normalises_email_case(self, client: AsyncClient) -> None:
        unique = uuid.uuid4().hex[:8]
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": f"Mixed-{unique}@Test.com", "password": "securepass123", "name": "Mixed"},
        )
        assert response.status_code == 201
        assert response.json()["user"]["email"] == f"mixed-{unique}@test.com"

    async def test_register_duplicate_email(self, client: AsyncClient) -> None:
        unique = uuid.uuid4().hex[:8]
        payload = {"email": f"dup-{unique}@test.com", "password": "securepass123", "name": "First"}

        resp1 = await client.post("/api/v1/auth/register", json=payload)
        assert resp1.status_code == 201

        resp2 = await client.post("/api/v1/auth/register", json=payload)
        assert resp2.status_code == 409
        assert "already registered" in resp2.json()["detail"].lower()

    async def test_register_short_password(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "short@test.com", "password": "short", "name": "Short Pass"},
        )
        assert response.status_code == 422

    async def test_register_invalid_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "password": "securepass123", "name": "Bad Email"},
        )
        assert response.status_code == 422

    async def test_register_password_over_bcrypt_limit(self, client: AsyncClient) -> None:
        # 40 characters but 80 bytes in UTF-8
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "longpass@test.com", "password": "ü" * 40, "name": "Long Pass"},
        )
        assert response.status_code == 422


class TestRegisterOperator:
    """Operator sign-up creates a pending company profile."""

    async def test_operator_profile_starts_pending(self, client: AsyncClient, db_session: AsyncSession) -> None:
        unique = uuid.uuid4().hex[:8]
        response = await client.post(
            "/api/v1/auth/register/operator",
            json={
                "email": f"ops-{unique}@test.com",
                "password": "securepass123",
                "name": "Ops Owner",
                "company_name": "Ngorongoro Expeditions",
                "country": "Tanzania",
                "location": "Karatu",
            },
        )
        assert response.status_code == 201, response.text
        user_id = uuid.UUID(response.json()["user"]["id"])
        assert response.json()["user"]["role"] == "operator"

        result = await db_session.execute(select(Operator).where(Operator.user_id == user_id))
        operator = result.scalar_one()
        assert operator.status == "pending"
        assert operator.company_name == "Ngorongoro Expeditions"
        assert operator.contact_email == f"ops-{unique}@test.com"

    async def test_operator_needs_company_name(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/register/operator",
            json={"email": "nocompany@test.com", "password": "securepass123", "name": "No Company"},
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# POST /api/v1/auth/login
# ---------------------------------------------------------------------------


class TestLogin:
    """Tests for email/password login."""

    async def test_login_success(self, client: AsyncClient) -> None:
        unique = uuid.uuid4().hex[:8]
        email = f"login-{unique}@test.com"
        password = "securepass123"

        await client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, "name": "Login User"},
        )

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": email.upper(), "password": password},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == email
        assert data["tokens"]["access_token"]
        assert data["tokens"]["refresh_token"]

    async def test_login_wrong_password(self, client: AsyncClient, traveller: User) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": traveller.email, "password": "wrongpassword"},
        )
        assert response.status_code == 401
        assert "invalid" in response.json()["detail"].lower()

    async def test_login_nonexistent_user(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@nowhere.com", "password": "irrelevant1"},
        )
        assert response.status_code == 401

    async def test_login_account_without_password(self, client: AsyncClient, db_session: AsyncSession) -> None:
        passwordless = User(email="guest-only@test.com", hashed_password=None, name="Guest Only", role="traveller")
        db_session.add(passwordless)
        await db_session.flush()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "guest-only@test.com", "password": "anything123"},
        )
        assert response.status_code == 401


# ---------------------------------------------------------------------------
# GET /api/v1/auth/me
# ---------------------------------------------------------------------------


class TestMe:
    """Tests for the authenticated user profile endpoint."""

    async def test_me_authenticated(self, client: AsyncClient, finance_user: User) -> None:
        response = await client.get("/api/v1/auth/me", headers=headers_for(finance_user))
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == finance_user.email
        assert data["role"] == "finance"

    async def test_me_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")
        # HTTPBearer's status for a missing header differs across FastAPI versions
        assert response.status_code in (401, 403)


# ---------------------------------------------------------------------------
# POST /api/v1/auth/refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    """Tests for token refresh."""

    async def test_refresh_success(self, client: AsyncClient) -> None:
        unique = uuid.uuid4().hex[:8]
        reg_resp = await client.post(
            "/api/v1/auth/register",
            json={"email": f"refresh-{unique}@test.com", "password": "securepass123", "name": "Refresh User"},
        )
        assert reg_resp.status_code == 201
        refresh_token = reg_resp.json()["tokens"]["refresh_token"]

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert decode_token(data["access_token"])["role"] == "traveller"

    async def test_refresh_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "totally.invalid.token"})
        assert response.status_code == 401

    async def test_refresh_with_access_token_fails(self, client: AsyncClient, traveller: User) -> None:
        access_token = headers_for(traveller)["Authorization"].removeprefix("Bearer ")
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
        assert response.status_code == 401
