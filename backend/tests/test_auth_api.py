"""
Test authentication API endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestAuthEndpoints:
    """Test learner registration, login and profile endpoints."""

    async def test_register_success(self, async_client: AsyncClient):
        """Test successful learner registration."""
        response = await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15551234",
                "name": "New Learner",
                "password": "securepass123",
                "email": "learner@example.com"
            }
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["phone_number"] == "+15551234"
        assert data["user"]["total_calls"] == 0
        assert data["user"]["level"] == "beginner"
        assert "password_hash" not in data["user"]

    async def test_register_duplicate_phone(self, async_client: AsyncClient):
        """Test registration with a duplicate phone number fails."""
        await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15554321",
                "name": "First Learner",
                "password": "pass123"
            }
        )

        response = await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15554321",
                "name": "Second Learner",
                "password": "pass456"
            }
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists with this phone number"

    async def test_register_missing_fields(self, async_client: AsyncClient):
        """Test registration with missing fields fails."""
        response = await async_client.post(
            "/api/v1/auth/register",
            json={"phone_number": "+15550000"}
        )
        assert response.status_code == 422

    async def test_register_invalid_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15550003",
                "name": "Bad Email",
                "password": "pass123",
                "email": "not-an-email"
            }
        )
        assert response.status_code == 422

    async def test_login_success(self, async_client: AsyncClient):
        """Test successful learner login."""
        await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15557777",
                "name": "Login Test",
                "password": "loginpass123"
            }
        )

        response = await async_client.post(
            "/api/v1/auth/login",
            json={
                "phone_number": "+15557777",
                "password": "loginpass123"
            }
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["user"]["name"] == "Login Test"

    async def test_login_wrong_password(self, async_client: AsyncClient):
        """Test login with wrong password fails."""
        await async_client.post(
            "/api/v1/auth/register",
            json={
                "phone_number": "+15558888",
                "name": "Wrong Pass Test",
                "password": "correctpass"
            }
        )

        response = await async_client.post(
            "/api/v1/auth/login",
            json={
                "phone_number": "+15558888",
                "password": "wrongpass"
            }
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid password"

    async def test_login_unknown_phone(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={
                "phone_number": "+15559999",
                "password": "whatever"
            }
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "User not found"

    async def test_get_me_authenticated(self, async_client: AsyncClient, auth_headers: dict):
        """Test getting the learner profile when authenticated."""
        response = await async_client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["phone_number"] == "+15550001"
        assert data["total_call_duration"] == 0

    async def test_get_me_unauthenticated(self, async_client: AsyncClient):
        """Test getting the profile without auth fails."""
        response = await async_client.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_get_me_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401


@pytest.mark.asyncio
class TestHealth:
    """Health check endpoint."""

    async def test_health_check(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"
