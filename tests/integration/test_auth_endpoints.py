"""Integration tests for auth endpoints."""
import pytest


async def register(client, email="newuser@example.com", password="securepassword123"):
    return await client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": "New User"},
    )


@pytest.mark.asyncio
class TestAuthRegister:
    """Tests for POST /auth/register endpoint."""

    async def test_register_success(self, app_client):
        response = await register(app_client)

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["role"] == "standard"
        assert "id" in data
        assert "hashed_password" not in data

    async def test_register_duplicate_email(self, app_client):
        await register(app_client, email="duplicate@example.com")

        response = await register(app_client, email="Duplicate@example.com")

        assert response.status_code == 409
        assert "already registered" in response.json()["detail"].lower()

    async def test_register_invalid_email(self, app_client):
        response = await register(app_client, email="not-an-email")

        assert response.status_code == 422

    async def test_register_short_password(self, app_client):
        response = await register(app_client, password="123")

        assert response.status_code == 422


@pytest.mark.asyncio
class TestAuthLogin:
    """Tests for POST /auth/login endpoint."""

    async def test_login_success(self, app_client):
        await register(app_client)

        response = await app_client.post(
            "/auth/login",
            json={"email": "newuser@example.com", "password": "securepassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["last_login"] is not None

    async def test_login_wrong_password(self, app_client):
        await register(app_client)

        response = await app_client.post(
            "/auth/login",
            json={"email": "newuser@example.com", "password": "wrongpassword"},
        )

        assert response.status_code == 401

    async def test_lockout_after_repeated_failures(self, app_client):
        await register(app_client)

        for _ in range(5):
            await app_client.post(
                "/auth/login",
                json={"email": "newuser@example.com", "password": "wrongpassword"},
            )

        response = await app_client.post(
            "/auth/login",
            json={"email": "newuser@example.com", "password": "securepassword123"},
        )

        assert response.status_code == 401
        assert "locked" in response.json()["detail"].lower()


@pytest.mark.asyncio
class TestAuthMe:
    """Tests for the current-user endpoints."""

    async def test_me(self, app_client, auth_headers):
        response = await app_client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "worker@example.com"

    async def test_me_without_token(self, app_client):
        response = await app_client.get("/auth/me")

        assert response.status_code == 401

    async def test_me_with_bad_token(self, app_client):
        response = await app_client.get(
            "/auth/me", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 401

    async def test_update_profile(self, app_client, auth_headers):
        response = await app_client.put(
            "/auth/profile", json={"name": "Renamed"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    async def test_change_password(self, app_client, auth_headers):
        response = await app_client.put(
            "/auth/password",
            json={"current_password": "password123", "new_password": "newpassword456"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        login = await app_client.post(
            "/auth/login",
            json={"email": "worker@example.com", "password": "newpassword456"},
        )
        assert login.status_code == 200

    async def test_change_password_wrong_current(self, app_client, auth_headers):
        response = await app_client.put(
            "/auth/password",
            json={"current_password": "wrongpass", "new_password": "newpassword456"},
            headers=auth_headers,
        )

        assert response.status_code == 400
