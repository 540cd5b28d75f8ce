"""Integration tests for the Auth API."""

from httpx import AsyncClient

REGISTRATION = {
    "name": "Carla",
    "username": "carla",
    "password": "segredo123",
    "confirm_password": "segredo123",
}


class TestAuthAPI:
    """Integration tests for the Auth API endpoints."""

    async def test_register(self, client: AsyncClient):
        """Test registering a new user."""
        response = await client.post("/api/auth/register", json=REGISTRATION)
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["username"] == "carla"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]

    async def test_register_duplicate_username(self, client: AsyncClient, sample_user):
        """Test usernames are unique regardless of case."""
        response = await client.post(
            "/api/auth/register",
            json={**REGISTRATION, "username": "ANA"},
        )
        assert response.status_code == 400

    async def test_register_password_mismatch(self, client: AsyncClient):
        """Test mismatching confirmation is rejected."""
        response = await client.post(
            "/api/auth/register",
            json={**REGISTRATION, "confirm_password": "outra"},
        )
        assert response.status_code == 422

    async def test_login_and_me_with_cookie(self, client: AsyncClient, sample_user):
        """Test login sets a session cookie that authenticates later calls."""
        response = await client.post(
            "/api/auth/login",
            json={"username": "ana", "password": "segredo123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["id"] == sample_user.id

        response = await client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["username"] == "ana"

    async def test_login_with_bearer_token(self, client: AsyncClient, sample_user):
        """Test the returned token works as a bearer token."""
        response = await client.post(
            "/api/auth/login",
            json={"username": "ana", "password": "segredo123"},
        )
        token = response.json()["access_token"]
        client.cookies.clear()

        response = await client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, sample_user):
        """Test invalid credentials."""
        response = await client.post(
            "/api/auth/login",
            json={"username": "ana", "password": "errada"},
        )
        assert response.status_code == 401

    async def test_me_unauthenticated(self, client: AsyncClient):
        """Test /me without a session."""
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_me_invalid_token(self, client: AsyncClient):
        """Test /me with a bad token."""
        response = await client.get(
            "/api/auth/me",
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401

    async def test_logout_clears_session(self, client: AsyncClient, sample_user):
        """Test logging out ends the cookie session."""
        await client.post(
            "/api/auth/login",
            json={"username": "ana", "password": "segredo123"},
        )
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200

        response = await client.get("/api/auth/me")
        assert response.status_code == 401
