"""Integration tests for authentication API endpoints."""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from tests.fakes import FakeSupabase, auth_headers

NEW_USER_ID = "66666666-6666-4666-8666-666666666666"


class TestSignupRoute:
    """Tests for POST /api/v1/auth/signup."""

    @patch("src.services.auth_service.create_auth_client")
    def test_signup_creates_profile(
        self, mock_create: MagicMock, client: TestClient, community: FakeSupabase
    ) -> None:
        mock_create.return_value.auth.sign_up.return_value = MagicMock(
            user=MagicMock(id=NEW_USER_ID, email="dana@example.com"),
            session=None,
        )

        response = client.post(
            "/api/v1/auth/signup",
            json={
                "email": "dana@example.com",
                "password": "password123",
                "username": "Dana",
                "user_id": "dana",
            },
        )

        assert response.status_code == 201
        assert response.json()["user_id"] == NEW_USER_ID
        assert community.find("profiles", NEW_USER_ID)["username"] == "Dana"

    @patch("src.services.auth_service.create_auth_client")
    def test_signup_with_bad_handle(
        self, mock_create: MagicMock, client: TestClient, community: FakeSupabase
    ) -> None:
        response = client.post(
            "/api/v1/auth/signup",
            json={
                "email": "dana@example.com",
                "password": "password123",
                "username": "Dana",
                "user_id": "no spaces",
            },
        )

        assert response.status_code == 422
        mock_create.return_value.auth.sign_up.assert_not_called()


class TestLoginRoutes:
    """Tests for login, logout and refresh."""

    @patch("src.services.auth_service.create_auth_client")
    def test_login(self, mock_create: MagicMock, client: TestClient, community: FakeSupabase) -> None:
        mock_create.return_value.auth.sign_in_with_password.return_value = MagicMock(
            user=MagicMock(id=NEW_USER_ID, email="dana@example.com"),
            session=MagicMock(access_token="access", refresh_token="refresh", expires_in=3600),
        )

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "dana@example.com", "password": "password123"},
        )

        assert response.status_code == 200
        assert response.json()["access_token"] == "access"

    @patch("src.services.auth_service.create_auth_client")
    def test_login_failure_is_401(
        self, mock_create: MagicMock, client: TestClient, community: FakeSupabase
    ) -> None:
        mock_create.return_value.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "dana@example.com", "password": "password123"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    @patch("src.services.auth_service.create_auth_client")
    def test_logout(self, mock_create: MagicMock, client: TestClient, community: FakeSupabase) -> None:
        response = client.post("/api/v1/auth/logout", headers=auth_headers())

        assert response.status_code == 200
        mock_create.return_value.auth.sign_out.assert_called_once()

    @patch("src.services.auth_service.create_auth_client")
    def test_refresh(self, mock_create: MagicMock, client: TestClient, community: FakeSupabase) -> None:
        mock_create.return_value.auth.refresh_session.return_value = MagicMock(
            session=MagicMock(access_token="new-access", refresh_token="new-refresh", expires_in=3600),
        )

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": "old-refresh"})

        assert response.status_code == 200
        assert response.json()["access_token"] == "new-access"
