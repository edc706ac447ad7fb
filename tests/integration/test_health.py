"""Integration tests for health check endpoints."""

from fastapi.testclient import TestClient

from tests.fakes import SENDER_ID, FakeSupabase, auth_headers


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client: TestClient) -> None:
        """Test that /health endpoint returns 200 status."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_status_and_version(self, client: TestClient) -> None:
        """Test that /health endpoint returns healthy status and version info."""
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["timestamp"] is not None


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    def test_readiness_returns_200_when_healthy(self, client: TestClient) -> None:
        """Test that /health/ready checks each letter table and returns 200."""
        response = client.get("/health/ready")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert [check["name"] for check in data["checks"]] == ["profiles", "song_letters", "app_settings"]
        assert all(check["healthy"] and check["latency_ms"] is not None for check in data["checks"])

    def test_readiness_names_the_unreachable_table(
        self, client: TestClient, fake_supabase: FakeSupabase
    ) -> None:
        """Test that /health/ready returns 503 and flags only the failing table."""
        fake_supabase.fail("song_letters", error=RuntimeError("Connection refused"))

        response = client.get("/health/ready")
        data = response.json()

        assert response.status_code == 503
        assert data["status"] == "unhealthy"
        failing = [check for check in data["checks"] if not check["healthy"]]
        assert [check["name"] for check in failing] == ["song_letters"]
        assert failing[0]["error"] == "Connection refused"


class TestAuthenticatedHealth:
    """Tests for /health/auth endpoint."""

    def test_requires_token(self, client: TestClient) -> None:
        assert client.get("/health/auth").status_code == 401

    def test_returns_claims(self, client: TestClient) -> None:
        response = client.get("/health/auth", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["user_id"] == SENDER_ID
