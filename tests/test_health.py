"""
Tests for health check endpoint.
"""
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from recipe_catalog.db.session import get_db
from recipe_catalog.main import app


class TestHealth:
    """Tests for health check endpoints."""

    def test_basic_health(self, client: TestClient):
        """Test basic health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_api_health_with_database(self, client: TestClient):
        """Test API health check with database status."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["services"]["database"]["status"] == "ok"

    def test_api_health_database_down(self, client: TestClient):
        """Test API health check answers 503 when the database query fails."""

        class UnreachableSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        app.dependency_overrides[get_db] = lambda: UnreachableSession()

        response = client.get("/api/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["database"]["status"] == "error"
        assert "connection refused" in data["services"]["database"]["message"]
