"""
Unit tests for the sheet log health endpoint.

Tests verify:
- GET /health returns HTTP 200 with {"status": "ok"}.
- GET /health answers before any sheet exists.

CHANGELOG:
- 2026-10-16: Drop auth case, add empty-database case
- 2026-02-14: Initial creation (STORY-015)

TODO:
- None
"""

from fastapi.testclient import TestClient


class TestHealth:
    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_with_no_sheets(self, client: TestClient) -> None:
        """Liveness does not depend on any data having been logged."""
        assert client.get("/v1/sheets/nobody").status_code == 404
        assert client.get("/health").json()["status"] == "ok"
