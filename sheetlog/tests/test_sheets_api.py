"""
Integration tests for GET /v1/sheets/{device_name}.

Tests verify:
- A logged device reads back its header and rows in row order.
- An unknown device returns 404 with a detail message.

CHANGELOG:
- 2026-10-16: Initial creation

TODO:
- None
"""

from fastapi.testclient import TestClient


def _log(client: TestClient, device: str, *days: str) -> None:
    payload = {
        "device_name": device,
        "cost_per_kwh": 30,
        "entries": [{"date": day, "consumption_total": 1.0} for day in days],
    }
    assert client.post("/v1/log", json=payload).json()["success"] is True


class TestSheetReadBack:
    def test_returns_header_and_rows(self, client: TestClient) -> None:
        _log(client, "macbook-pro", "2025-10-01", "2025-10-02")

        response = client.get("/v1/sheets/macbook-pro")

        assert response.status_code == 200
        body = response.json()
        assert body["device"] == "macbook-pro"
        assert body["sheet"] == "macbook-pro"
        assert body["header"][0] == "date"
        assert len(body["header"]) == 8
        assert [row[0] for row in body["rows"]] == ["2025-10-01", "2025-10-02"]
        assert all(len(row) == 8 for row in body["rows"])

    def test_only_own_rows(self, client: TestClient) -> None:
        _log(client, "mini", "2025-10-01")
        _log(client, "air", "2025-10-02", "2025-10-03")

        assert len(client.get("/v1/sheets/mini").json()["rows"]) == 1
        assert len(client.get("/v1/sheets/air").json()["rows"]) == 2

    def test_unknown_device_returns_404(self, client: TestClient) -> None:
        response = client.get("/v1/sheets/nobody")

        assert response.status_code == 404
        assert response.json() == {"detail": "No sheet for device 'nobody'."}
