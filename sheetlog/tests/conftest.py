"""
Shared test fixtures for sheet log tests.

Points DATABASE_URL at a fresh SQLite file per test so the application
starts against a real, empty schema, and provides a TestClient that runs
the lifespan (table creation, engine disposal).

CHANGELOG:
- 2026-10-16: Use a per-test SQLite database instead of mocked Postgres/Redis
- 2026-02-14: Initial creation with app fixture and mocked DB/Redis (STORY-007)
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure sheetlog/ is on sys.path so ``from src.api.main import app`` resolves
# when pytest is invoked from the repository root (e.g. ``pytest sheetlog/tests/``).
_SHEETLOG_ROOT = str(Path(__file__).resolve().parent.parent)
if _SHEETLOG_ROOT not in sys.path:
    sys.path.insert(0, _SHEETLOG_ROOT)


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    """Return the SQLite URL of this test's database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'sheets.db'}"


@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch, database_url: str) -> None:
    """Set required environment variables for testing."""
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.delenv("DEFAULT_COST_PER_KWH", raising=False)


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient for integration testing.

    Uses a context manager to ensure the application lifespan events
    (startup/shutdown) are properly triggered.

    Yields:
        TestClient: Configured test client for the FastAPI app.
    """
    from src.api.main import app

    with TestClient(app) as test_client:
        yield test_client
