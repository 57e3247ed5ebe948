"""
Shared test fixtures for sender tests.

Provides environment and config file fixtures for SenderSettings tests.
All sender env vars are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-16: Switch to sender settings and config file fixtures
- 2026-02-14: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest

# All SenderSettings environment variable names, used for cleanup.
_ALL_SENDER_ENV_VARS = (
    "GAS_WEBAPP_URL",
    "DEVICE_NAME",
    "COST_PER_KWH",
    "POWER_MONITOR_PATH",
    "LOG_FILE",
    "REQUEST_TIMEOUT_S",
)

WEBAPP_URL = "https://script.example.com/macros/s/abc123/exec"

# One journal record as printed by ``Power Monitor --noGUI --journal``.
RAW_RECORD = {
    "Date": "2025-10-01",
    "Consumption Total (kWh)": 1.5,
    "Consumption Power Nap (kWh)": 0.3,
    "Duration Awake": "100:30:15",
    "Duration Power Nap": "20:15:00",
}


@pytest.fixture(autouse=True)
def _clean_sender_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all sender env vars before each test.

    Changes working directory to tmp_path so nothing from the developer's
    checkout leaks into a test.
    """
    for var in _ALL_SENDER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write a complete config file in the original KEY=value format."""
    path = tmp_path / ".power-monitor-config"
    path.write_text(
        f"GAS_WEBAPP_URL={WEBAPP_URL}\n"
        "DEVICE_NAME=test-device\n"
        "COST_PER_KWH=30\n"
        f"LOG_FILE={tmp_path / 'sender.log'}\n"
    )
    return path


@pytest.fixture()
def raw_records() -> list[dict]:
    """Return a fresh copy of the sample journal output."""
    return [dict(RAW_RECORD)]
