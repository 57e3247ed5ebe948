"""
Sender configuration loaded from the environment and a key/value file.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Values come from environment variables or the ``~/.power-monitor-config``
file (``KEY=value`` lines, dotenv syntax). The settings object is built once
at startup and handed to each component; nothing is written back into the
process environment.

CHANGELOG:
- 2026-10-20: Map DEVICE_NAME=$(hostname -s) to the host name, reject other shell expressions
- 2026-10-16: Replace Modbus/VPS settings with sheet endpoint settings
- 2026-02-14: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import math
import re
import socket
from pathlib import Path

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from sender.src.errors import ConfigurationError
from sender.src.models import DEFAULT_COST_PER_KWH

DEFAULT_CONFIG_FILE = Path.home() / ".power-monitor-config"
DEFAULT_POWER_MONITOR_PATH = "/Applications/Power Monitor.app/Contents/MacOS/Power Monitor"
DEFAULT_LOG_FILE = str(Path.home() / "Library" / "Logs" / "power-monitor-sender.log")

CONFIG_TEMPLATE = (
    "GAS_WEBAPP_URL=your_google_apps_script_webapp_url_here",
    "DEVICE_NAME=my-laptop",
    "COST_PER_KWH=30",
)

# DEVICE_NAME values the old shell template produced for "this host".
_HOSTNAME_SUBSTITUTION = re.compile(r"(\$\(\s*hostname(\s+-s)?\s*\)|`\s*hostname(\s+-s)?\s*`)")


def _short_hostname() -> str:
    """Return the local host name up to the first dot."""
    return socket.gethostname().split(".")[0]


class SenderSettings(BaseSettings):
    """Configuration for one sender run.

    Attributes:
        gas_webapp_url: Sheet endpoint URL the batch is posted to (required).
        device_name: Sheet partition name. Defaults to the short host name.
        cost_per_kwh: Electricity rate used for the stored cost (default 30).
        power_monitor_path: Path of the Power Monitor executable.
        log_file: Plain-text log file; empty string disables file logging.
        request_timeout_s: Timeout for the single HTTP request.
    """

    gas_webapp_url: str
    device_name: str = ""
    cost_per_kwh: float = DEFAULT_COST_PER_KWH
    power_monitor_path: str = DEFAULT_POWER_MONITOR_PATH
    log_file: str = DEFAULT_LOG_FILE
    request_timeout_s: float = 60.0

    @field_validator("device_name")
    @classmethod
    def device_name_must_be_literal(cls, v: str) -> str:
        """Reject shell expressions left over from the sourced shell config.

        The file is read as dotenv, not executed. ``$(hostname -s)`` (the
        old template's default) and its backtick form mean "this host" and
        fall back to the short host name; any other expansion is an error.
        """
        v = v.strip()
        if _HOSTNAME_SUBSTITUTION.fullmatch(v):
            return ""
        if "$" in v or "`" in v:
            raise ValueError(
                f"DEVICE_NAME must be a literal name, not a shell expression (got: '{v}')"
            )
        return v

    @model_validator(mode="after")
    def _default_device_name(self) -> "SenderSettings":
        """Default device_name to the short host name when not set."""
        if not self.device_name.strip():
            self.device_name = _short_hostname()
        return self

    @field_validator("gas_webapp_url")
    @classmethod
    def webapp_url_must_be_http(cls, v: str) -> str:
        """Validate that the endpoint URL is an http(s) URL."""
        v = v.strip()
        if not v:
            raise ValueError("GAS_WEBAPP_URL must not be empty")
        if not v.lower().startswith(("https://", "http://")):
            raise ValueError(
                f"GAS_WEBAPP_URL must be an http(s) URL (got: '{v[:20]}...')"
            )
        return v

    @field_validator("cost_per_kwh")
    @classmethod
    def cost_must_be_positive(cls, v: float) -> float:
        """Validate the rate is a finite, strictly positive number."""
        if not math.isfinite(v):
            raise ValueError("COST_PER_KWH must be a finite number")
        if v <= 0:
            raise ValueError("COST_PER_KWH must be > 0")
        return v

    @field_validator("request_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        """Validate the request timeout is strictly positive."""
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    model_config = {
        "env_file": DEFAULT_CONFIG_FILE,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def load_settings(config_file: str | Path | None = None) -> SenderSettings:
    """Build SenderSettings from the environment and *config_file*.

    Args:
        config_file: Key/value file to read. Defaults to
            ``~/.power-monitor-config``. A missing file is tolerated as long
            as the environment supplies ``GAS_WEBAPP_URL``.

    Returns:
        SenderSettings: Validated settings.

    Raises:
        ConfigurationError: If validation fails. When the endpoint URL is
            missing, the message names the file and the expected content.
    """
    path = Path(config_file).expanduser() if config_file else DEFAULT_CONFIG_FILE
    try:
        return SenderSettings(_env_file=path)  # type: ignore[call-arg]
    except ValidationError as exc:
        missing_url = any(
            err["type"] == "missing" and "gas_webapp_url" in err["loc"]
            for err in exc.errors()
        )
        if missing_url:
            where = path if path.is_file() else f"{path} (file not found)"
            template = "; ".join(CONFIG_TEMPLATE)
            raise ConfigurationError(
                f"GAS_WEBAPP_URL not set in {where}. "
                f"Create it with the following content: {template}"
            ) from None
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration in {path}: {problems}") from None
