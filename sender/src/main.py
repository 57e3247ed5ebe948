"""
Command-line entrypoint for the weekly power data sender.

Runs one pass of the pipeline and exits:
1. **Window**: resolve the date range from the command line (past 7 days by
   default, ``--all`` for full history, ``--start``/``--end`` for a range).
2. **Source**: read the Power Monitor journal for that range.
3. **Normalize**: map journal records into entries.
4. **Submit**: POST one batch to the sheet endpoint and classify the answer.

The run is fail-fast: the first error aborts it, is logged, and turns into
exit status 1. Structured JSON logging goes to stderr; a plain timestamped
copy goes to the configured log file so the scheduler's history can be
inspected later.

CHANGELOG:
- 2026-10-20: Attach the default log file before parsing arguments and settings
- 2026-10-16: Replace poll/upload daemon loops with a one-shot sender run
- 2026-02-14: Initial creation (STORY-014)

TODO:
- None
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from sender.src.config import DEFAULT_LOG_FILE, load_settings
from sender.src.errors import ConfigurationError, SenderError
from sender.src.models import Batch
from sender.src.normalizer import normalize
from sender.src.window import DateWindow, WindowMode, resolve_window

if TYPE_CHECKING:
    from sender.src.config import SenderSettings
    from sender.src.models import SubmitResult
    from sender.src.source import PowerMonitorSource
    from sender.src.uploader import Uploader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(log_file: str | None = None) -> None:
    """Configure logging for a sender run.

    Sets up the root logger with a JSON-formatted handler writing to stderr
    and, when *log_file* is given, a plain ``[YYYY-MM-DD HH:MM:SS] LEVEL msg``
    file handler. Safe to call again once the log file path is known.

    Args:
        log_file: Path of the plain-text log file, or None/empty for none.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)
    root.setLevel(logging.INFO)

    if not log_file:
        return

    path = Path(log_file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot open log file %s: %s", path, exc)
        return
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)


def log_config_summary(settings: SenderSettings) -> None:
    """Log a config summary at startup.

    Only the host of the endpoint URL is logged: the path of a script web
    app URL works as its access key.
    """
    logger.info(
        "Starting power data collection for device: %s "
        "(cost_per_kwh=%s, endpoint_host=%s, power_monitor_path=%s)",
        settings.device_name,
        settings.cost_per_kwh,
        urlsplit(settings.gas_webapp_url).netloc,
        settings.power_monitor_path,
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigurationError instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigurationError(f"{message}. Usage: {self.format_usage().strip()}")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date '{value}', expected YYYY-MM-DD"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="power-monitor-send",
        description="Send Power Monitor daily consumption to the sheet endpoint.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="send all available data (no date filter)",
    )
    parser.add_argument("--start", type=_parse_date, metavar="YYYY-MM-DD")
    parser.add_argument("--end", type=_parse_date, metavar="YYYY-MM-DD")
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="configuration file (default: ~/.power-monitor-config)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line and derive the window mode.

    Raises:
        ConfigurationError: Unknown option, malformed date, or ``--all``
            combined with an explicit range.
    """
    args = build_parser().parse_args(argv)
    custom = args.start is not None or args.end is not None
    if args.all and custom:
        raise ConfigurationError("--all cannot be combined with --start/--end")
    if args.all:
        args.mode = WindowMode.ALL
    elif custom:
        args.mode = WindowMode.CUSTOM
    else:
        args.mode = WindowMode.WEEKLY
    return args


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


async def run(
    settings: SenderSettings,
    window: DateWindow,
    *,
    source: PowerMonitorSource | None = None,
    uploader: Uploader | None = None,
) -> SubmitResult:
    """Execute one source -> normalize -> submit pass.

    Args:
        settings: Validated sender settings.
        window: Date range to collect.
        source: Journal reader; built from settings when omitted.
        uploader: Batch uploader; built from settings when omitted.

    Returns:
        SubmitResult: The classified endpoint answer.

    Raises:
        SenderError: Any failure along the way; nothing is retried.
    """
    from sender.src.source import PowerMonitorSource
    from sender.src.uploader import Uploader

    if source is None:
        source = PowerMonitorSource(settings.power_monitor_path)
    if uploader is None:
        uploader = Uploader(settings.gas_webapp_url, timeout_s=settings.request_timeout_s)

    records = await source.fetch(window)
    entries = normalize(records)
    logger.info("Found %d days of data", len(entries))

    batch = Batch(
        device_name=settings.device_name,
        cost_per_kwh=settings.cost_per_kwh,
        entries=entries,
    )
    return await uploader.submit(batch)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run the sender once and return the process exit status.

    The log file is attached before the command line and settings are
    read, so usage and configuration errors land in it too. LOG_FILE from
    the environment is honoured here; a LOG_FILE set only in the config
    file takes over once settings are loaded.
    """
    configure_logging(os.environ.get("LOG_FILE", DEFAULT_LOG_FILE))

    try:
        args = parse_args(argv)
        window = resolve_window(args.mode, args.start, args.end)
        settings = load_settings(args.config)
        configure_logging(settings.log_file)
        log_config_summary(settings)
        logger.info("Collecting data from %s", window.describe())
        result = asyncio.run(run(settings, window))
    except SenderError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED

    if result.needs_verification:
        logger.warning("Submission needs manual verification: %s", result.message)
    logger.info(
        "Power data collection completed successfully (rows_added=%d)",
        result.rows_added,
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
