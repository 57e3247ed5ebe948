"""
Power Monitor journal reader.

Runs the Power Monitor executable in headless journal mode and returns its
JSON output: an array of per-day records keyed by human-readable field
names (``"Date"``, ``"Consumption Total (kWh)"``, ...). The utility itself
is an external collaborator; this module only invokes it and checks the
shape of what comes back.

Operations:
- fetch(window): run ``--noGUI --journal [--start S --end E]`` and parse.

CHANGELOG:
- 2026-10-16: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from sender.src.errors import SourceDataError, SourceUnavailableError
from sender.src.window import DateWindow

logger = logging.getLogger(__name__)

_JOURNAL_ARGS = ("--noGUI", "--journal")
_OUTPUT_EXCERPT_CHARS = 500


class PowerMonitorSource:
    """Reads daily journal records from the Power Monitor executable.

    Args:
        binary_path: Path to the Power Monitor executable.

    Usage::

        source = PowerMonitorSource("/Applications/Power Monitor.app/Contents/MacOS/Power Monitor")
        records = await source.fetch(DateWindow(start, end))
    """

    def __init__(self, binary_path: str | Path) -> None:
        self._binary_path = Path(binary_path)

    @property
    def binary_path(self) -> Path:
        return self._binary_path

    def build_command(self, window: DateWindow) -> list[str]:
        """Return the argv used for *window*."""
        return [str(self._binary_path), *_JOURNAL_ARGS, *window.as_cli_args()]

    def check_available(self) -> None:
        """Raise SourceUnavailableError unless the binary is an executable file."""
        if not self._binary_path.is_file() or not os.access(self._binary_path, os.X_OK):
            raise SourceUnavailableError(
                f"Power Monitor application not found at {self._binary_path}"
            )

    async def fetch(self, window: DateWindow) -> list[dict[str, Any]]:
        """Run the journal command for *window* and return its records.

        Args:
            window: Date range to request; unbounded means full history.

        Returns:
            list[dict]: Raw journal records, in the order the utility printed them.

        Raises:
            SourceUnavailableError: The executable is missing or cannot be run.
            SourceDataError: Non-zero exit, output that is not JSON, or JSON
                that is not an array.
        """
        self.check_available()
        argv = self.build_command(window)
        logger.debug("Running Power Monitor: %s", argv)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SourceUnavailableError(
                f"Power Monitor at {self._binary_path} could not be started: {exc}"
            ) from exc

        stdout, stderr = await proc.communicate()
        output = stdout.decode("utf-8", errors="replace")
        errors = stderr.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            detail = (errors or output)[:_OUTPUT_EXCERPT_CHARS]
            raise SourceDataError(
                f"Failed to get power data from Power Monitor "
                f"(exit code {proc.returncode}). Output: {detail}"
            )
        if errors:
            logger.warning("Power Monitor wrote to stderr: %s", errors[:_OUTPUT_EXCERPT_CHARS])

        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise SourceDataError(
                f"Power Monitor output is not valid JSON ({exc.msg}). "
                f"Output: {output[:_OUTPUT_EXCERPT_CHARS]}"
            ) from exc

        if not isinstance(data, list):
            raise SourceDataError(
                f"Power Monitor output is a JSON {type(data).__name__}, expected an array"
            )

        logger.info("Raw data received from Power Monitor: %d record(s)", len(data))
        return data
