"""
Date window resolution for a sender run.

Turns the requested mode into the inclusive date range passed to the Power
Monitor journal command. Pure: the current day is injected by the caller
(or defaults to ``date.today()``), no I/O.

CHANGELOG:
- 2026-10-16: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from sender.src.errors import ConfigurationError

WEEKLY_LOOKBACK_DAYS = 7


class WindowMode(str, Enum):
    """How the journal date range is chosen."""

    WEEKLY = "weekly"
    ALL = "all"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range; both bounds ``None`` means full history."""

    start: date | None = None
    end: date | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def as_cli_args(self) -> list[str]:
        """Render the window as Power Monitor ``--start``/``--end`` flags."""
        if self.is_unbounded:
            return []
        return ["--start", self.start.isoformat(), "--end", self.end.isoformat()]  # type: ignore[union-attr]

    def describe(self) -> str:
        if self.is_unbounded:
            return "all available data"
        return f"{self.start.isoformat()} to {self.end.isoformat()}"  # type: ignore[union-attr]


def resolve_window(
    mode: WindowMode | str = WindowMode.WEEKLY,
    start: date | None = None,
    end: date | None = None,
    *,
    today: date | None = None,
) -> DateWindow:
    """Compute the journal date range for *mode*.

    Args:
        mode: ``weekly`` (default), ``all`` or ``custom``.
        start: First day to include; required for ``custom``.
        end: Last day to include; required for ``custom``.
        today: Day of invocation. Defaults to ``date.today()``.

    Returns:
        DateWindow: ``weekly`` yields ``today - 7`` .. ``today - 1``;
        ``all`` yields an unbounded window; ``custom`` yields the given bounds.

    Raises:
        ConfigurationError: Unknown mode, a custom bound missing, or a
            custom range whose start is after its end.
    """
    try:
        mode = WindowMode(mode)
    except ValueError:
        raise ConfigurationError(f"Unknown date window mode: {mode!r}") from None

    if mode is WindowMode.ALL:
        return DateWindow()

    if mode is WindowMode.CUSTOM:
        if start is None or end is None:
            raise ConfigurationError(
                "Both --start and --end must be specified for custom date range"
            )
        if start > end:
            raise ConfigurationError(
                f"Start date {start.isoformat()} is after end date {end.isoformat()}"
            )
        return DateWindow(start=start, end=end)

    if today is None:
        today = date.today()
    return DateWindow(
        start=today - timedelta(days=WEEKLY_LOOKBACK_DAYS),
        end=today - timedelta(days=1),
    )
