"""
Sheet store service: upsert daily entries into a device's sheet.

Each device has one sheet, created on first use with the fixed header. For
every incoming entry the sheet is searched for a row with the same date
(compared as ``yyyy-MM-dd`` text); a hit is overwritten in place, all eight
columns, and a miss is appended as a new row. Cost is computed here, at
write time, from the rate sent with the batch, and ``logged_at`` is reset on
every write. Replaying a batch therefore converges to the same rows.

The sheet is scanned once per request into a date -> row index which is
kept current as rows are appended, so duplicate dates inside one batch hit
the row written earlier in the same batch (last one wins).

CHANGELOG:
- 2026-10-16: Upsert-by-date into per-device sheets
- 2026-02-14: Initial creation (STORY-010)

TODO:
- None
"""

import datetime
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import FIRST_DATA_ROW, SHEET_HEADER, Sheet, SheetRow

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert call.

    Attributes:
        sheet: Name of the sheet written to.
        rows_added: Rows appended for dates not seen before.
        rows_updated: Existing rows overwritten in place.
    """

    sheet: str
    rows_added: int
    rows_updated: int


def format_sheet_date(value: Any) -> str:
    """Normalize a date cell or wire value to ``yyyy-MM-dd`` text.

    Accepts ``date``/``datetime`` objects and ISO strings (with or without a
    time part). Anything unparseable is returned as stripped text so it
    still compares equal to itself.
    """
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    text = str(value).strip()
    try:
        return datetime.datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return text


def compute_cost(consumption_total: float, rate: float) -> str:
    """Return ``consumption_total * rate`` rounded half-up to two decimals."""
    cost = Decimal(str(consumption_total)) * Decimal(str(rate))
    return str(cost.quantize(_CENTS, rounding=ROUND_HALF_UP))


def build_row_values(
    entry: Mapping[str, Any],
    *,
    rate: float,
    logged_at: datetime.datetime,
) -> dict[str, Any]:
    """Map one entry onto the eight sheet columns."""
    consumption_total = float(entry["consumption_total"])
    return {
        "date": format_sheet_date(entry["date"]),
        "consumption_total": consumption_total,
        "consumption_power_nap": float(entry.get("consumption_power_nap") or 0),
        "duration_awake": entry.get("duration_awake") or "",
        "duration_power_nap": entry.get("duration_power_nap") or "",
        "rate": rate,
        "cost": compute_cost(consumption_total, rate),
        "logged_at": logged_at,
    }


async def get_or_create_sheet(
    db: AsyncSession,
    name: str,
    *,
    now: datetime.datetime,
) -> Sheet:
    """Return the sheet called *name*, creating it with the fixed header."""
    sheet = await db.get(Sheet, name)
    if sheet is None:
        sheet = Sheet(name=name, header=list(SHEET_HEADER), created_at=now)
        db.add(sheet)
        await db.flush()
        logger.info("Created sheet %s", name)
    return sheet


async def get_sheet_rows(db: AsyncSession, name: str) -> list[SheetRow]:
    """Return all rows of sheet *name* in row order."""
    result = await db.execute(
        select(SheetRow)
        .where(SheetRow.sheet_name == name)
        .order_by(SheetRow.row_number)
    )
    return list(result.scalars().all())


async def upsert_entries(
    db: AsyncSession,
    device_name: str,
    entries: Iterable[Mapping[str, Any]],
    *,
    cost_per_kwh: float,
    logged_at: datetime.datetime | None = None,
) -> UpsertResult:
    """Upsert *entries* into the sheet of *device_name* and commit.

    Args:
        db: Async SQLAlchemy session.
        device_name: Sheet (partition) name.
        entries: Entry dicts with ``date`` and ``consumption_total`` plus the
            optional Power Nap and duration fields, in submission order.
        cost_per_kwh: Rate applied to every entry of this call.
        logged_at: Write timestamp. Defaults to the current UTC time.

    Returns:
        UpsertResult: Sheet name and the added/updated row counts.
    """
    if logged_at is None:
        logged_at = datetime.datetime.now(tz=datetime.UTC)

    sheet = await get_or_create_sheet(db, device_name, now=logged_at)

    by_date: dict[str, SheetRow] = {}
    next_row_number = FIRST_DATA_ROW
    for row in await get_sheet_rows(db, sheet.name):
        by_date.setdefault(format_sheet_date(row.date), row)
        next_row_number = max(next_row_number, row.row_number + 1)

    rows_added = 0
    rows_updated = 0
    for entry in entries:
        values = build_row_values(entry, rate=cost_per_kwh, logged_at=logged_at)
        existing = by_date.get(values["date"])
        if existing is None:
            row = SheetRow(sheet_name=sheet.name, row_number=next_row_number, **values)
            db.add(row)
            by_date[values["date"]] = row
            next_row_number += 1
            rows_added += 1
        else:
            for column, value in values.items():
                setattr(existing, column, value)
            rows_updated += 1

    await db.commit()

    logger.info(
        "Upserted entries for device %s: %d added, %d updated",
        device_name,
        rows_added,
        rows_updated,
    )
    return UpsertResult(sheet=sheet.name, rows_added=rows_added, rows_updated=rows_updated)
