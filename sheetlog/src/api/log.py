"""
POST /v1/log endpoint: upsert a device's daily power entries into its sheet.

Accepts two payload shapes and resolves them once, at the boundary, into a
canonical Batch of at least one entry:

- batch: ``{"device_name", "cost_per_kwh"?, "entries": [...]}``
- legacy single entry: ``{"device_name", "cost_per_kwh"?, "date",
  "consumption_total", ...}`` with no ``entries`` array

Every answer is HTTP 200 with a JSON body carrying a ``success`` flag, the
way the hosted script platform answers. Validation problems and unexpected
failures become ``{"success": false, "error": ...}``; a raw platform error
never reaches the caller.

CHANGELOG:
- 2026-10-20: Serialize writes behind the app write lock; reject non-finite numbers;
  hide database error text from callers
- 2026-10-16: Replace sample ingest with sheet upsert (batch + legacy shape)
- 2026-02-14: Initial creation (STORY-010)

TODO:
- None
"""

import asyncio
import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db, get_default_cost, get_write_lock
from src.services.sheets import format_sheet_date, upsert_entries

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["log"])


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class EntryIn(BaseModel):
    """One day of power consumption as sent by a device."""

    date: str
    consumption_total: float = Field(ge=0, allow_inf_nan=False)
    consumption_power_nap: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    duration_awake: str = ""
    duration_power_nap: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> str:
        text = format_sheet_date(v) if v is not None else ""
        if not text:
            raise ValueError("date must not be empty")
        return text

    @field_validator("consumption_power_nap", mode="before")
    @classmethod
    def _nap_defaults_to_zero(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("duration_awake", "duration_power_nap", mode="before")
    @classmethod
    def _duration_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class _SubmissionBase(BaseModel):
    device_name: str = Field(min_length=1)
    cost_per_kwh: float | None = Field(default=None, gt=0, allow_inf_nan=False)

    @field_validator("device_name", mode="before")
    @classmethod
    def _strip_device_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class BatchSubmission(_SubmissionBase):
    """Current payload shape: a list of entries."""

    entries: list[EntryIn] = Field(min_length=1)


class SingleEntrySubmission(_SubmissionBase, EntryIn):
    """Legacy payload shape: one entry inline with the device fields."""


class Batch(BaseModel):
    """Canonical submission every payload shape is resolved into."""

    device_name: str
    cost_per_kwh: float
    entries: list[EntryIn]


class LogResponse(BaseModel):
    """Successful upsert answer."""

    success: bool = True
    message: str
    device: str
    sheet: str
    rows_added: int
    rows_updated: int


# ---------------------------------------------------------------------------
# Payload resolution
# ---------------------------------------------------------------------------


class SubmissionError(ValueError):
    """The payload cannot be turned into a Batch."""


def resolve_submission(payload: Any, default_cost_per_kwh: float) -> Batch:
    """Resolve a decoded JSON payload into a canonical Batch.

    Args:
        payload: Decoded request body.
        default_cost_per_kwh: Rate used when the payload carries none.

    Returns:
        Batch: Device, rate and at least one entry.

    Raises:
        SubmissionError: Not an object, missing device_name, or neither
            shape validates.
    """
    if not isinstance(payload, dict):
        raise SubmissionError("Request body must be a JSON object")

    device_name = payload.get("device_name")
    if not isinstance(device_name, str) or not device_name.strip():
        raise SubmissionError("device_name is required")

    model: type[_SubmissionBase] = (
        BatchSubmission if "entries" in payload else SingleEntrySubmission
    )
    try:
        submission = model.model_validate(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise SubmissionError(f"Invalid payload: {problems}") from None

    if isinstance(submission, BatchSubmission):
        entries = submission.entries
    else:
        entries = [EntryIn.model_validate(submission.model_dump(include=set(EntryIn.model_fields)))]

    return Batch(
        device_name=submission.device_name,
        cost_per_kwh=submission.cost_per_kwh or default_cost_per_kwh,
        entries=entries,
    )


def _rejection(error: str) -> dict[str, Any]:
    return {"success": False, "error": error}


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------


@router.post("/log")
async def log_entries(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    write_lock: Annotated[asyncio.Lock, Depends(get_write_lock)],
    default_cost: Annotated[float, Depends(get_default_cost)],
) -> dict[str, Any]:
    """Upsert the submitted entries into the device's sheet.

    Args:
        request: The incoming FastAPI request.
        db: Async database session.
        write_lock: Serializes the sheet scan and writes across requests.
        default_cost: Rate used when the payload carries none.

    Returns:
        dict: ``{success, message, device, sheet, rows_added, rows_updated}``
        on success, ``{success: false, error}`` otherwise.
    """
    try:
        body = await request.body()
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _rejection("Request body is not valid JSON")

        try:
            batch = resolve_submission(payload, default_cost)
        except SubmissionError as exc:
            logger.warning("Rejected submission: %s", exc)
            return _rejection(str(exc))

        async with write_lock:
            result = await upsert_entries(
                db,
                batch.device_name,
                [entry.model_dump() for entry in batch.entries],
                cost_per_kwh=batch.cost_per_kwh,
            )
    except SQLAlchemyError as exc:
        logger.exception("Sheet upsert failed")
        await db.rollback()
        return _rejection(f"Database error ({type(exc).__name__}); nothing was written")
    except Exception as exc:
        logger.exception("Sheet upsert failed")
        await db.rollback()
        return _rejection(f"{type(exc).__name__}: {exc}")

    return LogResponse(
        message=(
            f"Processed {len(batch.entries)} entries "
            f"({result.rows_added} added, {result.rows_updated} updated)"
        ),
        device=batch.device_name,
        sheet=result.sheet,
        rows_added=result.rows_added,
        rows_updated=result.rows_updated,
    ).model_dump()
