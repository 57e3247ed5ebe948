"""
GET /v1/sheets/{device_name} endpoint for reading back a device's sheet.

Returns the header and every stored row in row order, so a submission that
was only confirmed by an HTTP status (the 405 redirect case) can be checked
by hand.

CHANGELOG:
- 2026-10-16: Replace series rollups with sheet read-back
- 2026-02-14: Initial creation (STORY-012)

TODO:
- None
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db
from src.db.models import Sheet
from src.services.sheets import get_sheet_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["sheets"])


class SheetResponse(BaseModel):
    """Response model for the sheet read-back endpoint.

    Attributes:
        device: Device the sheet belongs to.
        sheet: Sheet name.
        header: Column names, in order.
        rows: Row values in header order, in row order.
    """

    device: str
    sheet: str
    header: list[str]
    rows: list[list[Any]]


@router.get("/sheets/{device_name}", response_model=SheetResponse)
async def get_sheet(
    device_name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SheetResponse:
    """Return the stored rows of *device_name*'s sheet.

    Raises:
        HTTPException: 404 if the device has never logged anything.
    """
    sheet = await db.get(Sheet, device_name)
    if sheet is None:
        raise HTTPException(
            status_code=404,
            detail=f"No sheet for device '{device_name}'.",
        )

    rows = await get_sheet_rows(db, sheet.name)
    logger.debug("Sheet read: device=%s rows=%d", device_name, len(rows))

    return SheetResponse(
        device=device_name,
        sheet=sheet.name,
        header=sheet.header,
        rows=[row.to_values() for row in rows],
    )
