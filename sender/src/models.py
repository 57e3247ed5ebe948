"""
Pydantic models for daily power consumption entries and their submission.

Defines the Entry model (one calendar day of Power Monitor measurements),
the Batch model that is posted to the sheet endpoint as a single JSON body,
and the SubmitResult returned by the uploader after classifying the
endpoint's answer.

CHANGELOG:
- 2026-10-20: Reject infinite and NaN quantities
- 2026-10-16: Replace SungrowSample with Entry/Batch/SubmitResult
- 2026-02-14: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

DEFAULT_COST_PER_KWH = 30.0


class Entry(BaseModel):
    """One day of power consumption for one device.

    The date is the unique key per device on the remote sheet: a later
    submission for the same date replaces the stored row.

    Attributes:
        date: Calendar day the measurements belong to.
        consumption_total: Total energy used that day in kWh.
        consumption_power_nap: Energy used during Power Nap in kWh.
        duration_awake: Elapsed awake time as reported, e.g. ``"100:30:15"``.
        duration_power_nap: Elapsed Power Nap time as reported.
    """

    date: datetime.date
    consumption_total: float = Field(ge=0, allow_inf_nan=False)
    consumption_power_nap: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    duration_awake: str = ""
    duration_power_nap: str = ""


class Batch(BaseModel):
    """Submission unit: all entries of one run for one device."""

    device_name: str = Field(min_length=1)
    cost_per_kwh: float = Field(default=DEFAULT_COST_PER_KWH, gt=0, allow_inf_nan=False)
    entries: list[Entry]


class SubmitResult(BaseModel):
    """Outcome of posting a batch, after response classification.

    Attributes:
        success: True when the endpoint confirmed (or the transport implied)
            delivery.
        message: Human-readable summary for the log.
        rows_added: New rows reported by the endpoint (0 when unknown).
        status_code: HTTP status of the final response.
        needs_verification: True for the qualified HTTP 405 success, where
            the data is usually written but should be checked by hand.
    """

    success: bool
    message: str = ""
    rows_added: int = 0
    status_code: int | None = None
    needs_verification: bool = False
