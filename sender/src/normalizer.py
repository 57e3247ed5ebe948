"""
Pure normalizer that converts raw Power Monitor journal records into Entries.

Takes the list of records returned by the journal reader, maps the
utility's human-readable keys onto Entry fields, fills in defaults for the
optional fields and validates each record through the Entry model.

Records missing the mandatory date or total consumption (or whose values do
not validate) are skipped with a warning. The emptiness check runs once for
the whole batch, after filtering.

This is a pure function: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-10-16: Map journal records to Entry instead of Modbus registers
- 2026-02-14: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from sender.src.errors import EmptyResultError, NormalizationError
from sender.src.models import Entry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mapping from Entry field names to Power Monitor journal keys.
# ---------------------------------------------------------------------------

_FIELD_MAP: dict[str, str] = {
    "date": "Date",
    "consumption_total": "Consumption Total (kWh)",
    "consumption_power_nap": "Consumption Power Nap (kWh)",
    "duration_awake": "Duration Awake",
    "duration_power_nap": "Duration Power Nap",
}
"""Maps Entry field name -> journal record key."""

_REQUIRED_FIELDS = ("date", "consumption_total")

_OPTIONAL_DEFAULTS: dict[str, Any] = {
    "consumption_power_nap": 0.0,
    "duration_awake": "",
    "duration_power_nap": "",
}


def _extract_fields(record: Mapping[str, Any]) -> dict[str, Any] | None:
    """Pull Entry fields out of one journal record.

    Returns ``None`` when a mandatory field is absent or null.
    """
    fields: dict[str, Any] = {}
    for field_name, key in _FIELD_MAP.items():
        value = record.get(key)
        if value is None:
            if field_name in _REQUIRED_FIELDS:
                logger.warning("Journal record missing '%s', skipping: %s", key, dict(record))
                return None
            value = _OPTIONAL_DEFAULTS[field_name]
        fields[field_name] = value
    return fields


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(records: Sequence[Any]) -> list[Entry]:
    """Convert journal records into a non-empty list of Entries.

    Args:
        records: Records as returned by the journal reader, in order.

    Returns:
        list[Entry]: One entry per usable record, order preserved.

    Raises:
        NormalizationError: A record is not a JSON object.
        EmptyResultError: No usable entry remains. The message tells apart
            "the source returned nothing" from "nothing usable in N records".
    """
    entries: list[Entry] = []

    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise NormalizationError(
                f"Journal record {index} is a {type(record).__name__}, expected an object"
            )

        fields = _extract_fields(record)
        if fields is None:
            continue

        try:
            entries.append(Entry(**fields))
        except ValidationError as exc:
            logger.warning("Journal record %d rejected: %s", index, exc.errors()[0]["msg"])

    if not entries:
        if not records:
            raise EmptyResultError("No valid power data found for the specified period")
        raise EmptyResultError(
            f"No valid power data found: none of {len(records)} journal record(s) "
            "had a usable date and total consumption"
        )

    return entries
