"""
SQLAlchemy ORM models for the sheet log database.

A Sheet is one partition per device, created on first use with the fixed
8-column header. A SheetRow is one stored day: the composite primary key
(sheet_name, row_number) keeps rows in spreadsheet order, and the unique
constraint on (sheet_name, date) backs the one-row-per-date invariant.

CHANGELOG:
- 2026-10-16: Replace SungrowSample with Sheet/SheetRow
- 2026-02-14: Initial creation (STORY-008)

TODO:
- None
"""

import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Double,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SHEET_HEADER: tuple[str, ...] = (
    "date",
    "consumption_total",
    "consumption_power_nap",
    "duration_awake",
    "duration_power_nap",
    "rate",
    "cost",
    "logged_at",
)
"""Column order of every sheet; also the order of SheetRow.to_values()."""

FIRST_DATA_ROW = 2
"""Row 1 holds the header, so data rows are numbered from 2."""


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all sheet log ORM models."""

    pass


class Sheet(Base):
    """Per-device partition holding one row per logged day.

    Attributes:
        name: Partition name; the submitting device_name.
        header: Column names written when the sheet was created.
        created_at: When the sheet was first created.
    """

    __tablename__ = "sheets"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    header: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r})"


class SheetRow(Base):
    """One stored day of consumption for one device.

    Attributes:
        sheet_name: Owning sheet.
        row_number: Spreadsheet row number, starting at FIRST_DATA_ROW.
        date: Day in ``yyyy-MM-dd`` form; unique within the sheet.
        consumption_total: Total kWh used that day.
        consumption_power_nap: kWh used during Power Nap.
        duration_awake: Awake time as reported by the device.
        duration_power_nap: Power Nap time as reported by the device.
        rate: Cost per kWh applied when the row was written.
        cost: consumption_total * rate, two decimals, as text (``"45.00"``).
        logged_at: Time of the most recent write of this row.
    """

    __tablename__ = "sheet_rows"
    __table_args__ = (UniqueConstraint("sheet_name", "date", name="uq_sheet_rows_date"),)

    sheet_name: Mapped[str] = mapped_column(
        Text,
        ForeignKey("sheets.name", ondelete="CASCADE"),
        primary_key=True,
    )
    row_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    consumption_total: Mapped[float] = mapped_column(Double, nullable=False)
    consumption_power_nap: Mapped[float] = mapped_column(Double, nullable=False)
    duration_awake: Mapped[str] = mapped_column(Text, nullable=False)
    duration_power_nap: Mapped[str] = mapped_column(Text, nullable=False)
    rate: Mapped[float] = mapped_column(Double, nullable=False)
    cost: Mapped[str] = mapped_column(Text, nullable=False)
    logged_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def to_values(self) -> list:
        """Return the row as a list in SHEET_HEADER order."""
        return [getattr(self, column) for column in SHEET_HEADER]

    def __repr__(self) -> str:
        return (
            f"SheetRow(sheet_name={self.sheet_name!r}, "
            f"row_number={self.row_number!r}, date={self.date!r})"
        )
