"""Calendar-month helpers for the month-indexed reporting endpoints."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime

DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True, slots=True, order=True)
class CalendarMonth:
    """A (year, month) pair; ordering is chronological."""

    year: int
    month: int

    @classmethod
    def of(cls, instant: date | datetime) -> CalendarMonth:
        return cls(year=instant.year, month=instant.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def billing_date(self) -> str:
        """Billing-period key used by the dashboard endpoint (YYYY-MM-DD)."""
        return self.first_day.isoformat()

    @property
    def month_str(self) -> str:
        return f"{self.month:02d}"

    def next(self) -> CalendarMonth:
        if self.month == 12:
            return CalendarMonth(year=self.year + 1, month=1)
        return CalendarMonth(year=self.year, month=self.month + 1)


def add_months(instant: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month."""
    month_index = instant.year * 12 + (instant.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(instant.day, calendar.monthrange(year, month)[1])
    return instant.replace(year=year, month=month, day=day)


def month_sequence(
    start: datetime,
    *,
    now: datetime,
    include_current_month: bool = True,
) -> list[CalendarMonth]:
    """Return every calendar month from ``start`` up to ``now`` in order."""
    current = CalendarMonth.of(start)
    last = CalendarMonth.of(now)
    months: list[CalendarMonth] = []
    while current < last or (include_current_month and current == last):
        months.append(current)
        current = current.next()
    return months


def parse_date(raw: str | None) -> datetime | None:
    """Parse a DD/MM/YYYY string; return None instead of raising."""
    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT)
    except ValueError:
        return None
