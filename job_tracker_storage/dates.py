"""Calendar-day helpers shared by queries and the recurrence projector.

Record dates are ISO strings written by clients in different time
zones. Comparisons always use the calendar date as written (the part
before ``T``), never a timezone-converted instant, so a job stamped
``2024-01-05T23:59:00-08:00`` is on the 5th everywhere.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from .records import RecurrenceType

DateLike = str | date | datetime

_PERIODS: dict[RecurrenceType, relativedelta] = {
    RecurrenceType.DAILY: relativedelta(days=1),
    RecurrenceType.WEEKLY: relativedelta(weeks=1),
    RecurrenceType.BIWEEKLY: relativedelta(weeks=2),
    RecurrenceType.MONTHLY: relativedelta(months=1),
    RecurrenceType.QUARTERLY: relativedelta(months=3),
    RecurrenceType.YEARLY: relativedelta(years=1),
}


def to_day(value: DateLike) -> date:
    """Return the calendar date of ``value``.

    Raises:
        ValueError: If a string value has no parseable date component.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip().split("T", 1)[0][:10])


def to_day_string(value: DateLike) -> str:
    """Return ``YYYY-MM-DD`` for ``value``."""
    return to_day(value).isoformat()


def is_date_in_range(value: DateLike, start: DateLike, end: DateLike) -> bool:
    """Inclusive calendar-day range check."""
    return to_day(start) <= to_day(value) <= to_day(end)


def week_range(value: DateLike, week_starts_on: int = 0) -> tuple[date, date]:
    """First and last day of the week containing ``value``.

    ``week_starts_on`` counts from Sunday (0) like the mobile client.
    """
    day = to_day(value)
    # date.weekday() is Monday=0; shift to Sunday=0
    offset = (day.weekday() + 1 - week_starts_on) % 7
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=6)


def month_range(value: DateLike) -> tuple[date, date]:
    """First and last day of the month containing ``value``."""
    first = to_day(value).replace(day=1)
    return first, first + relativedelta(months=1, days=-1)


def add_period(value: DateLike, recurrence: RecurrenceType) -> date | None:
    """Advance ``value`` by one recurrence period.

    Month-based periods clamp to the last day of shorter months
    (Jan 31 -> Feb 28/29). Returns None for one-time recurrences.
    """
    period = _PERIODS.get(recurrence)
    if period is None:
        return None
    return to_day(value) + period
