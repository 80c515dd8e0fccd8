"""
Derived read-only views over record snapshots.

Every function is pure: it takes the records to look at and returns a
fresh result. Date ranges are inclusive and compared by calendar day
(see ``dates.to_day``), so boundary records are never lost to
time-of-day or timezone offsets.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TypeVar

from .dates import DateLike, month_range, to_day
from .records import Expense, Job, PaymentMethod, PersonalExpense, Record

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)
E = TypeVar("E", bound=Enum)

DateOf = Callable[[T], str] | str


def _date_getter(date_of: DateOf) -> Callable[[Record], str]:
    if isinstance(date_of, str):
        return lambda record: getattr(record, date_of)
    return date_of


def _record_day(record: Record, getter: Callable[[Record], str]) -> date | None:
    try:
        return to_day(getter(record))
    except (TypeError, ValueError, AttributeError):
        logger.debug(f"Record {record.id} has no usable date")
        return None


def by_id(records: Iterable[T], record_id: str) -> T | None:
    """Exact id match, or None."""
    return next((record for record in records if record.id == record_id), None)


def by_date_range(
    records: Iterable[T],
    start: DateLike,
    end: DateLike,
    date_of: DateOf = "date",
) -> list[T]:
    """Records whose date falls within ``[start, end]`` by calendar day.

    Args:
        records: Records to filter
        start: First day of the range (time of day ignored)
        end: Last day of the range (time of day ignored)
        date_of: Attribute name or callable giving each record's date
    """
    first, last = to_day(start), to_day(end)
    getter = _date_getter(date_of)
    matched = []
    for record in records:
        day = _record_day(record, getter)
        if day is not None and first <= day <= last:
            matched.append(record)
    return matched


def by_category(records: Iterable[T], category: Enum) -> list[T]:
    """Records whose ``category`` equals ``category``."""
    return [record for record in records if getattr(record, "category", None) == category]


def total_for_range(
    records: Iterable[T],
    start: DateLike,
    end: DateLike,
    date_of: DateOf = "date",
) -> float:
    """Sum of ``amount`` over ``by_date_range``."""
    return sum(record.amount for record in by_date_range(records, start, end, date_of))


def breakdown_by_category(
    records: Iterable[T],
    start: DateLike,
    end: DateLike,
    categories: Iterable[E],
    date_of: DateOf = "date",
) -> dict[E, float]:
    """Summed amount per category within the range.

    Every category in ``categories`` is present in the result, with 0
    when nothing in range matches it.
    """
    breakdown: dict[E, float] = {category: 0 for category in categories}
    for record in by_date_range(records, start, end, date_of):
        category = getattr(record, "category", None)
        if category in breakdown:
            breakdown[category] += record.amount
    return breakdown


def group_by_date(records: Iterable[T], date_of: DateOf = "date") -> dict[str, list[T]]:
    """Group records by ``YYYY-MM-DD`` of their date."""
    getter = _date_getter(date_of)
    groups: dict[str, list[T]] = defaultdict(list)
    for record in records:
        day = _record_day(record, getter)
        if day is not None:
            groups[day.isoformat()].append(record)
    return dict(groups)


# =============================================================================
# Job summaries
# =============================================================================


@dataclass(frozen=True)
class WeeklySummary:
    """Commission-split earnings for a range of jobs."""

    start_date: str
    end_date: str
    total_jobs: int
    total_earnings: float
    total_unpaid: float
    cash_payments: float
    paid_to_me_amount: float
    net_earnings: float


def weekly_summary(jobs: Iterable[Job], start: DateLike, end: DateLike) -> WeeklySummary:
    """Summarize jobs in ``[start, end]``.

    Net earnings follow the commission split: half of total earnings,
    minus cash already collected and money paid directly to the worker.
    """
    in_range = by_date_range(jobs, start, end, "date")

    total_earnings = sum(job.amount for job in in_range)
    total_unpaid = sum(job.amount for job in in_range if not job.is_paid)
    cash_payments = sum(
        job.amount for job in in_range if job.is_paid and job.payment_method == PaymentMethod.CASH
    )
    paid_to_me_amount = sum(
        job.amount
        for job in in_range
        if job.is_paid and job.payment_method == PaymentMethod.PAID_TO_ME
    )
    net_earnings = (total_earnings / 2) - cash_payments - paid_to_me_amount

    return WeeklySummary(
        start_date=to_day(start).isoformat(),
        end_date=to_day(end).isoformat(),
        total_jobs=len(in_range),
        total_earnings=total_earnings,
        total_unpaid=total_unpaid,
        cash_payments=cash_payments,
        paid_to_me_amount=paid_to_me_amount,
        net_earnings=net_earnings,
    )


@dataclass(frozen=True)
class MonthlySummary:
    """Job and personal expense totals for one calendar month."""

    year: int
    month: int
    total_jobs: int
    total_earnings: float
    total_unpaid: float
    personal_expenses: float


def monthly_summary(
    jobs: Iterable[Job],
    year: int,
    month: int,
    personal_expenses: Iterable[PersonalExpense] = (),
) -> MonthlySummary:
    """Summarize one calendar month (``month`` is 1-12)."""
    first, last = month_range(date(year, month, 1))
    in_range = by_date_range(jobs, first, last, "date")
    return MonthlySummary(
        year=year,
        month=month,
        total_jobs=len(in_range),
        total_earnings=sum(job.amount for job in in_range),
        total_unpaid=sum(job.amount for job in in_range if not job.is_paid),
        personal_expenses=total_for_range(personal_expenses, first, last, "date"),
    )


@dataclass(frozen=True)
class MonthBreakdown:
    month: int
    earnings: float
    expenses: float


@dataclass(frozen=True)
class YearlySummary:
    """Totals for a calendar year with a per-month breakdown."""

    year: int
    total_jobs: int
    total_earnings: float
    total_unpaid: float
    monthly_breakdown: list[MonthBreakdown] = field(default_factory=list)


def yearly_summary(
    jobs: Iterable[Job],
    year: int,
    personal_expenses: Iterable[PersonalExpense] = (),
) -> YearlySummary:
    """Summarize a calendar year; the breakdown always has 12 months."""
    jobs = list(jobs)
    personal_expenses = list(personal_expenses)
    months = [monthly_summary(jobs, year, month, personal_expenses) for month in range(1, 13)]
    return YearlySummary(
        year=year,
        total_jobs=sum(m.total_jobs for m in months),
        total_earnings=sum(m.total_earnings for m in months),
        total_unpaid=sum(m.total_unpaid for m in months),
        monthly_breakdown=[
            MonthBreakdown(month=m.month, earnings=m.total_earnings, expenses=m.personal_expenses)
            for m in months
        ],
    )


# =============================================================================
# Expense views
# =============================================================================


@dataclass(frozen=True)
class DailyExpenseSummary:
    date: str
    total_amount: float
    expenses: list[Expense]


def daily_expenses(expenses: Iterable[Expense], start: DateLike, end: DateLike) -> list[Expense]:
    """Ledger-mode expenses dated within the range."""
    ledger = [expense for expense in expenses if expense.is_daily_expense]
    return by_date_range(ledger, start, end, lambda e: e.effective_date)


def daily_expense_summary(
    expenses: Iterable[Expense],
    start: DateLike,
    end: DateLike,
) -> list[DailyExpenseSummary]:
    """Ledger expenses grouped per day, newest day first."""
    groups = group_by_date(daily_expenses(expenses, start, end), lambda e: e.effective_date)
    summaries = [
        DailyExpenseSummary(
            date=day,
            total_amount=sum(expense.amount for expense in items),
            expenses=items,
        )
        for day, items in groups.items()
    ]
    return sorted(summaries, key=lambda s: s.date, reverse=True)


def upcoming_expenses(
    expenses: Sequence[Expense],
    start: DateLike,
    end: DateLike,
) -> list[Expense]:
    """Bills due within the range plus unpaid bills overdue before it.

    Ledger-mode expenses are excluded.
    """
    first, last = to_day(start), to_day(end)
    upcoming = []
    for expense in expenses:
        if expense.is_daily_expense:
            continue
        due = _record_day(expense, lambda e: e.due_date)
        if due is None:
            continue
        if first <= due <= last or (not expense.is_paid and due < first):
            upcoming.append(expense)
    return upcoming
