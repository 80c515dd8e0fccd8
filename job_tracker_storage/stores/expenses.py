"""Bills collection, including ledger-mode daily expenses."""

from __future__ import annotations

from typing import Any

from ..dates import DateLike
from ..local.snapshot import LocalSnapshotStore
from ..queries import (
    DailyExpenseSummary,
    by_date_range,
    daily_expense_summary,
    daily_expenses,
    upcoming_expenses,
)
from ..records import Expense, utc_now_iso
from ..recurrence import RecurrenceProjector
from ..remote.base import RemoteCollectionFactory, SortOrder
from ..sync.collection import SyncedCollection

EXPENSES_COLLECTION = "expenses"


class ExpensesCollection(SyncedCollection[Expense]):
    """Bills ordered by due date, newest first.

    Paying a recurring bill projects its next occurrence through the
    RecurrenceProjector bound to this collection.
    """

    def __init__(
        self,
        snapshots: LocalSnapshotStore,
        remote_factory: RemoteCollectionFactory | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("order", SortOrder("dueDate", descending=True))
        super().__init__(EXPENSES_COLLECTION, Expense, snapshots, remote_factory, **kwargs)
        self.projector = RecurrenceProjector(self)

    def mark_as_paid(self, record_id: str, paid_date: str | None = None) -> bool:
        """Mark a bill paid and project its next occurrence.

        Returns:
            False if no bill has ``record_id``
        """
        expense = self.get(record_id)
        if expense is None:
            return False
        paid = expense.copy(is_paid=True, paid_date=paid_date or utc_now_iso())
        self.update(paid)
        self.projector.project(paid)
        return True

    def mark_as_unpaid(self, record_id: str) -> bool:
        """Clear the paid flag. Projected successors are left in place."""
        expense = self.get(record_id)
        if expense is None:
            return False
        return self.update(expense.copy(is_paid=False, paid_date=None))

    def upcoming(self, start: DateLike, end: DateLike) -> list[Expense]:
        return upcoming_expenses(self.records, start, end)

    def by_due_date_range(self, start: DateLike, end: DateLike) -> list[Expense]:
        return by_date_range(self.records, start, end, "due_date")

    def daily_expenses(self, start: DateLike, end: DateLike) -> list[Expense]:
        return daily_expenses(self.records, start, end)

    def daily_expenses_on(self, day: DateLike) -> list[Expense]:
        return daily_expenses(self.records, day, day)

    def daily_summary(self, start: DateLike, end: DateLike) -> list[DailyExpenseSummary]:
        return daily_expense_summary(self.records, start, end)

    def total_daily_for_range(self, start: DateLike, end: DateLike) -> float:
        return sum(expense.amount for expense in self.daily_expenses(start, end))
