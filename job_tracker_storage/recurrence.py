"""
Recurrence projector for bills.

When a recurring bill is paid, the next occurrence is materialized as a
new unpaid bill. Projection is idempotent: a successor with the same
name, amount and due date is never created twice.

Per-bill states:
    UNPAID          -> mark as paid -> PAID_TERMINAL (one-time bill)
                                    -> PAID_RECURRING (successor projected)
"""

from __future__ import annotations

import logging
from enum import Enum

from .dates import DateLike, add_period, to_day
from .records import Expense, RecurrenceType
from .sync.collection import SyncedCollection

logger = logging.getLogger(__name__)


class ExpenseState(Enum):
    UNPAID = "unpaid"
    PAID_TERMINAL = "paid_terminal"
    PAID_RECURRING = "paid_recurring"


def state_of(expense: Expense) -> ExpenseState:
    if not expense.is_paid:
        return ExpenseState.UNPAID
    if expense.recurrence == RecurrenceType.ONE_TIME:
        return ExpenseState.PAID_TERMINAL
    return ExpenseState.PAID_RECURRING


def next_due_date(due_date: DateLike, recurrence: RecurrenceType) -> str | None:
    """Due date one recurrence period after ``due_date`` (``YYYY-MM-DD``).

    Returns None for one-time bills.
    """
    advanced = add_period(due_date, recurrence)
    return advanced.isoformat() if advanced is not None else None


def _same_day(left: str | None, right: str) -> bool:
    if not left:
        return False
    try:
        return to_day(left) == to_day(right)
    except ValueError:
        return False


class RecurrenceProjector:
    """Materializes successors of recurring bills in an expenses collection."""

    def __init__(self, expenses: SyncedCollection[Expense]) -> None:
        self.expenses = expenses

    def find_successor(self, expense: Expense) -> Expense | None:
        """The existing successor of ``expense``, if any."""
        due = next_due_date(expense.due_date, expense.recurrence)
        if due is None:
            return None
        for candidate in self.expenses.records:
            if (
                candidate.id != expense.id
                and candidate.name == expense.name
                and candidate.amount == expense.amount
                and _same_day(candidate.due_date, due)
            ):
                return candidate
        return None

    def project(self, expense: Expense) -> str | None:
        """Create the next occurrence of ``expense`` unless it already exists.

        Only a paid recurring bill has a successor.

        Returns:
            Id of the created successor, or None when no successor is due
            or one already exists
        """
        if state_of(expense) is not ExpenseState.PAID_RECURRING:
            return None

        due = next_due_date(expense.due_date, expense.recurrence)
        if due is None:
            return None

        if self.find_successor(expense) is not None:
            logger.debug(f"Successor of {expense.id} due {due} already exists")
            return None

        successor = expense.copy(
            due_date=due,
            next_due_date=next_due_date(due, expense.recurrence),
            is_paid=False,
            paid_date=None,
        )
        successor_id = self.expenses.create(successor)
        logger.info(f"Projected {expense.recurrence.value} bill '{expense.name}' to {due}")
        return successor_id
