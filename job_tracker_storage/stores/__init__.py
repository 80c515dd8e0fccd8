"""Per-entity synchronized collections."""

from .expenses import EXPENSES_COLLECTION, ExpensesCollection
from .jobs import JOBS_COLLECTION, JobsCollection
from .personal_expenses import PERSONAL_EXPENSES_COLLECTION, PersonalExpensesCollection
from .weekly_goals import WEEKLY_GOALS_COLLECTION, WeeklyGoalsCollection

__all__ = [
    "EXPENSES_COLLECTION",
    "ExpensesCollection",
    "JOBS_COLLECTION",
    "JobsCollection",
    "PERSONAL_EXPENSES_COLLECTION",
    "PersonalExpensesCollection",
    "WEEKLY_GOALS_COLLECTION",
    "WeeklyGoalsCollection",
]
