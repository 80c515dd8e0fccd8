"""Weekly goals collection.

Lookup and creation are separate: ``find`` never mutates, and
``get_or_create`` is the only way a goal appears implicitly.
"""

from __future__ import annotations

import logging
from typing import Any

from ..dates import DateLike, to_day, to_day_string
from ..local.snapshot import LocalSnapshotStore
from ..records import AllocatedBill, WeeklyGoal
from ..remote.base import RemoteCollectionFactory, SortOrder
from ..sync.collection import SyncedCollection

logger = logging.getLogger(__name__)

WEEKLY_GOALS_COLLECTION = "weeklyGoals"


class WeeklyGoalsCollection(SyncedCollection[WeeklyGoal]):
    def __init__(
        self,
        snapshots: LocalSnapshotStore,
        remote_factory: RemoteCollectionFactory | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("order", SortOrder("weekStartDate", descending=True))
        super().__init__(WEEKLY_GOALS_COLLECTION, WeeklyGoal, snapshots, remote_factory, **kwargs)

    def find(self, week_start: DateLike, week_end: DateLike) -> WeeklyGoal | None:
        """The goal whose week matches ``[week_start, week_end]`` by calendar day."""
        start, end = to_day(week_start), to_day(week_end)
        for goal in self.records:
            try:
                if to_day(goal.week_start_date) == start and to_day(goal.week_end_date) == end:
                    return goal
            except ValueError:
                logger.debug(f"Goal {goal.id} has unparseable week bounds")
        return None

    def get_or_create(
        self,
        week_start: DateLike,
        week_end: DateLike,
        income_target: float = 0,
    ) -> WeeklyGoal:
        """Return the goal for the week, creating an empty one if missing."""
        goal = self.find(week_start, week_end)
        if goal is not None:
            return goal
        goal_id = self.create(
            WeeklyGoal(
                week_start_date=to_day_string(week_start),
                week_end_date=to_day_string(week_end),
                income_target=income_target,
            )
        )
        return self.get(goal_id)

    def allocate_bill(self, goal_id: str, expense_id: str, amount: float) -> bool:
        """Set aside ``amount`` of a bill in the goal's week.

        An existing allocation for the same bill has its amount replaced
        and keeps its completion flag.

        Returns:
            False if no goal has ``goal_id``
        """
        goal = self.get(goal_id)
        if goal is None:
            return False

        allocations = []
        replaced = False
        for allocation in goal.allocated_bills:
            if allocation.expense_id == expense_id:
                allocation = AllocatedBill(expense_id, amount, allocation.is_complete)
                replaced = True
            allocations.append(allocation)
        if not replaced:
            allocations.append(AllocatedBill(expense_id, amount))

        return self.update(goal.copy(allocated_bills=allocations))

    def mark_allocation_complete(self, goal_id: str, expense_id: str, is_complete: bool) -> bool:
        """Flag a bill allocation done or not done.

        Returns:
            False if the goal or the allocation does not exist
        """
        goal = self.get(goal_id)
        if goal is None:
            return False
        if not any(a.expense_id == expense_id for a in goal.allocated_bills):
            return False

        allocations = [
            AllocatedBill(a.expense_id, a.weekly_amount, is_complete)
            if a.expense_id == expense_id
            else a
            for a in goal.allocated_bills
        ]
        return self.update(goal.copy(allocated_bills=allocations))

    def remove_allocation(self, goal_id: str, expense_id: str) -> bool:
        goal = self.get(goal_id)
        if goal is None:
            return False
        allocations = [a for a in goal.allocated_bills if a.expense_id != expense_id]
        if len(allocations) == len(goal.allocated_bills):
            return False
        return self.update(goal.copy(allocated_bills=allocations))
