"""Personal expenses collection."""

from __future__ import annotations

from typing import Any

from ..dates import DateLike
from ..local.snapshot import LocalSnapshotStore
from ..queries import breakdown_by_category, by_category, by_date_range, total_for_range
from ..records import PersonalExpense, PersonalExpenseCategory
from ..remote.base import RemoteCollectionFactory, SortOrder
from ..sync.collection import SyncedCollection

PERSONAL_EXPENSES_COLLECTION = "personalExpenses"


class PersonalExpensesCollection(SyncedCollection[PersonalExpense]):
    def __init__(
        self,
        snapshots: LocalSnapshotStore,
        remote_factory: RemoteCollectionFactory | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("order", SortOrder("date", descending=True))
        super().__init__(
            PERSONAL_EXPENSES_COLLECTION, PersonalExpense, snapshots, remote_factory, **kwargs
        )

    def by_date_range(self, start: DateLike, end: DateLike) -> list[PersonalExpense]:
        return by_date_range(self.records, start, end, "date")

    def by_category(self, category: PersonalExpenseCategory) -> list[PersonalExpense]:
        return by_category(self.records, category)

    def total_for_range(self, start: DateLike, end: DateLike) -> float:
        return total_for_range(self.records, start, end, "date")

    def breakdown_by_category(
        self, start: DateLike, end: DateLike
    ) -> dict[PersonalExpenseCategory, float]:
        """Amount per category in range; every category is present."""
        return breakdown_by_category(self.records, start, end, PersonalExpenseCategory, "date")
