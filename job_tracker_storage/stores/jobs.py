"""Jobs collection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..dates import DateLike
from ..local.snapshot import LocalSnapshotStore
from ..queries import (
    MonthlySummary,
    WeeklySummary,
    YearlySummary,
    by_date_range,
    monthly_summary,
    weekly_summary,
    yearly_summary,
)
from ..records import Job, PersonalExpense
from ..remote.base import RemoteCollectionFactory, SortOrder
from ..sync.collection import SyncedCollection

JOBS_COLLECTION = "jobs"


class JobsCollection(SyncedCollection[Job]):
    """Jobs, newest first in the remote ordering."""

    def __init__(
        self,
        snapshots: LocalSnapshotStore,
        remote_factory: RemoteCollectionFactory | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("order", SortOrder("date", descending=True))
        super().__init__(JOBS_COLLECTION, Job, snapshots, remote_factory, **kwargs)

    def by_date_range(self, start: DateLike, end: DateLike) -> list[Job]:
        return by_date_range(self.records, start, end, "date")

    def weekly_summary(self, start: DateLike, end: DateLike) -> WeeklySummary:
        return weekly_summary(self.records, start, end)

    def monthly_summary(
        self,
        year: int,
        month: int,
        personal_expenses: Iterable[PersonalExpense] = (),
    ) -> MonthlySummary:
        return monthly_summary(self.records, year, month, personal_expenses)

    def yearly_summary(
        self,
        year: int,
        personal_expenses: Iterable[PersonalExpense] = (),
    ) -> YearlySummary:
        return yearly_summary(self.records, year, personal_expenses)
