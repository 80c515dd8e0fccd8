"""Tests for the per-entity collections."""

from __future__ import annotations

import pytest

from job_tracker_storage.identity import UserIdentity
from job_tracker_storage.local import LocalSnapshotStore
from job_tracker_storage.records import (
    AllocatedBill,
    Expense,
    Job,
    PaymentMethod,
    PersonalExpense,
    PersonalExpenseCategory,
)
from job_tracker_storage.stores import (
    ExpensesCollection,
    JobsCollection,
    PersonalExpensesCollection,
    WeeklyGoalsCollection,
)

from conftest import FakeRemoteServer, sequential_ids, ticking_clock


class TestJobsCollection:
    @pytest.mark.asyncio
    async def test_summaries(self, snapshots: LocalSnapshotStore, offline: UserIdentity) -> None:
        jobs = JobsCollection(snapshots, id_factory=sequential_ids("job"), clock=ticking_clock())
        await jobs.initialize(offline)
        jobs.create(Job(amount=300, date="2024-01-02", is_paid=True, payment_method=PaymentMethod.CASH))
        jobs.create(Job(amount=200, date="2024-01-03", is_paid=True, payment_method=PaymentMethod.PAID_TO_ME))
        jobs.create(Job(amount=80, date="2024-02-10", is_paid=False))

        assert jobs.weekly_summary("2024-01-01", "2024-01-07").net_earnings == -250
        assert len(jobs.by_date_range("2024-01-01", "2024-01-31")) == 2

        fuel = [PersonalExpense(amount=25, date="2024-02-11")]
        assert jobs.monthly_summary(2024, 2, fuel).personal_expenses == 25
        assert jobs.yearly_summary(2024).total_earnings == 580

    @pytest.mark.asyncio
    async def test_remote_ordering_by_date(
        self, snapshots: LocalSnapshotStore, server: FakeRemoteServer, alice: UserIdentity
    ) -> None:
        server.seed(
            "alice-uid",
            "jobs",
            [{"id": "1", "date": "2024-01-01"}, {"id": "2", "date": "2024-03-01"}, {"id": "3", "date": "2024-02-01"}],
        )
        jobs = JobsCollection(snapshots, server.factory)

        await jobs.initialize(alice)

        assert [j.id for j in jobs.records] == ["2", "3", "1"]


class TestExpensesCollection:
    @pytest.fixture
    async def expenses(self, snapshots: LocalSnapshotStore, offline: UserIdentity) -> ExpensesCollection:
        collection = ExpensesCollection(snapshots, id_factory=sequential_ids("exp"), clock=ticking_clock())
        await collection.initialize(offline)
        return collection

    @pytest.mark.asyncio
    async def test_daily_views(self, expenses: ExpensesCollection) -> None:
        expenses.create(Expense(name="Coffee", amount=5, due_date="2024-01-10", expense_date="2024-01-10", is_daily_expense=True))
        expenses.create(Expense(name="Lunch", amount=12, due_date="2024-01-10", expense_date="2024-01-10", is_daily_expense=True))
        expenses.create(Expense(name="Gas", amount=40, due_date="2024-01-12", expense_date="2024-01-12", is_daily_expense=True))
        expenses.create(Expense(name="Rent", amount=1200, due_date="2024-01-31"))

        assert [e.name for e in expenses.daily_expenses_on("2024-01-10")] == ["Coffee", "Lunch"]
        assert expenses.total_daily_for_range("2024-01-01", "2024-01-31") == 57
        assert [s.date for s in expenses.daily_summary("2024-01-01", "2024-01-31")] == ["2024-01-12", "2024-01-10"]
        assert [e.name for e in expenses.upcoming("2024-01-01", "2024-01-31")] == ["Rent"]
        assert [e.name for e in expenses.by_due_date_range("2024-01-31", "2024-01-31")] == ["Rent"]


class TestPersonalExpensesCollection:
    @pytest.mark.asyncio
    async def test_views(self, snapshots: LocalSnapshotStore, offline: UserIdentity) -> None:
        personal = PersonalExpensesCollection(snapshots)
        await personal.initialize(offline)
        personal.create(PersonalExpense(amount=20, category=PersonalExpenseCategory.GAS, date="2024-01-02"))
        personal.create(PersonalExpense(amount=8, category=PersonalExpenseCategory.FOOD, date="2024-01-03"))
        personal.create(PersonalExpense(amount=30, category=PersonalExpenseCategory.GAS, date="2024-02-02"))

        assert len(personal.by_category(PersonalExpenseCategory.GAS)) == 2
        assert len(personal.by_date_range("2024-01-01", "2024-01-31")) == 2
        assert personal.total_for_range("2024-01-01", "2024-01-31") == 28

        breakdown = personal.breakdown_by_category("2024-01-01", "2024-01-31")
        assert set(breakdown) == set(PersonalExpenseCategory)
        assert breakdown[PersonalExpenseCategory.GAS] == 20
        assert breakdown[PersonalExpenseCategory.REPAIRS] == 0


class TestWeeklyGoalsCollection:
    """Explicit find versus get_or_create."""

    @pytest.fixture
    async def goals(self, snapshots: LocalSnapshotStore, offline: UserIdentity) -> WeeklyGoalsCollection:
        collection = WeeklyGoalsCollection(snapshots, id_factory=sequential_ids("goal"), clock=ticking_clock())
        await collection.initialize(offline)
        return collection

    @pytest.mark.asyncio
    async def test_find_does_not_create(self, goals: WeeklyGoalsCollection) -> None:
        assert goals.find("2024-01-07", "2024-01-13") is None
        assert len(goals) == 0

    @pytest.mark.asyncio
    async def test_get_or_create_is_stable(self, goals: WeeklyGoalsCollection) -> None:
        created = goals.get_or_create("2024-01-07", "2024-01-13")
        again = goals.get_or_create("2024-01-07T00:00:00Z", "2024-01-13T23:59:59Z")

        assert created.id == again.id
        assert created.week_start_date == "2024-01-07"
        assert created.income_target == 0
        assert created.allocated_bills == []
        assert len(goals) == 1

    @pytest.mark.asyncio
    async def test_find_matches_by_day(self, goals: WeeklyGoalsCollection) -> None:
        goal = goals.get_or_create("2024-01-07", "2024-01-13", income_target=1500)

        found = goals.find("2024-01-07T05:00:00-05:00", "2024-01-13")

        assert found is not None
        assert found.id == goal.id
        assert found.income_target == 1500

    @pytest.mark.asyncio
    async def test_allocate_bill(self, goals: WeeklyGoalsCollection) -> None:
        goal = goals.get_or_create("2024-01-07", "2024-01-13")

        assert goals.allocate_bill(goal.id, "exp-1", 300) is True
        assert goals.mark_allocation_complete(goal.id, "exp-1", True) is True
        assert goals.allocate_bill(goal.id, "exp-1", 350) is True
        assert goals.allocate_bill(goal.id, "exp-2", 50) is True

        assert goals.get(goal.id).allocated_bills == [
            AllocatedBill("exp-1", 350, True),
            AllocatedBill("exp-2", 50, False),
        ]

    @pytest.mark.asyncio
    async def test_allocation_on_missing_goal_or_bill(self, goals: WeeklyGoalsCollection) -> None:
        goal = goals.get_or_create("2024-01-07", "2024-01-13")

        assert goals.allocate_bill("missing", "exp-1", 10) is False
        assert goals.mark_allocation_complete(goal.id, "exp-9", True) is False
        assert goals.remove_allocation(goal.id, "exp-9") is False

    @pytest.mark.asyncio
    async def test_remove_allocation(self, goals: WeeklyGoalsCollection) -> None:
        goal = goals.get_or_create("2024-01-07", "2024-01-13")
        goals.allocate_bill(goal.id, "exp-1", 300)

        assert goals.remove_allocation(goal.id, "exp-1") is True
        assert goals.get(goal.id).allocated_bills == []
