"""
Job Tracker Storage

Local-first persistence and sync for a job and expense tracker.

Provides:
- Per-user record collections (jobs, bills, personal expenses, weekly goals)
- A durable on-device snapshot cache that works offline
- Optional Cosmos DB mirroring with live change subscriptions
- Derived views (weekly/monthly/yearly earnings, category breakdowns)
- Recurring bill projection

Usage:

    >>> from job_tracker_storage import IdentitySource, StorageConfig, StorageSession, UserIdentity
    >>> source = IdentitySource()
    >>> session = await StorageSession.create(StorageConfig.from_environment(), source)
    >>> await source.set_identity(UserIdentity("user-123"))
    >>> session.jobs.create({"address": "1 Main St", "amount": 300, "date": "2024-01-05"})
    >>> session.jobs.weekly_summary("2024-01-01", "2024-01-07").net_earnings
"""

from .config import CosmosAuthMethod, CosmosConfig, StorageConfig
from .exceptions import (
    AuthenticationError,
    IdentityNotSetError,
    JobTrackerStorageError,
    RemoteUnavailableError,
    RemoteWriteError,
    SnapshotDecodeError,
    StorageIOError,
    ValidationError,
)
from .identity import OFFLINE_USER_ID, ConfigFileIdentityProvider, IdentitySource, UserIdentity
from .records import (
    AllocatedBill,
    Expense,
    ExpenseCategory,
    Job,
    PaymentMethod,
    PersonalExpense,
    PersonalExpenseCategory,
    Record,
    RecurrenceType,
    WeeklyGoal,
)
from .recurrence import RecurrenceProjector
from .session import StorageSession
from .stores import (
    ExpensesCollection,
    JobsCollection,
    PersonalExpensesCollection,
    WeeklyGoalsCollection,
)
from .sync import SyncedCollection, SyncState, SyncStatus

__version__ = "0.1.0"

__all__ = [
    # Session
    "StorageSession",
    # Configuration
    "StorageConfig",
    "CosmosConfig",
    "CosmosAuthMethod",
    # Identity
    "OFFLINE_USER_ID",
    "UserIdentity",
    "IdentitySource",
    "ConfigFileIdentityProvider",
    # Records
    "Record",
    "Job",
    "Expense",
    "PersonalExpense",
    "WeeklyGoal",
    "AllocatedBill",
    "PaymentMethod",
    "ExpenseCategory",
    "PersonalExpenseCategory",
    "RecurrenceType",
    # Collections
    "SyncedCollection",
    "JobsCollection",
    "ExpensesCollection",
    "PersonalExpensesCollection",
    "WeeklyGoalsCollection",
    "RecurrenceProjector",
    # Sync status
    "SyncState",
    "SyncStatus",
    # Exceptions
    "JobTrackerStorageError",
    "StorageIOError",
    "SnapshotDecodeError",
    "RemoteUnavailableError",
    "RemoteWriteError",
    "AuthenticationError",
    "IdentityNotSetError",
    "ValidationError",
]
