"""
Record types for the synchronized collections.

Every record shares ``id``, ``createdAt`` and ``updatedAt``; variants
add their domain fields. Records serialize to the camelCase documents
stored in the local snapshot and the remote mirror. Keys this version
does not know about are kept in ``extra`` and written back unchanged.
"""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from typing import Any, ClassVar, TypeVar

R = TypeVar("R", bound="Record")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class PaymentMethod(enum.Enum):
    """How a job was paid."""

    CASH = "Cash"
    CHECK = "Check"
    ZELLE = "Zelle"
    SQUARE = "Square"
    CHARGE = "Charge"
    PAID_TO_ME = "PaidToMe"


class ExpenseCategory(enum.Enum):
    """Bill categories."""

    FIXED = "Fixed"
    VARIABLE = "Variable"
    BUSINESS = "Business"
    PERSONAL = "Personal"
    OTHER = "Other"


class RecurrenceType(enum.Enum):
    """Recurrence period of a bill. ONE_TIME is terminal."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    BIWEEKLY = "Biweekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"
    ONE_TIME = "OneTime"


class PersonalExpenseCategory(enum.Enum):
    """Categories for out-of-pocket personal expenses."""

    GAS = "Gas"
    FOOD = "Food"
    WATER = "Water"
    ENTERTAINMENT = "Entertainment"
    SUPPLIES = "Supplies"
    TOOLS = "Tools"
    REPAIRS = "Repairs"
    OTHER = "Other"


@dataclass
class Record:
    """Base record.

    ``id``, ``created_at`` and ``updated_at`` are assigned by the
    collection; callers never set them on create.
    """

    id: str = ""
    created_at: str = ""
    updated_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # Wire keys that are not plain camelCase of the attribute name
    _aliases: ClassVar[dict[str, tuple[str, ...]]] = {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a camelCase document."""
        data: dict[str, Any] = dict(self.extra)
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            data[to_camel(f.name)] = _encode(value)
        return data

    @classmethod
    def from_dict(cls: type[R], data: dict[str, Any]) -> R:
        """Deserialize from a camelCase document."""
        hints = typing.get_type_hints(cls)
        remaining = dict(data)
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "extra":
                continue
            keys = (to_camel(f.name), *cls._aliases.get(f.name, ()))
            for key in keys:
                if key in remaining:
                    kwargs[f.name] = _decode(hints[f.name], remaining.pop(key))
                    break
        kwargs["extra"] = remaining
        return cls(**kwargs)

    def copy(self: R, **changes: Any) -> R:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass
class Job(Record):
    """A completed or scheduled job."""

    address: str = ""
    city: str = ""
    yards: float = 0
    is_paid: bool = False
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount: float = 0
    date: str = ""
    sequence_number: int = 0
    company_name: str | None = None
    notes: str | None = None


@dataclass
class Expense(Record):
    """A bill, optionally recurring.

    Daily/ledger expenses (``is_daily_expense``) are dated by
    ``expense_date`` and never show up as upcoming bills.
    """

    name: str = ""
    amount: float = 0
    due_date: str = ""
    is_paid: bool = False
    paid_date: str | None = None
    category: ExpenseCategory = ExpenseCategory.OTHER
    recurrence: RecurrenceType = RecurrenceType.ONE_TIME
    next_due_date: str | None = None
    notes: str | None = None
    is_daily_expense: bool = False
    expense_date: str | None = None

    @property
    def effective_date(self) -> str:
        return self.expense_date or self.due_date


@dataclass
class PersonalExpense(Record):
    """Out-of-pocket expense, optionally tied to a job."""

    amount: float = 0
    category: PersonalExpenseCategory = PersonalExpenseCategory.OTHER
    description: str = ""
    date: str = ""
    job_id: str | None = None


@dataclass
class AllocatedBill:
    """Portion of a bill set aside during one week."""

    expense_id: str
    weekly_amount: float
    is_complete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "expenseId": self.expense_id,
            "weeklyAmount": self.weekly_amount,
            "isComplete": self.is_complete,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AllocatedBill:
        return cls(
            expense_id=data["expenseId"],
            weekly_amount=data.get("weeklyAmount", 0),
            is_complete=data.get("isComplete", False),
        )


@dataclass
class WeeklyGoal(Record):
    """Income target and bill allocations for one week."""

    week_start_date: str = ""
    week_end_date: str = ""
    income_target: float = 0
    actual_income: float = 0
    allocated_bills: list[AllocatedBill] = field(default_factory=list)
    notes: str | None = None

    # Older documents used weekStart/weekEnd
    _aliases: ClassVar[dict[str, tuple[str, ...]]] = {
        "week_start_date": ("weekStart",),
        "week_end_date": ("weekEnd",),
    }


def _encode(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _decode(hint: Any, value: Any) -> Any:
    if value is None:
        return None
    # Unwrap Optional[X] / X | None
    args = [a for a in typing.get_args(hint) if a is not type(None)]
    origin = typing.get_origin(hint)
    if origin is list and args:
        return [_decode(args[0], item) for item in value]
    if args and origin is not list:
        hint = args[0]
    if isinstance(hint, type):
        if issubclass(hint, enum.Enum):
            return hint(value)
        if hasattr(hint, "from_dict") and isinstance(value, dict):
            return hint.from_dict(value)
    return value
