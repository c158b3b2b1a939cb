"""
Data models for groups, expenses, settlements and analytics results.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from .errors import ValidationError

__all__ = [
    "SplitMethod",
    "Group",
    "Expense",
    "Settlement",
    "GroupScope",
    "UserScope",
    "AnalyticsResult",
    "DEFAULT_CATEGORY",
    "EPSILON",
    "to_decimal",
    "to_minor",
    "from_minor",
    "quantize",
]

DEFAULT_CATEGORY = "Other"

# Currency values carry two decimal places; one minor unit is the tolerance.
MINOR_UNITS = 100
CENT = Decimal("0.01")
EPSILON = CENT


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a currency value to Decimal without picking up float noise."""
    if isinstance(value, Decimal):
        result = value
    else:
        if isinstance(value, bool):
            raise ValidationError(f"Invalid currency value: {value!r}")
        try:
            # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
            result = Decimal(str(value))
        except (ValueError, InvalidOperation) as e:
            raise ValidationError(f"Invalid currency value: {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"Invalid currency value: {value!r}")
    return result


def to_minor(value: Decimal | float | int | str, exact: bool = False) -> int:
    """
    Convert a currency value to an integer count of minor units.
    With exact=True, values finer than one minor unit are rejected instead of
    being rounded half-up.
    """
    scaled = to_decimal(value) * MINOR_UNITS
    whole = scaled.to_integral_value(rounding=ROUND_HALF_UP)
    if exact and whole != scaled:
        raise ValidationError(
            f"Amount {value} has more precision than one minor unit ({CENT})"
        )
    return int(whole)


def from_minor(minor: int) -> Decimal:
    """Convert an integer count of minor units back to a 2-dp Decimal."""
    return (Decimal(minor) / MINOR_UNITS).quantize(CENT)


def quantize(value: Decimal) -> Decimal:
    """Round a Decimal half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class SplitMethod(Enum):
    """How an expense amount is divided among its participants."""

    EQUAL = "equal"
    CUSTOM = "custom"


class Group:
    """A named group with an ordered roster of unique members."""

    def __init__(self, group_id: str, name: str, members: list[str]) -> None:
        if len(set(members)) != len(members):
            raise ValidationError(f"Group {group_id} has duplicate members")
        self.id = group_id
        self.name = name
        self.members = tuple(members)

    def __contains__(self, member: object) -> bool:
        return member in self.members

    def __repr__(self) -> str:
        return f"Group({self.id!r}, {self.name!r}, {list(self.members)!r})"


class Expense:
    """
    A single recorded spend event.

    Expenses are never edited in place; the store replaces or deletes them,
    and the engine only ever reads them.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        expense_id: str,
        group_id: str,
        title: str,
        amount: Decimal,
        payer: str,
        expense_date: date,
        participants: list[str] | tuple[str, ...],
        split_method: SplitMethod = SplitMethod.EQUAL,
        custom_amounts: dict[str, Decimal] | None = None,
        category: str | None = None,
    ) -> None:
        self.id = expense_id
        self.group_id = group_id
        self.title = title
        self.amount = to_decimal(amount)
        self.payer = payer
        self.date = expense_date
        self.participants = tuple(participants)
        self.split_method = split_method
        self.custom_amounts = dict(custom_amounts) if custom_amounts else None
        self.category = DEFAULT_CATEGORY if category is None else category

    def to_dict(self) -> dict:
        """Reporting view of the expense (numbers, never formatted strings)."""
        return {
            "id": self.id,
            "groupId": self.group_id,
            "title": self.title,
            "amount": float(self.amount),
            "paidBy": self.payer,
            "date": self.date.isoformat(),
            "category": self.category,
            "splitMethod": self.split_method.value,
            "splitAmong": list(self.participants),
        }

    def __repr__(self) -> str:
        return (
            f"Expense({self.id!r}, {self.title!r}, {self.amount}, "
            f"payer={self.payer!r}, date={self.date.isoformat()})"
        )


class Settlement:
    """A suggested payment from a debtor to a creditor."""

    def __init__(self, from_member: str, to_member: str, amount: Decimal) -> None:
        self.from_member = from_member
        self.to_member = to_member
        self.amount = amount

    def to_dict(self) -> dict:
        return {
            "from": self.from_member,
            "to": self.to_member,
            "amount": float(self.amount),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Settlement):
            return NotImplemented
        return (self.from_member, self.to_member, self.amount) == (
            other.from_member,
            other.to_member,
            other.amount,
        )

    def __repr__(self) -> str:
        return f"Settlement({self.from_member!r} -> {self.to_member!r}: {self.amount})"


class GroupScope:
    """Analytics over a single group's expenses."""

    def __init__(self, group: Group) -> None:
        self.group = group

    @property
    def member_count(self) -> int:
        return len(self.group.members)


class UserScope:
    """Analytics over one member's expenses across all of their groups."""

    def __init__(self, user: str) -> None:
        self.user = user


class AnalyticsResult:  # pylint: disable=too-many-instance-attributes
    """Aggregate spending report for a group or a user."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        total_spending: Decimal,
        total_expenses: int,
        average_expense: Decimal,
        category_data: dict[str, Decimal],
        daily_spending: dict[date, Decimal],
        recent_expenses: list[Expense],
        split_per_person: Decimal | None = None,
        balances: dict[str, Decimal] | None = None,
        settlements: list[Settlement] | None = None,
    ) -> None:
        self.total_spending = total_spending
        self.total_expenses = total_expenses
        self.average_expense = average_expense
        self.category_data = category_data
        self.daily_spending = daily_spending
        self.recent_expenses = recent_expenses
        self.split_per_person = split_per_person
        self.balances = balances
        self.settlements = settlements

    def category_percentages(self) -> dict[str, Decimal]:
        """Share of total spending per category, in percent (1 dp)."""
        if not self.total_spending:
            return {}
        return {
            category: (amount * 100 / self.total_spending).quantize(
                Decimal("0.1"), rounding=ROUND_HALF_UP
            )
            for category, amount in self.category_data.items()
        }

    def to_dict(self) -> dict:
        """Reporting structure handed to the API layer."""
        result: dict = {
            "totalSpending": float(self.total_spending),
            "totalExpenses": self.total_expenses,
            "averageExpense": float(self.average_expense),
            "categoryData": {k: float(v) for k, v in self.category_data.items()},
            "dailySpending": {
                d.isoformat(): float(v) for d, v in self.daily_spending.items()
            },
            "recentExpenses": [e.to_dict() for e in self.recent_expenses],
        }
        if self.split_per_person is not None:
            result["splitPerPerson"] = float(self.split_per_person)
        if self.balances is not None:
            result["balances"] = {k: float(v) for k, v in self.balances.items()}
        if self.settlements is not None:
            result["settlements"] = [s.to_dict() for s in self.settlements]
        return result
