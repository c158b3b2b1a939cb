"""
Spending statistics over an expense snapshot.
"""

import logging
from datetime import date
from decimal import Decimal

from .ledger import aggregate
from .models import (
    DEFAULT_CATEGORY,
    AnalyticsResult,
    Expense,
    GroupScope,
    UserScope,
    quantize,
)
from .settlement import resolve

__all__ = [
    "analyze",
    "get_total_spending",
    "get_category_data",
    "get_daily_spending",
    "get_recent_expenses",
    "RECENT_EXPENSES_LIMIT",
]

logger = logging.getLogger(__name__)

RECENT_EXPENSES_LIMIT = 10

ZERO = Decimal("0.00")


def get_total_spending(expenses: list[Expense]) -> Decimal:
    """Sum of all expense amounts."""
    return sum((e.amount for e in expenses), start=ZERO)


def get_category_data(expenses: list[Expense]) -> dict[str, Decimal]:
    """Spending per category, in the order categories are first seen."""
    totals: dict[str, Decimal] = {}
    for e in expenses:
        category = DEFAULT_CATEGORY if e.category is None else e.category
        totals[category] = totals.get(category, ZERO) + e.amount
    return totals


def get_daily_spending(expenses: list[Expense]) -> dict[date, Decimal]:
    """Spending per calendar day, oldest day first."""
    totals: dict[date, Decimal] = {}
    for e in expenses:
        totals[e.date] = totals.get(e.date, ZERO) + e.amount
    return dict(sorted(totals.items()))


def get_recent_expenses(
    expenses: list[Expense], limit: int = RECENT_EXPENSES_LIMIT
) -> list[Expense]:
    """
    The `limit` most recent expenses, newest date first.
    The snapshot is in creation order, so same-day ties go to the later entry.
    """
    ordered = sorted(
        enumerate(expenses), key=lambda item: (item[1].date, item[0]), reverse=True
    )
    return [e for _, e in ordered[:limit]]


def analyze(
    expenses: list[Expense],
    scope: GroupScope | UserScope,
    recent_limit: int = RECENT_EXPENSES_LIMIT,
) -> AnalyticsResult:
    """
    Build the spending report for a group or a user.

    Group scope also carries the per-person split, member balances and the
    settlements that clear them. User scope reports spending only; balances
    are never netted across groups.
    """
    expenses = list(expenses)
    total = get_total_spending(expenses)
    count = len(expenses)
    average = quantize(total / count) if count else ZERO

    result = AnalyticsResult(
        total_spending=total,
        total_expenses=count,
        average_expense=average,
        category_data=get_category_data(expenses),
        daily_spending=get_daily_spending(expenses),
        recent_expenses=get_recent_expenses(expenses, recent_limit),
    )

    if isinstance(scope, GroupScope):
        members = scope.group.members
        result.split_per_person = quantize(total / len(members)) if members else ZERO
        result.balances = aggregate(members, expenses)
        result.settlements = resolve(result.balances)
        logger.debug(
            "Analyzed %d expenses for group %s (%d settlements)",
            count,
            scope.group.id,
            len(result.settlements),
        )
    else:
        logger.debug("Analyzed %d expenses for user %s", count, scope.user)

    return result
