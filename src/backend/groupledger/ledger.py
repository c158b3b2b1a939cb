"""
Folding a group's expenses into per-member net balances.
"""

import logging
from decimal import Decimal
from typing import Iterable

from .errors import InternalConsistencyError, ValidationError
from .models import Expense, from_minor, to_minor
from .splitter import split_expense

__all__ = ["aggregate", "aggregate_minor"]

logger = logging.getLogger(__name__)


def aggregate_minor(
    members: Iterable[str], expenses: Iterable[Expense]
) -> dict[str, int]:
    """
    Net balance per member in minor units. Positive means the member is owed.
    Every expense's shares sum exactly to its amount, so the result sums to 0.
    """
    roster = tuple(members)
    balances = {m: 0 for m in roster}

    for expense in expenses:
        try:
            shares = split_expense(expense, roster)
        except ValidationError as e:
            logger.error("Stored expense %s failed validation: %s", expense.id, e)
            raise InternalConsistencyError(
                f"Expense {expense.id} cannot be applied to the ledger: {e}"
            ) from e

        for participant, share in shares.items():
            balances[participant] -= share
        balances[expense.payer] += to_minor(expense.amount)

    total = sum(balances.values())
    if total != 0:
        logger.error("Balances sum to %d minor units instead of 0", total)
        raise InternalConsistencyError(f"Balances do not sum to zero ({total})")

    return balances


def aggregate(
    members: Iterable[str], expenses: Iterable[Expense]
) -> dict[str, Decimal]:
    """Net balance per member as 2-dp Decimals, in roster order."""
    balances = aggregate_minor(members, expenses)
    return {m: from_minor(units) for m, units in balances.items()}
