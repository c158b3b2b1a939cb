"""
Turning net balances into a short list of pairwise payments.

Creditors and debtors are matched greedily, largest remaining amount first.
Every step settles at least one party in full, so N members with a nonzero
balance need at most N - 1 payments. This is not the global minimum (finding
that is an NP-hard matching problem) but it is close in practice.
"""

import heapq
import logging
from decimal import ROUND_FLOOR, Decimal

from .errors import InternalConsistencyError
from .models import EPSILON, MINOR_UNITS, Settlement, from_minor, to_decimal

__all__ = ["resolve", "apply_settlements"]

logger = logging.getLogger(__name__)


def _check_balanced(balances: dict[str, Decimal]) -> None:
    total = sum(balances.values(), start=Decimal("0"))
    if abs(total) >= EPSILON:
        logger.error("Balances sum to %s; refusing to resolve settlements", total)
        raise InternalConsistencyError(f"Balances do not sum to zero ({total})")


def _to_minor_jointly(balances: dict[str, Decimal]) -> dict[str, int]:
    """
    Round balances to minor units so that the rounded values sum to zero.

    Every balance is floored, then the missing units go one at a time to the
    largest fractional parts (ties by ascending member). Each result stays
    within one minor unit of its exact value.
    """
    floors: dict[str, int] = {}
    fractions: dict[str, Decimal] = {}
    for member, value in balances.items():
        scaled = value * MINOR_UNITS
        whole = scaled.to_integral_value(rounding=ROUND_FLOOR)
        floors[member] = int(whole)
        fractions[member] = scaled - whole

    missing = -sum(floors.values())
    by_fraction = sorted(floors, key=lambda m: (-fractions[m], m))
    for member in by_fraction[:missing]:
        floors[member] += 1
    return floors


def resolve(balances: dict[str, Decimal | float | int]) -> list[Settlement]:
    """
    Compute the payments that bring every balance to zero.
    Raises InternalConsistencyError if the balances do not sum to ~0.
    """
    exact = {member: to_decimal(value) for member, value in balances.items()}
    _check_balanced(exact)

    # Heaps of (-remaining, member): largest first, ties by ascending member.
    creditors: list[tuple[int, str]] = []
    debtors: list[tuple[int, str]] = []
    for member, units in _to_minor_jointly(exact).items():
        if units > 0:
            creditors.append((-units, member))
        elif units < 0:
            debtors.append((units, member))
    heapq.heapify(creditors)
    heapq.heapify(debtors)

    settlements = []
    while creditors and debtors:
        owed, creditor = heapq.heappop(creditors)
        owes, debtor = heapq.heappop(debtors)
        amount = min(-owed, -owes)
        settlements.append(Settlement(debtor, creditor, from_minor(amount)))

        owed += amount
        owes += amount
        if owed:
            heapq.heappush(creditors, (owed, creditor))
        if owes:
            heapq.heappush(debtors, (owes, debtor))

    logger.debug(
        "Resolved %d balances into %d settlements", len(exact), len(settlements)
    )
    return settlements


def apply_settlements(
    balances: dict[str, Decimal | float | int], settlements: list[Settlement]
) -> dict[str, Decimal]:
    """Balances after every settlement has been paid."""
    result = {member: to_decimal(value) for member, value in balances.items()}
    for s in settlements:
        result[s.from_member] += s.amount
        result[s.to_member] -= s.amount
    return result
