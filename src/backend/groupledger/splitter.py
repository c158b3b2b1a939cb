"""
Per-expense share computation.
"""

import logging
from decimal import Decimal
from itertools import cycle

from .errors import ValidationError
from .models import EPSILON, Expense, SplitMethod, from_minor, to_decimal, to_minor

__all__ = ["split", "split_minor", "split_expense"]

logger = logging.getLogger(__name__)


def _check_parties(
    payer: str, participants: list[str] | tuple[str, ...], members
) -> None:
    if not participants:
        raise ValidationError("Expense must be split among at least one member")
    if len(set(participants)) != len(participants):
        raise ValidationError("Participants must be unique")
    if members is None:
        return
    outsiders = [p for p in participants if p not in members]
    if outsiders:
        raise ValidationError(f"Participants not in group: {', '.join(outsiders)}")
    if payer not in members:
        raise ValidationError(f"Payer '{payer}' is not a member of the group")


def _spread(shares: dict[str, int], units: int) -> None:
    """Hand out +/- one minor unit at a time in ascending member order."""
    step = 1 if units > 0 else -1
    for member in cycle(sorted(shares)):
        if units == 0:
            return
        if step < 0 and shares[member] == 0:
            continue
        shares[member] += step
        units -= step


def _split_equal(amount_minor: int, participants) -> dict[str, int]:
    base, remainder = divmod(amount_minor, len(participants))
    shares = {p: base for p in participants}
    _spread(shares, remainder)
    return shares


def _split_custom(
    amount: Decimal, amount_minor: int, participants, custom_amounts
) -> dict[str, int]:
    if custom_amounts is None:
        raise ValidationError("Custom split requires an amount for each participant")

    # Missing entries count as zero; entries for non-participants are ignored.
    raw = {p: to_decimal(custom_amounts.get(p, 0)) for p in participants}
    negative = [p for p, value in raw.items() if value < 0]
    if negative:
        raise ValidationError(
            f"Custom amounts must not be negative: {', '.join(negative)}"
        )

    total = sum(raw.values(), start=Decimal("0"))
    if abs(total - amount) >= EPSILON:
        raise ValidationError(
            f"Custom amounts ({total}) don't match the expense amount ({amount})"
        )

    shares = {p: to_minor(value) for p, value in raw.items()}
    residual = amount_minor - sum(shares.values())
    if residual:
        logger.debug("Spreading %d rounding unit(s) over custom shares", residual)
        _spread(shares, residual)
    return shares


def split_minor(  # pylint: disable=too-many-arguments
    amount: Decimal | float | int | str,
    payer: str,
    participants: list[str] | tuple[str, ...],
    method: SplitMethod = SplitMethod.EQUAL,
    custom_amounts: dict | None = None,
    members=None,
) -> dict[str, int]:
    """
    Compute each participant's share of an expense in integer minor units.
    The shares always sum exactly to the amount.
    Raises ValidationError on bad input. When `members` is given, payer and
    participants must belong to it.
    """
    amount_dec = to_decimal(amount)
    amount_minor = to_minor(amount_dec, exact=True)
    if amount_minor <= 0:
        raise ValidationError(f"Amount must be positive, got {amount_dec}")
    _check_parties(payer, participants, members)

    if method == SplitMethod.EQUAL:
        return _split_equal(amount_minor, participants)
    if method == SplitMethod.CUSTOM:
        return _split_custom(amount_dec, amount_minor, participants, custom_amounts)
    raise ValidationError(f"Unknown split method: {method!r}")


def split(  # pylint: disable=too-many-arguments
    amount: Decimal | float | int | str,
    payer: str,
    participants: list[str] | tuple[str, ...],
    method: SplitMethod = SplitMethod.EQUAL,
    custom_amounts: dict | None = None,
    members=None,
) -> dict[str, Decimal]:
    """Compute each participant's share of an expense as 2-dp Decimals."""
    shares = split_minor(amount, payer, participants, method, custom_amounts, members)
    return {p: from_minor(units) for p, units in shares.items()}


def split_expense(expense: Expense, members=None) -> dict[str, int]:
    """Shares of a recorded expense, in minor units."""
    return split_minor(
        expense.amount,
        expense.payer,
        expense.participants,
        expense.split_method,
        expense.custom_amounts,
        members,
    )
