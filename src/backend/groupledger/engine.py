"""
Entry points of the ledger engine.

Every function here is a pure function of the snapshot it is handed. Results
may be cached per (group id, expense-set version), keeping only the latest
version of each group. The cache is dropped for a group whenever one of its
expenses is written.
"""

import hashlib
import logging
import threading
from decimal import Decimal
from typing import Any, Callable, Hashable

from .analytics import RECENT_EXPENSES_LIMIT, analyze
from .config import get_recent_limit
from .ledger import aggregate
from .models import AnalyticsResult, Expense, Group, GroupScope, Settlement, UserScope
from .settlement import resolve
from .splitter import split

__all__ = [
    "compute_split",
    "compute_balances",
    "compute_settlements",
    "compute_analytics",
    "expense_set_version",
    "ResultCache",
]

logger = logging.getLogger(__name__)


def compute_split(draft: Expense, group: Group | None = None) -> dict[str, Decimal]:
    """Shares of a draft expense. Raises ValidationError on bad input."""
    members = group.members if group is not None else None
    return split(
        draft.amount,
        draft.payer,
        draft.participants,
        draft.split_method,
        draft.custom_amounts,
        members,
    )


def compute_balances(group: Group, expenses: list[Expense]) -> dict[str, Decimal]:
    """Net balances for a group. Raises InternalConsistencyError on corrupt data."""
    return aggregate(group.members, expenses)


def compute_settlements(balances: dict[str, Decimal]) -> list[Settlement]:
    """Payments that clear the balances. Raises InternalConsistencyError."""
    return resolve(balances)


def compute_analytics(
    expenses: list[Expense], scope: GroupScope | UserScope
) -> AnalyticsResult:
    """Spending report for a group or user scope."""
    return analyze(expenses, scope, get_recent_limit(RECENT_EXPENSES_LIMIT))


def expense_set_version(
    expenses: list[Expense], members: list[str] | tuple[str, ...] = ()
) -> str:
    """
    Order-independent fingerprint of an active expense set and the roster it
    is computed against. A roster change yields a new version.
    """
    digest = hashlib.sha256()
    for expense_id in sorted(str(e.id) for e in expenses):
        digest.update(expense_id.encode("utf-8"))
        digest.update(b"\0")
    digest.update(b"\1")
    for member in members:
        digest.update(member.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


class ResultCache:
    """
    Computed results keyed by (group id, expense-set version).

    Only the latest version of each group is kept. Safe to share between
    threads. Call invalidate() on every expense write for the group.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[Hashable, Any]] = {}

    def get_or_compute(
        self, group_id: str, version: Hashable, compute: Callable[[], Any]
    ) -> Any:
        """Return the cached result, computing and storing it on a miss."""
        with self._lock:
            entry = self._entries.get(group_id)
            if entry is not None and entry[0] == version:
                return entry[1]

        # Computed outside the lock; a concurrent duplicate yields the same value.
        value = compute()
        with self._lock:
            entry = self._entries.get(group_id)
            if entry is not None and entry[0] == version:
                return entry[1]
            if entry is not None:
                logger.debug("Replacing cached result for group %s", group_id)
            self._entries[group_id] = (version, value)
            return value

    def invalidate(self, group_id: str) -> None:
        """Drop the cached result for a group."""
        with self._lock:
            stale = self._entries.pop(group_id, None)
        if stale is not None:
            logger.debug("Invalidated cached result for group %s", group_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
