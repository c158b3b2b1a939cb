"""
Error types raised by the ledger engine.
"""

__all__ = ["GroupLedgerError", "ValidationError", "InternalConsistencyError"]


class GroupLedgerError(Exception):
    """Base class for ledger engine errors."""


class ValidationError(GroupLedgerError, ValueError):
    """Caller input was rejected. Nothing was changed."""


class InternalConsistencyError(GroupLedgerError):
    """Derived data failed an invariant, pointing at upstream corruption."""
