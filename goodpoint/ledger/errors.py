"""
goodpoint.ledger.errors — Ledger error taxonomy
================================================

- :class:`ValidationError` — the request itself is bad; never retried.
- :class:`StoreError` — the atomic unit could not commit; nothing was
  written and the caller may retry (Reverse safely, Grant at-most-once).
- :class:`InconsistentStateError` — a live transaction points at a receiver
  with no aggregate row; reported, never repaired.

Reversing an unknown id is *not* an error; see ``ReverseResult.found``.
"""

from __future__ import annotations

__all__ = [
    "InconsistentStateError",
    "LedgerError",
    "StoreError",
    "ValidationError",
]


class LedgerError(Exception):
    """Base class for every ledger failure."""


class ValidationError(LedgerError):
    """Missing/blank identifiers or reason, or a non-positive amount."""


class StoreError(LedgerError):
    """The backing store could not commit an atomic unit."""


class InconsistentStateError(LedgerError):
    """The Transaction Log and Aggregate Store disagree."""

    def __init__(self, message: str, *, transaction_id: str, user_id: str) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id
        self.user_id = user_id
