"""
goodpoint.ledger.records — Detached ledger records
===================================================

Plain frozen dataclasses returned by the Ledger Service.  They carry no
session state, so callers (dispatcher, API routes, worker threads) can hold
them after the unit that produced them has closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo

from goodpoint.database.models import PointTransaction, UserAggregate, as_utc

__all__ = [
    "GrantResult",
    "RankEntry",
    "ReverseResult",
    "TransactionRecord",
    "start_of_month",
]


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """One grant as stored in the Transaction Log."""

    id: str
    sender_id: str
    receiver_id: str
    reason: str
    points: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: PointTransaction) -> TransactionRecord:
        doc = row.to_document()
        return cls(
            id=row.id,
            sender_id=doc["sender_id"],
            receiver_id=doc["reciever_id"],
            reason=doc["reason"],
            points=doc["points"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )


@dataclass(frozen=True, slots=True)
class RankEntry:
    user_id: str
    points: int

    @classmethod
    def from_row(cls, row: UserAggregate) -> RankEntry:
        return cls(user_id=row.user_id, points=row.to_document()["points"])


@dataclass(frozen=True, slots=True)
class GrantResult:
    """Outcome of a committed grant: the new record and the receiver's total."""

    transaction: TransactionRecord
    total: int


@dataclass(frozen=True, slots=True)
class ReverseResult:
    """Outcome of a reversal.

    ``found`` is False when no transaction had the requested id; in that case
    ``transaction`` and ``total`` are None and nothing was changed.
    """

    found: bool
    transaction: TransactionRecord | None = None
    total: int | None = None


def start_of_month(now: datetime, tz: tzinfo) -> datetime:
    """First instant of the calendar month containing *now*, in *tz*, as UTC."""
    local = as_utc(now).astimezone(tz)
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return first.astimezone(UTC)
