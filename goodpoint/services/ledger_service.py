"""
goodpoint.services.ledger_service — Grant, Reverse, Rank, History
==================================================================

The only place that touches both the Transaction Log and the Aggregate
Store.  Grant and Reverse run their read-modify-write inside one
:meth:`LedgerStore.atomic` unit, which keeps

    aggregate.points == sum(points of live transactions to that user)

true between operations.  Rank and History are plain reads.

The service holds no mutable state of its own, so one instance can be
shared across request threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from goodpoint.database.models import as_utc
from goodpoint.database.stores import LedgerStore, LedgerUnit
from goodpoint.ledger.errors import InconsistentStateError, ValidationError
from goodpoint.ledger.records import (
    GrantResult,
    RankEntry,
    ReverseResult,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_text(name: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return value


class LedgerService:
    """Point-granting ledger operations over a :class:`LedgerStore`."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self._clock = clock

    # -------------------------------------------------------------------
    # Grant
    # -------------------------------------------------------------------
    def grant(
        self,
        sender_id: str,
        receiver_id: str,
        reason: str,
        amount: int = 1,
    ) -> GrantResult:
        """Record a grant and add *amount* to the receiver's total.

        Raises
        ------
        ValidationError
            Blank sender, receiver or reason, or ``amount <= 0``.
        StoreError
            The atomic unit could not commit; nothing was written.
        """
        _require_text("sender_id", sender_id)
        _require_text("receiver_id", receiver_id)
        _require_text("reason", reason)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(f"amount must be a positive integer, got {amount!r}")

        def _grant(unit: LedgerUnit) -> GrantResult:
            now = as_utc(self._clock())
            aggregate = unit.aggregates.get(receiver_id, for_update=True)
            current = aggregate.points if aggregate is not None else 0

            row = unit.transactions.add(
                sender_id=sender_id,
                receiver_id=receiver_id,
                reason=reason,
                points=amount,
                now=now,
            )
            total = current + amount
            unit.aggregates.put(receiver_id, total)
            return GrantResult(transaction=TransactionRecord.from_row(row), total=total)

        result = self.store.atomic(_grant)
        logger.info(
            "Grant %s: %s -> %s (+%d, total %d)",
            result.transaction.id, sender_id, receiver_id, amount, result.total,
        )
        return result

    # -------------------------------------------------------------------
    # Reverse
    # -------------------------------------------------------------------
    def reverse(self, transaction_id: str) -> ReverseResult:
        """Delete a grant and subtract its points from the receiver.

        An unknown (or already reversed) id returns ``found=False`` and
        changes nothing.

        Raises
        ------
        InconsistentStateError
            The grant exists but its receiver has no aggregate row.
        StoreError
            The atomic unit could not commit; nothing was written.
        """
        if not isinstance(transaction_id, str) or not transaction_id.strip():
            return ReverseResult(found=False)

        def _reverse(unit: LedgerUnit) -> ReverseResult:
            row = unit.transactions.get(transaction_id, for_update=True)
            if row is None:
                return ReverseResult(found=False)

            record = TransactionRecord.from_row(row)
            unit.transactions.delete(row)

            aggregate = unit.aggregates.get(record.receiver_id, for_update=True)
            if aggregate is None:
                raise InconsistentStateError(
                    f"transaction {record.id} targets {record.receiver_id}, "
                    "who has no aggregate",
                    transaction_id=record.id,
                    user_id=record.receiver_id,
                )
            total = aggregate.points - record.points
            unit.aggregates.put(record.receiver_id, total)
            return ReverseResult(found=True, transaction=record, total=total)

        try:
            result = self.store.atomic(_reverse)
        except InconsistentStateError as exc:
            logger.error(
                "Reverse %s refused: receiver %s has no aggregate",
                exc.transaction_id, exc.user_id,
            )
            raise

        if result.found:
            logger.info(
                "Reverse %s: %s -> %s (-%d, total %d)",
                transaction_id,
                result.transaction.sender_id,
                result.transaction.receiver_id,
                result.transaction.points,
                result.total,
            )
        else:
            logger.info("Reverse %s: no such transaction", transaction_id)
        return result

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def rank(self, limit: int) -> list[RankEntry]:
        """Top *limit* users by total points."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValidationError(f"limit must be a non-negative integer, got {limit!r}")
        if limit == 0:
            return []
        return self.store.read(
            lambda unit: [RankEntry.from_row(row) for row in unit.aggregates.top(limit)]
        )

    def history(self, since: datetime) -> list[TransactionRecord]:
        """Every grant created at or after *since*, newest first.

        Naive *since* values are taken as UTC.
        """
        if not isinstance(since, datetime):
            raise ValidationError(f"since must be a datetime, got {since!r}")
        since_utc = as_utc(since)
        return self.store.read(
            lambda unit: [
                TransactionRecord.from_row(row)
                for row in unit.transactions.since(since_utc)
            ]
        )
