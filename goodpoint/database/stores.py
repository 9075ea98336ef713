"""
goodpoint.database.stores — Transaction Log, Aggregate Store, atomic units
===========================================================================

Both stores are thin session-bound views over one table each.  They never
commit on their own: a :class:`LedgerStore` hands them to the caller inside
either an **atomic unit** (:meth:`LedgerStore.atomic`) or a plain read
(:meth:`LedgerStore.read`).

Atomic units::

    def _bump(unit: LedgerUnit) -> int:
        row = unit.aggregates.get("U123", for_update=True)
        ...
        return total

    total = store.atomic(_bump)

``fn`` runs inside one database transaction.  A commit conflict
(``IntegrityError`` when two units insert the same first aggregate,
``OperationalError`` for serialization failures or a locked SQLite file)
rolls the transaction back and re-runs ``fn`` from scratch, so ``fn`` must
not keep state between calls.  Once ``max_attempts`` is exhausted, or on
any other database error, :class:`StoreError` is raised and nothing has
been written.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from goodpoint.database.engine import WRITE_LOCK_OPTION
from goodpoint.database.models import PointTransaction, UserAggregate, new_transaction_id
from goodpoint.ledger.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BACKOFF = 0.05  # seconds, multiplied by the attempt number


# ---------------------------------------------------------------------------
# Transaction Log
# ---------------------------------------------------------------------------
class TransactionLog:
    """Append-only grant records, keyed by a generated id."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(
        self,
        *,
        sender_id: str,
        receiver_id: str,
        reason: str,
        points: int,
        now: datetime,
    ) -> PointTransaction:
        row = PointTransaction(
            id=new_transaction_id(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            reason=reason,
            points=points,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        return row

    def get(self, transaction_id: str, *, for_update: bool = False) -> PointTransaction | None:
        return self._session.get(
            PointTransaction, transaction_id, with_for_update=for_update or None
        )

    def delete(self, row: PointTransaction) -> None:
        self._session.delete(row)

    def since(self, since: datetime) -> list[PointTransaction]:
        """All records with ``created_at >= since``, newest first."""
        return list(self._session.scalars(
            select(PointTransaction)
            .where(PointTransaction.created_at >= since)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        ).all())

    def totals_by_receiver(self) -> dict[str, int]:
        rows = self._session.execute(
            select(
                PointTransaction.receiver_id,
                func.sum(PointTransaction.points).label("total"),
            ).group_by(PointTransaction.receiver_id)
        ).all()
        return {row.receiver_id: int(row.total) for row in rows}


# ---------------------------------------------------------------------------
# Aggregate Store
# ---------------------------------------------------------------------------
class AggregateStore:
    """One running point total per user, created lazily."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str, *, for_update: bool = False) -> UserAggregate | None:
        return self._session.get(
            UserAggregate, user_id, with_for_update=for_update or None
        )

    def put(self, user_id: str, points: int) -> UserAggregate:
        """Set *user_id*'s total, inserting the row if it does not exist."""
        row = self._session.get(UserAggregate, user_id)
        if row is None:
            row = UserAggregate(user_id=user_id, points=points)
            self._session.add(row)
        else:
            row.points = points
        return row

    def top(self, limit: int) -> list[UserAggregate]:
        """Highest totals first; equal totals ordered by user id."""
        return list(self._session.scalars(
            select(UserAggregate)
            .order_by(UserAggregate.points.desc(), UserAggregate.user_id)
            .limit(limit)
        ).all())

    def all(self) -> list[UserAggregate]:
        return list(self._session.scalars(
            select(UserAggregate).order_by(UserAggregate.user_id)
        ).all())


@dataclass(frozen=True, slots=True)
class LedgerUnit:
    """Both stores bound to the same session (and therefore transaction)."""

    transactions: TransactionLog
    aggregates: AggregateStore

    @classmethod
    def bind(cls, session: Session) -> LedgerUnit:
        return cls(TransactionLog(session), AggregateStore(session))


# ---------------------------------------------------------------------------
# LedgerStore — atomic units and plain reads
# ---------------------------------------------------------------------------
class LedgerStore:
    """Entry point to the ledger tables behind one :class:`Engine`."""

    def __init__(
        self,
        engine: Engine,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.engine = engine
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff

    def atomic(self, fn: Callable[[LedgerUnit], T]) -> T:
        """Run *fn* in one transaction; commit in full or not at all."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                with Session(self.engine, expire_on_commit=False) as session:
                    with session.begin():
                        session.connection(execution_options={WRITE_LOCK_OPTION: True})
                        return fn(LedgerUnit.bind(session))
            except (IntegrityError, OperationalError) as exc:
                if attempt == self.max_attempts:
                    logger.error(
                        "Atomic unit failed after %d attempts: %s",
                        attempt, exc.orig,
                    )
                    raise StoreError(
                        f"could not commit after {attempt} attempts"
                    ) from exc
                logger.warning(
                    "Atomic unit conflict (attempt %d/%d), retrying: %s",
                    attempt, self.max_attempts, exc.orig,
                )
                time.sleep(self.retry_backoff * attempt)
            except SQLAlchemyError as exc:
                logger.error("Atomic unit aborted: %s", exc)
                raise StoreError(str(exc)) from exc
        raise AssertionError("unreachable")

    def read(self, fn: Callable[[LedgerUnit], T]) -> T:
        """Run a read-only *fn*; nothing is committed.

        Reads never take the SQLite write lock, so they see the state before
        or after a concurrent unit rather than waiting for it.
        """
        try:
            with Session(self.engine) as session:
                return fn(LedgerUnit.bind(session))
        except SQLAlchemyError as exc:
            logger.error("Ledger read failed: %s", exc)
            raise StoreError(str(exc)) from exc
