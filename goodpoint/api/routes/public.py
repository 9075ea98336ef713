"""
goodpoint.api.routes.public — Read-only ledger endpoints
=========================================================
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from goodpoint.api.deps import get_config, get_ledger, get_store
from goodpoint.config import GoodPointConfig
from goodpoint.constants import MAX_RANKING_LIMIT
from goodpoint.database.stores import LedgerStore
from goodpoint.ledger.errors import StoreError
from goodpoint.ledger.records import TransactionRecord, start_of_month
from goodpoint.services.ledger_service import LedgerService
from goodpoint.services.reconciliation_service import find_drift

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RankedUser(BaseModel):
    rank: int
    user_id: str
    points: int


class RankingResponse(BaseModel):
    limit: int
    users: list[RankedUser]


class TransactionOut(BaseModel):
    """Single grant from the Transaction Log."""
    id: str
    sender_id: str
    receiver_id: str
    reason: str
    points: int
    created_at: str

    @classmethod
    def from_record(cls, tx: TransactionRecord) -> TransactionOut:
        return cls(
            id=tx.id,
            sender_id=tx.sender_id,
            receiver_id=tx.receiver_id,
            reason=tx.reason,
            points=tx.points,
            created_at=tx.created_at.isoformat(),
        )


class HistoryResponse(BaseModel):
    since: str
    transactions: list[TransactionOut]


class DriftEntry(BaseModel):
    user_id: str
    stored: int | None
    actual: int
    diff: int


class LedgerHealthResponse(BaseModel):
    status: str
    checked: int
    drifted: int
    drift: list[DriftEntry]
    timestamp: str


# ---------------------------------------------------------------------------
# GET /ranking
# ---------------------------------------------------------------------------
@router.get("/ranking", response_model=RankingResponse)
def get_ranking(
    ledger: Annotated[LedgerService, Depends(get_ledger)],
    cfg: Annotated[GoodPointConfig, Depends(get_config)],
    limit: int | None = Query(None, ge=0, le=MAX_RANKING_LIMIT),
):
    """Top users by total points."""
    limit = cfg.ranking_limit if limit is None else limit
    try:
        entries = ledger.rank(limit)
    except StoreError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Ledger unavailable")
    return RankingResponse(
        limit=limit,
        users=[
            RankedUser(rank=i + 1, user_id=e.user_id, points=e.points)
            for i, e in enumerate(entries)
        ],
    )


# ---------------------------------------------------------------------------
# GET /history
# ---------------------------------------------------------------------------
@router.get("/history", response_model=HistoryResponse)
def get_history(
    ledger: Annotated[LedgerService, Depends(get_ledger)],
    cfg: Annotated[GoodPointConfig, Depends(get_config)],
    since: datetime | None = Query(None),
):
    """Grants since *since* (default: start of the current month), newest first."""
    if since is None:
        since = start_of_month(datetime.now(UTC), cfg.tzinfo)
    try:
        records = ledger.history(since)
    except StoreError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Ledger unavailable")
    return HistoryResponse(
        since=since.isoformat(),
        transactions=[TransactionOut.from_record(tx) for tx in records],
    )


# ---------------------------------------------------------------------------
# GET /health/ledger
# ---------------------------------------------------------------------------
@router.get("/health/ledger", response_model=LedgerHealthResponse)
def get_ledger_health(store: Annotated[LedgerStore, Depends(get_store)]):
    """Aggregate drift report; ``status`` is ``"drift"`` if any user disagrees."""
    try:
        report = find_drift(store)
    except StoreError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Ledger unavailable")
    return LedgerHealthResponse(status="drift" if report["drifted"] else "ok", **report)
