"""
goodpoint.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- point_transactions — Transaction Log: one immutable row per grant
- users              — Aggregate Store: one running point total per user

Column names follow the legacy document layout
(``reciever_id`` included) so exported data can be loaded unchanged.

Each model declares its persisted fields explicitly (``*_FIELDS``) and
serializes through ``to_document()``; nothing walks ``__table__.columns``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

__all__ = [
    "AGGREGATE_FIELDS",
    "TRANSACTION_FIELDS",
    "Base",
    "PointTransaction",
    "UserAggregate",
    "as_utc",
    "new_transaction_id",
]

TRANSACTION_FIELDS: tuple[str, ...] = (
    "sender_id",
    "reciever_id",
    "reason",
    "points",
    "created_at",
    "updated_at",
)

AGGREGATE_FIELDS: tuple[str, ...] = ("points",)


def new_transaction_id() -> str:
    """Opaque identifier handed back to users for later reversal."""
    return uuid.uuid4().hex


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) or convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all GoodPoint ORM models."""


# ---------------------------------------------------------------------------
# PointTransaction — the Transaction Log
# ---------------------------------------------------------------------------
class PointTransaction(Base):
    __tablename__ = "point_transactions"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=new_transaction_id
    )
    sender_id: Mapped[str] = mapped_column(String(64), nullable=False)
    receiver_id: Mapped[str] = mapped_column("reciever_id", String(64), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_point_transactions_created_at", "created_at"),
        Index("ix_point_transactions_reciever", "reciever_id"),
    )

    def to_document(self) -> dict:
        """Map the declared fields to their persisted names."""
        return {
            "sender_id": self.sender_id,
            "reciever_id": self.receiver_id,
            "reason": self.reason,
            "points": self.points,
            "created_at": as_utc(self.created_at),
            "updated_at": as_utc(self.updated_at),
        }

    def __repr__(self) -> str:
        return (
            f"<PointTransaction id={self.id} {self.sender_id}->{self.receiver_id} "
            f"pts={self.points}>"
        )


# ---------------------------------------------------------------------------
# UserAggregate — the Aggregate Store
# ---------------------------------------------------------------------------
class UserAggregate(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    points: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    __table_args__ = (
        Index("ix_users_points_desc", "points"),
    )

    def to_document(self) -> dict:
        return {"points": self.points}

    def __repr__(self) -> str:
        return f"<UserAggregate user={self.user_id} pts={self.points}>"
