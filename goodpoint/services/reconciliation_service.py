"""
goodpoint.services.reconciliation_service — Aggregate Drift Report
===================================================================

Compares every ``users`` row against the sum of live
``point_transactions`` addressed to that user.

How it works:
    1. ``SUM(points)`` from ``point_transactions`` grouped by receiver.
    2. Every stored aggregate.
    3. Any user whose stored total differs from the live sum is reported,
       including receivers with no aggregate row at all (``stored=None``).

Nothing is corrected.  Drift means a write happened outside an atomic
unit (e.g. data imported from the old non-transactional path) and needs a
human decision.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from goodpoint.database.stores import LedgerStore, LedgerUnit

logger = logging.getLogger(__name__)


def find_drift(store: LedgerStore) -> dict:
    """Return ``{"checked": N, "drifted": M, "drift": [...], "timestamp": ...}``."""

    def _collect(unit: LedgerUnit) -> tuple[dict[str, int], dict[str, int]]:
        live = unit.transactions.totals_by_receiver()
        stored = {row.user_id: row.points for row in unit.aggregates.all()}
        return live, stored

    live, stored = store.read(_collect)

    drift: list[dict] = []
    for user_id in sorted(live.keys() | stored.keys()):
        actual = live.get(user_id, 0)
        current = stored.get(user_id)
        if current is None or current != actual:
            drift.append({
                "user_id": user_id,
                "stored": current,
                "actual": actual,
                "diff": actual - (current or 0),
            })

    checked = len(live.keys() | stored.keys())
    if drift:
        logger.warning(
            "Ledger drift: %d/%d aggregates disagree with live transactions: %s",
            len(drift), checked, drift,
        )
    else:
        logger.info("Ledger drift: all %d aggregates match", checked)

    return {
        "checked": checked,
        "drifted": len(drift),
        "drift": drift,
        "timestamp": datetime.now(UTC).isoformat(),
    }
