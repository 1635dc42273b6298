# Overview: Service-layer operations for the availability snapshot table; encapsulates business logic and database work.

"""
Availability Cache Table (stock_tersedia) resync protocol.

resync() is the only writer of AvailabilitySnapshot. It always recomputes the
GLOBAL aggregate for one pair from the ledgers and overwrites the row; it never
adds or subtracts deltas. It must run inside the same unit of work as the
ledger mutation that triggered it, so a read later in the same request sees
the new figures.

Steps for one pair:
1. figures = aggregate(GLOBAL, product, kiosk)
2. active snapshot row exists  -> overwrite figures, stamp updated_by
3. no row and any activity     -> insert a new row
4. no row and no activity      -> nothing (callers treat a missing row as zero)
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import AvailabilitySnapshot, StockInRecord, StockOutRecord
from .availability_service import aggregate, find_snapshot, AvailabilityFigures
from .concurrency import run_with_retry
from .scope import GLOBAL

logger = logging.getLogger(__name__)


def _matches(snapshot: AvailabilitySnapshot, figures: AvailabilityFigures) -> bool:
    return (
        snapshot.quantity_in == figures.total_in
        and snapshot.quantity_out == figures.total_out
        and snapshot.quantity_available == figures.available
        and snapshot.last_in_date == figures.last_in_date
        and snapshot.last_out_date == figures.last_out_date
    )


def resync(product_id: int, kios_id: int, acting_user_id: int | None) -> AvailabilitySnapshot | None:
    """
    Bring the snapshot row of one pair in line with the ledgers.

    Flushes, does not commit. Returns the row, or None when the pair has never
    had activity and therefore has no row.
    """
    figures = aggregate(GLOBAL, product_id, kios_id)
    snapshot = find_snapshot(product_id, kios_id)

    if snapshot is not None:
        if _matches(snapshot, figures) and snapshot.updated_by_user_id == acting_user_id:
            # Nothing changed; leave version_id and updated_at untouched
            return snapshot
        snapshot.last_in_date = figures.last_in_date
        snapshot.quantity_in = figures.total_in
        snapshot.last_out_date = figures.last_out_date
        snapshot.quantity_out = figures.total_out
        snapshot.quantity_available = figures.available
        snapshot.updated_by_user_id = acting_user_id
        db.session.flush()
        logger.info(
            "Resynced stock_tersedia product=%s kios=%s in=%s out=%s available=%s",
            product_id, kios_id, figures.total_in, figures.total_out, figures.available,
        )
        return snapshot

    if not figures.has_activity:
        return None

    snapshot = AvailabilitySnapshot(
        product_id=product_id,
        kios_id=kios_id,
        last_in_date=figures.last_in_date,
        quantity_in=figures.total_in,
        last_out_date=figures.last_out_date,
        quantity_out=figures.total_out,
        quantity_available=figures.available,
        is_deleted=False,
        created_by_user_id=acting_user_id,
        updated_by_user_id=acting_user_id,
    )
    db.session.add(snapshot)
    db.session.flush()
    logger.info(
        "Created stock_tersedia product=%s kios=%s in=%s out=%s available=%s",
        product_id, kios_id, figures.total_in, figures.total_out, figures.available,
    )
    return snapshot


def resync_pairs(pairs, acting_user_id: int | None) -> None:
    """Resync each distinct pair once, in canonical order."""
    for product_id, kios_id in sorted(set(pairs)):
        resync(product_id, kios_id, acting_user_id)


def _all_known_pairs() -> set[tuple[int, int]]:
    # Soft-deleted rows count here: a pair whose rows were all retired still
    # has a snapshot row that must drop to zero.
    pairs: set[tuple[int, int]] = set()
    for model in (StockInRecord, StockOutRecord, AvailabilitySnapshot):
        rows = db.session.query(model.product_id, model.kios_id).distinct().all()
        pairs.update((p, k) for p, k in rows)
    return pairs


def resync_all(acting_user_id: int | None = None) -> int:
    """
    Rebuild the snapshot of every pair that has ever had ledger activity.

    Repair tool for operators (e.g. after a manual data fix). Commits.
    Returns the number of pairs visited.
    """
    def _op():
        pairs = _all_known_pairs()
        resync_pairs(pairs, acting_user_id)
        db.session.commit()
        return len(pairs)

    count = run_with_retry(_op)
    logger.info("Full stock_tersedia resync visited %d pairs", count)
    return count
