# Overview: Service-layer operations for concurrency; encapsulates business logic and database work.

"""
Concurrency discipline for stock movements.

INVARIANT (sufficiency check and write are atomic per pair):
For any (product, kiosk) pair, the sufficiency check, the ledger write and the
snapshot resync of one movement run as a single unit. Two concurrent stock-out
writes for the same pair can never both pass the check against the same
availability figure.

Three layers enforce it:
1. pair_locks(): process-local lock per (product_id, kios_id), held across
   validate + write + resync + commit. Multi-pair operations take the locks in
   sorted order so two edits moving rows between the same pairs cannot deadlock.
2. lock_pair_rows(): SELECT ... FOR UPDATE on the product and kiosk rows of each
   pair inside the DB transaction, for deployments with several processes.
   SQLite ignores FOR UPDATE; PostgreSQL honors it.
3. AvailabilitySnapshot.version_id + the unique (product_id, kios_id) constraint
   turn any remaining collision into StaleDataError / IntegrityError, which
   run_with_retry() rolls back and replays from the top (including validation).
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Product, Kiosk

logger = logging.getLogger(__name__)

_registry_guard = threading.Lock()
_pair_lock_registry: dict[tuple[int, int], threading.Lock] = {}


def _lock_for_pair(key: tuple[int, int]) -> threading.Lock:
    with _registry_guard:
        lock = _pair_lock_registry.get(key)
        if lock is None:
            lock = threading.Lock()
            _pair_lock_registry[key] = lock
        return lock


def ordered_pairs(*pairs: tuple[int, int]) -> list[tuple[int, int]]:
    """Distinct (product_id, kios_id) keys in canonical lock order."""
    return sorted({(int(p), int(k)) for p, k in pairs})


@contextmanager
def pair_locks(*pairs: tuple[int, int]):
    """Hold the process-local lock of every given pair, acquired in sorted order."""
    keys = ordered_pairs(*pairs)
    acquired: list[threading.Lock] = []
    try:
        for key in keys:
            lock = _lock_for_pair(key)
            lock.acquire()
            acquired.append(lock)
        yield keys
    finally:
        for lock in reversed(acquired):
            lock.release()


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def lock_pair_rows(*pairs: tuple[int, int]) -> None:
    """Row-lock the product and kiosk behind each pair, in canonical order."""
    keys = ordered_pairs(*pairs)
    for product_id in sorted({p for p, _ in keys}):
        lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    for kios_id in sorted({k for _, k in keys}):
        lock_for_update(db.session.query(Kiosk).filter_by(id=kios_id)).first()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and IntegrityError (two first-time
    snapshot inserts for the same pair). Any other exception rolls the
    session back and propagates unchanged.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError, IntegrityError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning(
                "Concurrency conflict (%s), retrying attempt %d/%d",
                type(exc).__name__, attempt + 2, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc

