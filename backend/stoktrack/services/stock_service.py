# Overview: Service-layer operations for stock movements; encapsulates business logic and database work.

"""
Public stock operations.

Each write is one unit of work:

    pair_locks -> [lock_pair_rows -> field rules -> sufficiency -> ledger write -> resync -> commit]

run_with_retry replays the bracketed part from the top on a concurrency conflict, so the
sufficiency check is always re-evaluated against committed data. A rejected
movement (ForbiddenError / InvalidInputError / InsufficientStockError /
NotFoundError) rolls back with no ledger mutation and no resync.

Reads:
- get_stock_in / get_stock_out: one active row; Field Assistants only their own.
- list_stock_in / list_stock_out: role-scoped ledger listings.
- get_availability / list_availability: see availability_service.
"""

from __future__ import annotations

import logging
from datetime import date

from ..extensions import db
from ..errors import ForbiddenError
from ..models import StockInRecord, StockOutRecord
from . import ledger_service, snapshot_service
from .availability_service import get_availability, list_availability  # noqa: F401
from .concurrency import pair_locks, lock_pair_rows, run_with_retry
from .ledger_service import UNCHANGED
from .movement_validator import (
    ensure_can_modify,
    ensure_can_target,
    validate_stock_out,
)
from .scope import Actor, scope_for

logger = logging.getLogger(__name__)


def _current_pair(model, record_id: int) -> tuple[int, int]:
    row = ledger_service.get_active(model, record_id)
    return (row.product_id, row.kios_id)


# =============================================================================
# STOCK IN
# =============================================================================

def record_stock_in(
    actor: Actor,
    *,
    user_id: int,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
    receipt_photo_ref: str | None = None,
) -> StockInRecord:
    """Append a stock-in row and resync its pair."""
    with pair_locks((product_id, kios_id)):
        def _op():
            lock_pair_rows((product_id, kios_id))
            row = ledger_service.create(
                StockInRecord,
                user_id=user_id,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
                acting_user_id=actor.user_id,
                receipt_photo_ref=receipt_photo_ref,
            )
            snapshot_service.resync(product_id, kios_id, actor.user_id)
            db.session.commit()
            return row

        row = run_with_retry(_op)

    logger.info(
        "Stock-in %s recorded: user=%s product=%s kios=%s qty=%s by %s",
        row.id, user_id, product_id, kios_id, quantity, actor.user_id,
    )
    return row


def edit_stock_in(
    actor: Actor,
    record_id: int,
    *,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
    receipt_photo_ref=UNCHANGED,
) -> StockInRecord:
    """Correct a stock-in row; resync the new pair and, if it moved, the old one."""
    old_pair = _current_pair(StockInRecord, record_id)
    new_pair = (product_id, kios_id)

    with pair_locks(old_pair, new_pair):
        def _op():
            row = ledger_service.get_active(StockInRecord, record_id)
            ensure_can_modify(actor, row)
            lock_pair_rows((row.product_id, row.kios_id), new_pair)
            previous = ledger_service.apply_edit(
                row,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
                acting_user_id=actor.user_id,
                receipt_photo_ref=receipt_photo_ref,
            )
            snapshot_service.resync_pairs({new_pair, previous}, actor.user_id)
            db.session.commit()
            return row

        row = run_with_retry(_op)

    logger.info("Stock-in %s edited by %s", record_id, actor.user_id)
    return row


def soft_delete_stock_in(actor: Actor, record_id: int) -> None:
    pair = _current_pair(StockInRecord, record_id)

    with pair_locks(pair):
        def _op():
            row = ledger_service.get_active(StockInRecord, record_id)
            ensure_can_modify(actor, row)
            lock_pair_rows((row.product_id, row.kios_id))
            deleted_pair = ledger_service.soft_delete(row, acting_user_id=actor.user_id)
            snapshot_service.resync(*deleted_pair, actor.user_id)
            db.session.commit()

        run_with_retry(_op)

    logger.info("Stock-in %s soft-deleted by %s", record_id, actor.user_id)


# =============================================================================
# STOCK OUT
# =============================================================================

def record_stock_out(
    actor: Actor,
    *,
    target_user_id: int,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
) -> StockOutRecord:
    """
    Append a stock-out row after the field rules and the sufficiency check,
    then resync its pair. Invalid input is reported before any stock math.

    Raises ForbiddenError, InvalidInputError or InsufficientStockError.
    """
    ensure_can_target(actor, target_user_id)

    with pair_locks((product_id, kios_id)):
        def _op():
            lock_pair_rows((product_id, kios_id))
            ledger_service.check_fields(
                StockOutRecord,
                user_id=target_user_id,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
            )
            validate_stock_out(
                actor,
                target_user_id=target_user_id,
                product_id=product_id,
                kios_id=kios_id,
                quantity=quantity,
            )
            row = ledger_service.create(
                StockOutRecord,
                user_id=target_user_id,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
                acting_user_id=actor.user_id,
            )
            snapshot_service.resync(product_id, kios_id, actor.user_id)
            db.session.commit()
            return row

        row = run_with_retry(_op)

    logger.info(
        "Stock-out %s recorded: user=%s product=%s kios=%s qty=%s by %s",
        row.id, target_user_id, product_id, kios_id, quantity, actor.user_id,
    )
    return row


def edit_stock_out(
    actor: Actor,
    record_id: int,
    *,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
) -> StockOutRecord:
    """
    Correct a stock-out row.

    The sufficiency check sees the row as it is before the edit (prior), so an
    unchanged pair gets the row's old quantity added back.
    """
    old_pair = _current_pair(StockOutRecord, record_id)
    new_pair = (product_id, kios_id)

    with pair_locks(old_pair, new_pair):
        def _op():
            row = ledger_service.get_active(StockOutRecord, record_id)
            ensure_can_modify(actor, row)
            lock_pair_rows((row.product_id, row.kios_id), new_pair)
            ledger_service.check_fields(
                StockOutRecord,
                user_id=None,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
            )
            validate_stock_out(
                actor,
                target_user_id=row.user_id,
                product_id=product_id,
                kios_id=kios_id,
                quantity=quantity,
                prior=row,
            )
            previous = ledger_service.apply_edit(
                row,
                kios_id=kios_id,
                product_id=product_id,
                quantity=quantity,
                business_date=business_date,
                acting_user_id=actor.user_id,
            )
            snapshot_service.resync_pairs({new_pair, previous}, actor.user_id)
            db.session.commit()
            return row

        row = run_with_retry(_op)

    logger.info("Stock-out %s edited by %s", record_id, actor.user_id)
    return row


def soft_delete_stock_out(actor: Actor, record_id: int) -> None:
    pair = _current_pair(StockOutRecord, record_id)

    with pair_locks(pair):
        def _op():
            row = ledger_service.get_active(StockOutRecord, record_id)
            ensure_can_modify(actor, row)
            lock_pair_rows((row.product_id, row.kios_id))
            deleted_pair = ledger_service.soft_delete(row, acting_user_id=actor.user_id)
            snapshot_service.resync(*deleted_pair, actor.user_id)
            db.session.commit()

        run_with_retry(_op)

    logger.info("Stock-out %s soft-deleted by %s", record_id, actor.user_id)


# =============================================================================
# READS
# =============================================================================

def _get_visible(model, actor: Actor, record_id: int):
    row = ledger_service.get_active(model, record_id)
    if actor.is_restricted and row.user_id != actor.user_id:
        raise ForbiddenError(
            f"not allowed to view {ledger_service.ledger_label(model)} record {record_id}"
        )
    return row


def get_stock_in(actor: Actor, record_id: int) -> StockInRecord:
    return _get_visible(StockInRecord, actor, record_id)


def get_stock_out(actor: Actor, record_id: int) -> StockOutRecord:
    return _get_visible(StockOutRecord, actor, record_id)


def list_stock_in(actor: Actor, **filters) -> list[StockInRecord]:
    """Filters: kios_id, on_date, month=(year, month), year, limit."""
    return ledger_service.list_rows(StockInRecord, scope_for(actor), **filters)


def list_stock_out(actor: Actor, **filters) -> list[StockOutRecord]:
    """Filters: kios_id, on_date, month=(year, month), year, limit."""
    return ledger_service.list_rows(StockOutRecord, scope_for(actor), **filters)
