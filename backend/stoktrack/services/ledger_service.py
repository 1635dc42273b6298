# Overview: Service-layer operations for the stock ledgers; encapsulates business logic and database work.

"""
Ledger Store for stock movements (stock_masuk / stock_keluar).

Ledger semantics (authoritative):
- Rows are appended by create(), corrected by apply_edit(), retired by
  soft_delete(). Nothing here ever issues a DELETE.
- Every read goes through active_query(), the single place that applies
  is_deleted = false. A restricted scope additionally filters user_id; the
  caller decides the scope, the store does not look at roles.
- Field rules (quantity bounds, no future dates, live references) are checked
  on every write. Stock sufficiency is NOT checked here; that is the Movement
  Validator's job and runs before the write.
- Functions flush but never commit. The caller owns the unit of work.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import extract

from ..extensions import db
from ..errors import InvalidInputError, NotFoundError
from ..models import User, Product, Kiosk, StockInRecord, StockOutRecord
from ..validation import enforce_quantity, enforce_business_date
from .scope import Scope, GLOBAL, apply_scope

logger = logging.getLogger(__name__)

# Sentinel for "field not supplied" on edits (None is a valid photo value)
UNCHANGED = object()


def ledger_label(model) -> str:
    return "stock-in" if model is StockInRecord else "stock-out"


def active_query(model, scope: Scope = GLOBAL):
    """Active (not soft-deleted) ledger rows of one kind, narrowed by scope."""
    query = db.session.query(model).filter(model.is_deleted.is_(False))
    return apply_scope(query, model, scope)


def pair_query(model, scope: Scope, product_id: int, kios_id: int):
    return active_query(model, scope).filter(
        model.product_id == product_id,
        model.kios_id == kios_id,
    )


def get_active(model, record_id: int):
    """Fetch an active ledger row or raise NotFoundError."""
    row = db.session.get(model, record_id)
    if row is None or row.is_deleted:
        raise NotFoundError(f"{ledger_label(model)} record {record_id} not found")
    return row


def _ensure_references(*, user_id: int | None, kios_id: int, product_id: int) -> None:
    if user_id is not None:
        user = db.session.get(User, user_id)
        if user is None:
            raise InvalidInputError("user not found")

    kiosk = db.session.get(Kiosk, kios_id)
    if kiosk is None or kiosk.is_deleted:
        raise InvalidInputError("kios not found")

    product = db.session.get(Product, product_id)
    if product is None or product.is_deleted:
        raise InvalidInputError("product not found")


def check_fields(
    model,
    *,
    user_id: int | None,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
    receipt_photo_ref=None,
) -> None:
    """Field-level rules shared by create and edit. Raises InvalidInputError."""
    enforce_quantity(quantity)
    enforce_business_date(business_date)
    if model is not StockInRecord and receipt_photo_ref not in (None, UNCHANGED):
        raise InvalidInputError("receipt_photo_ref is only accepted on stock-in records")
    _ensure_references(user_id=user_id, kios_id=kios_id, product_id=product_id)


def create(
    model,
    *,
    user_id: int,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
    acting_user_id: int,
    receipt_photo_ref: str | None = None,
):
    """Append a new ledger row (is_deleted=False, created_by = acting user)."""
    check_fields(
        model,
        user_id=user_id,
        kios_id=kios_id,
        product_id=product_id,
        quantity=quantity,
        business_date=business_date,
        receipt_photo_ref=receipt_photo_ref,
    )

    values = dict(
        user_id=user_id,
        kios_id=kios_id,
        product_id=product_id,
        quantity=quantity,
        business_date=business_date,
        is_deleted=False,
        created_by_user_id=acting_user_id,
    )
    if model is StockInRecord:
        values["receipt_photo_ref"] = receipt_photo_ref

    row = model(**values)
    db.session.add(row)
    db.session.flush()
    return row


def apply_edit(
    row,
    *,
    kios_id: int,
    product_id: int,
    quantity: int,
    business_date: date,
    acting_user_id: int,
    receipt_photo_ref=UNCHANGED,
) -> tuple[int, int]:
    """
    Overwrite the mutable fields of an active row.

    Returns the (product_id, kios_id) pair the row had BEFORE the edit so the
    caller can resync it as well when it differs from the new pair.
    """
    if row.is_deleted:
        raise NotFoundError(f"{ledger_label(type(row))} record {row.id} not found")

    check_fields(
        type(row),
        user_id=None,
        kios_id=kios_id,
        product_id=product_id,
        quantity=quantity,
        business_date=business_date,
        receipt_photo_ref=receipt_photo_ref,
    )

    old_pair = (row.product_id, row.kios_id)

    row.kios_id = kios_id
    row.product_id = product_id
    row.quantity = quantity
    row.business_date = business_date
    if isinstance(row, StockInRecord) and receipt_photo_ref is not UNCHANGED:
        row.receipt_photo_ref = receipt_photo_ref
    row.updated_by_user_id = acting_user_id

    db.session.flush()
    return old_pair


def soft_delete(row, *, acting_user_id: int) -> tuple[int, int]:
    """Retire an active row. Returns its (product_id, kios_id) pair."""
    if row.is_deleted:
        raise NotFoundError(f"{ledger_label(type(row))} record {row.id} not found")

    row.is_deleted = True
    row.updated_by_user_id = acting_user_id
    db.session.flush()
    return (row.product_id, row.kios_id)


def list_rows(
    model,
    scope: Scope = GLOBAL,
    *,
    kios_id: int | None = None,
    on_date: date | None = None,
    month: tuple[int, int] | None = None,
    year: int | None = None,
    limit: int | None = None,
):
    """
    Active rows newest first (business_date desc, then created_at desc).

    month is a (year, month) tuple; all filters combine with AND.
    """
    q = active_query(model, scope)
    if kios_id is not None:
        q = q.filter(model.kios_id == kios_id)
    if on_date is not None:
        q = q.filter(model.business_date == on_date)
    if month is not None:
        month_year, month_number = month
        q = q.filter(
            extract("year", model.business_date) == month_year,
            extract("month", model.business_date) == month_number,
        )
    if year is not None:
        q = q.filter(extract("year", model.business_date) == year)

    q = q.order_by(
        model.business_date.desc(),
        model.created_at.desc(),
        model.id.desc(),
    )
    if limit is not None:
        q = q.limit(limit)
    return q.all()
