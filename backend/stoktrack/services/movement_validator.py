# Overview: Sufficiency gate for stock-out creation and edits.

"""
Movement Validator.

Single-shot check run BEFORE a stock-out write:

    pending write -> Accepted (caller writes the ledger row, then resyncs)
                  -> Rejected (no ledger mutation, no resync)

Order of checks:
1. Ownership: a Field Assistant may only attribute stock-out to themselves.
2. Field rules: quantity in [1, 999999]. Runs before any sufficiency math, so
   an absurd quantity is reported as invalid input, not as insufficient stock.
3. Sufficiency under the actor's scope (own rows for Field Assistant, every
   user's rows otherwise):
   - create:                         available >= quantity
   - edit, same product and kiosk:   available + prior.quantity >= quantity
     (the row being edited still holds its old quantity in the ledger)
   - edit, product or kiosk changed: validated like a fresh create against the
     new pair, with no add-back
"""

from __future__ import annotations

import logging

from ..errors import ForbiddenError, InsufficientStockError
from ..models import StockOutRecord
from ..validation import enforce_quantity
from .availability_service import aggregate
from .scope import Actor, scope_for

logger = logging.getLogger(__name__)


def ensure_can_target(actor: Actor, target_user_id: int) -> None:
    """Field Assistants may only write movements attributed to themselves."""
    if actor.is_restricted and target_user_id != actor.user_id:
        logger.warning(
            "Rejected movement: user %s (%s) targeted user %s",
            actor.user_id, actor.role, target_user_id,
        )
        raise ForbiddenError("not allowed to record stock movements for another user")


def ensure_can_modify(actor: Actor, row) -> None:
    """Field Assistants may only edit or delete their own ledger rows."""
    if actor.is_restricted and row.user_id != actor.user_id:
        logger.warning(
            "Rejected change of %s %s by user %s (%s): not the owner",
            type(row).__name__, row.id, actor.user_id, actor.role,
        )
        raise ForbiddenError("not allowed to modify another user's stock records")


def validate_stock_out(
    actor: Actor,
    *,
    target_user_id: int,
    product_id: int,
    kios_id: int,
    quantity: int,
    prior: StockOutRecord | None = None,
) -> int:
    """
    Gate a stock-out create (prior=None) or edit (prior=the row before edit).

    Returns the effective available figure the request was checked against.
    Raises ForbiddenError, InvalidInputError or InsufficientStockError.
    """
    ensure_can_target(actor, target_user_id)
    if prior is not None:
        ensure_can_modify(actor, prior)

    enforce_quantity(quantity)

    scope = scope_for(actor, target_user_id)
    available = aggregate(scope, product_id, kios_id).available

    same_pair = (
        prior is not None
        and prior.product_id == product_id
        and prior.kios_id == kios_id
    )
    if same_pair:
        available += prior.quantity

    if available < quantity:
        logger.warning(
            "Rejected stock-out: product=%s kios=%s requested=%s available=%s (user %s, %s)",
            product_id, kios_id, quantity, available, actor.user_id, actor.role,
        )
        raise InsufficientStockError(available=available, requested=quantity)

    return available
