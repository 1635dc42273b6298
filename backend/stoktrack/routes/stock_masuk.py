# backend/stoktrack/routes/stock_masuk.py
"""
Stock-in (stok masuk) routes.

SECURITY: All routes require authentication and a recognized role.
Field Assistants see and modify only their own rows; managers see everything.

Time semantics:
- business_date is a calendar date ("YYYY-MM-DD") and may not be later than
  today in STOCK_TIMEZONE.
"""
from flask import Blueprint, request, g

from ..errors import StockError
from ..models import StockInRecord
from ..models.auth import ROLE_FIELD_ASSISTANT
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_stock_movement,
)
from ..decorators import require_auth, require_role
from ..services import stock_service
from .filters import int_arg, month_arg, error_response


stock_masuk_bp = Blueprint("stock_masuk", __name__, url_prefix="/api/stock-masuk")

STOCK_IN_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "kios_id", "product_id", "quantity", "business_date", "receipt_photo_ref"},
    required_on_create={"kios_id", "product_id", "quantity", "business_date"},
)

# user_id is fixed at creation
STOCK_IN_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={"kios_id", "product_id", "quantity", "business_date", "receipt_photo_ref"},
    required_on_create={"kios_id", "product_id", "quantity", "business_date"},
)


@stock_masuk_bp.get("")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def list_stock_in_route():
    """
    List active stock-in rows, newest business date first.

    Query params: kios_id, month (YYYY-MM). "all" disables a filter.
    """
    try:
        rows = stock_service.list_stock_in(
            g.actor,
            kios_id=int_arg("kios_id"),
            month=month_arg("month"),
        )
    except StockError as e:
        return error_response(e)

    return {"data": [r.to_dict() for r in rows]}


@stock_masuk_bp.post("")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def create_stock_in_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockInRecord,
            payload=payload,
            policy=STOCK_IN_CREATE_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        row = stock_service.record_stock_in(
            g.actor,
            user_id=patch.get("user_id") or g.actor.user_id,
            kios_id=patch["kios_id"],
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            business_date=patch["business_date"],
            receipt_photo_ref=patch.get("receipt_photo_ref"),
        )
    except StockError as e:
        return error_response(e)

    return {"data": row.to_dict()}, 201


@stock_masuk_bp.get("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def get_stock_in_route(record_id: int):
    try:
        row = stock_service.get_stock_in(g.actor, record_id)
    except StockError as e:
        return error_response(e)
    return {"data": row.to_dict()}


@stock_masuk_bp.put("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def update_stock_in_route(record_id: int):
    """
    Correct a stock-in row. Availability of the old and the new
    (product, kiosk) pair is recomputed.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockInRecord,
            payload=payload,
            policy=STOCK_IN_EDIT_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    extra = {}
    if "receipt_photo_ref" in patch:
        extra["receipt_photo_ref"] = patch["receipt_photo_ref"]

    try:
        row = stock_service.edit_stock_in(
            g.actor,
            record_id,
            kios_id=patch["kios_id"],
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            business_date=patch["business_date"],
            **extra,
        )
    except StockError as e:
        return error_response(e)

    return {"data": row.to_dict()}


@stock_masuk_bp.delete("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def delete_stock_in_route(record_id: int):
    try:
        stock_service.soft_delete_stock_in(g.actor, record_id)
    except StockError as e:
        return error_response(e)
    return {"deleted": True, "id": record_id}
