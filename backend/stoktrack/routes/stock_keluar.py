# backend/stoktrack/routes/stock_keluar.py
"""
Stock-out (stok keluar) routes.

SECURITY: All routes require authentication and a recognized role.
Field Assistants may only record stock-out against their own stock.

Errors:
- 400 invalid input, 403 forbidden, 404 unknown or deleted row
- 409 insufficient stock; the body carries "available"
"""
from flask import Blueprint, request, g

from ..errors import StockError
from ..models import StockOutRecord
from ..models.auth import ROLE_FIELD_ASSISTANT
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_stock_movement,
)
from ..decorators import require_auth, require_role
from ..services import stock_service
from .filters import int_arg, date_arg, month_arg, error_response


stock_keluar_bp = Blueprint("stock_keluar", __name__, url_prefix="/api/stock-keluar")

STOCK_OUT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "kios_id", "product_id", "quantity", "business_date"},
    required_on_create={"kios_id", "product_id", "quantity", "business_date"},
)

STOCK_OUT_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={"kios_id", "product_id", "quantity", "business_date"},
    required_on_create={"kios_id", "product_id", "quantity", "business_date"},
)


@stock_keluar_bp.get("")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def list_stock_out_route():
    """
    List active stock-out rows, newest business date first.

    Query params: kios_id, date (YYYY-MM-DD), month (YYYY-MM), year.
    "all" disables a filter.
    """
    try:
        rows = stock_service.list_stock_out(
            g.actor,
            kios_id=int_arg("kios_id"),
            on_date=date_arg("date"),
            month=month_arg("month"),
            year=int_arg("year"),
        )
    except StockError as e:
        return error_response(e)

    return {"data": [r.to_dict() for r in rows]}


@stock_keluar_bp.post("")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def create_stock_out_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockOutRecord,
            payload=payload,
            policy=STOCK_OUT_CREATE_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        row = stock_service.record_stock_out(
            g.actor,
            target_user_id=patch.get("user_id") or g.actor.user_id,
            kios_id=patch["kios_id"],
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            business_date=patch["business_date"],
        )
    except StockError as e:
        return error_response(e)

    return {"data": row.to_dict()}, 201


@stock_keluar_bp.get("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def get_stock_out_route(record_id: int):
    try:
        row = stock_service.get_stock_out(g.actor, record_id)
    except StockError as e:
        return error_response(e)
    return {"data": row.to_dict()}


@stock_keluar_bp.put("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def update_stock_out_route(record_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockOutRecord,
            payload=payload,
            policy=STOCK_OUT_EDIT_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        row = stock_service.edit_stock_out(
            g.actor,
            record_id,
            kios_id=patch["kios_id"],
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            business_date=patch["business_date"],
        )
    except StockError as e:
        return error_response(e)

    return {"data": row.to_dict()}


@stock_keluar_bp.delete("/<int:record_id>")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def delete_stock_out_route(record_id: int):
    try:
        stock_service.soft_delete_stock_out(g.actor, record_id)
    except StockError as e:
        return error_response(e)
    return {"deleted": True, "id": record_id}
