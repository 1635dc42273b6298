# backend/stoktrack/routes/stock_tersedia.py
"""
Available stock (stok tersedia) routes.

Field Assistants get figures recomputed from their own ledger rows.
Managers get the persisted snapshot covering every user.
"""
from flask import Blueprint, g

from ..errors import StockError
from ..models.auth import ROLE_FIELD_ASSISTANT
from ..validation import ValidationError
from ..decorators import require_auth, require_role
from ..services import stock_service
from .filters import int_arg, month_arg, error_response


stock_tersedia_bp = Blueprint("stock_tersedia", __name__, url_prefix="/api/stock-tersedia")


@stock_tersedia_bp.get("")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def list_availability_route():
    """
    Per (product, kiosk) availability plus summary totals.

    Query params: kios_id, month (YYYY-MM, matched against the month bucket).
    """
    try:
        return stock_service.list_availability(
            g.actor,
            kios_id=int_arg("kios_id"),
            month=month_arg("month"),
        )
    except StockError as e:
        return error_response(e)


@stock_tersedia_bp.get("/show")
@require_auth
@require_role(ROLE_FIELD_ASSISTANT)
def show_availability_route():
    try:
        product_id = int_arg("product_id")
        kios_id = int_arg("kios_id")
        if product_id is None or kios_id is None:
            raise ValidationError("product_id and kios_id are required")
        figures = stock_service.get_availability(g.actor, product_id, kios_id)
    except StockError as e:
        return error_response(e)

    return {"data": figures.to_dict()}
