# backend/stoktrack/routes/filters.py
"""
Query-string helpers shared by the stock listing routes.

A missing, empty or "all" value means no filter. Malformed values raise
ValidationError so the route answers 400.
"""
from flask import request

from stoktrack.time_utils import parse_iso_date, parse_month
from ..validation import ValidationError

NO_FILTER = "all"


def _raw(name: str):
    value = request.args.get(name)
    if value is None:
        return None
    value = value.strip()
    if not value or value == NO_FILTER:
        return None
    return value


def int_arg(name: str):
    value = _raw(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def date_arg(name: str):
    value = _raw(name)
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def month_arg(name: str = "month"):
    value = _raw(name)
    try:
        return parse_month(value)
    except ValueError:
        raise ValidationError(f"{name} must be a month (YYYY-MM)")


def error_response(exc):
    """StockError -> (json, status)."""
    return exc.to_dict(), exc.status_code
