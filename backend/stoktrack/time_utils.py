from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


DEFAULT_TIMEZONE = "Asia/Jakarta"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today(tz_name: Optional[str] = None) -> date:
    """
    Today's calendar date in the business timezone.

    Business dates on stock movements are compared against this, not against
    the server's UTC date, so a movement recorded at 06:00 in Jakarta is not
    rejected as "tomorrow".
    """
    if tz_name is None:
        tz_name = DEFAULT_TIMEZONE
        if has_app_context():
            tz_name = current_app.config.get("STOCK_TIMEZONE", DEFAULT_TIMEZONE)
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD". None / "" -> None; anything else raises ValueError."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s)


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse a "YYYY-MM" month bucket into (year, month)."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    parsed = datetime.strptime(s, "%Y-%m")
    return parsed.year, parsed.month


def month_bucket(value: date | datetime | None) -> Optional[str]:
    """Format a date as its "YYYY-MM" month bucket."""
    if value is None:
        return None
    return value.strftime("%Y-%m")


def to_iso_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
