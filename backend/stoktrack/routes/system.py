# backend/stoktrack/routes/system.py
"""
System health endpoint.

Reports database reachability and the state of the session and snapshot
tables for deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import User, Product, Kiosk, SessionToken, AvailabilitySnapshot
from stoktrack.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def _timed(check):
    start_time = time.time()
    result = check()
    result["latency_ms"] = round((time.time() - start_time) * 1000, 2)
    return result


def check_database_health() -> dict:
    try:
        return {
            "status": "healthy",
            "details": {
                "users": db.session.query(User).count(),
                "products": db.session.query(Product).filter_by(is_deleted=False).count(),
                "kiosks": db.session.query(Kiosk).filter_by(is_deleted=False).count(),
            },
        }
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "error": "Database error"}


def check_session_service_health() -> dict:
    try:
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()
        return {
            "status": "healthy",
            "details": {
                "active_sessions": active_sessions,
                "expired_not_revoked": expired_sessions,
            },
        }
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Session service health check failed")
        return {"status": "unhealthy", "error": "Session service error"}


def check_snapshot_health() -> dict:
    try:
        rows = db.session.query(AvailabilitySnapshot).filter_by(is_deleted=False).count()
        return {"status": "healthy", "details": {"snapshot_rows": rows}}
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Snapshot health check failed")
        return {"status": "unhealthy", "error": "Snapshot table error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: All systems healthy
    - 503: One or more systems unhealthy
    """
    start_time = time.time()

    checks = {
        "database": _timed(check_database_health),
        "session_service": _timed(check_session_service_health),
        "stock_snapshot": _timed(check_snapshot_health),
    }

    unhealthy = any(c["status"] == "unhealthy" for c in checks.values())

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }
    return response, 503 if unhealthy else 200
