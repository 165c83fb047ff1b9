# backend/stockledger/routes/system.py
"""
System health endpoint.

Unauthenticated: load balancers and uptime checks call it without a user.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import StorageEntry
from stockledger.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity by counting storage entries.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        entry_count = db.session.query(StorageEntry).count()
        scope_count = db.session.query(StorageEntry.scope_id).distinct().count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "storage_entries": entry_count,
                "scopes": scope_count,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    return jsonify(body), 200 if healthy else 503
