# backend/pdv/routes/system.py
"""Health endpoint."""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from pdv.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        current_app.logger.exception("Health check database query failed")
        database = "error"

    status = "ok" if database == "ok" else "degraded"
    return jsonify({
        "status": status,
        "database": database,
        "timestamp": to_utc_z(utcnow()),
    }), 200 if status == "ok" else 503
