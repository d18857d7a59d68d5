# backend/weighbridge/routes/system.py
"""
System endpoints: health, device id, and cloud token validation.
"""

import time
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text

from ..extensions import db
from ..services.device_service import current_device_id
from ..services.identity_service import IdentityServiceError
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Liveness plus a database round trip.

    Returns:
    - 200 {"status": "ok", ...} when the database answers
    - 503 {"status": "unhealthy", ...} otherwise
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    return {
        "status": "ok" if healthy else "unhealthy",
        "deviceId": current_app.config.get("DEVICE_ID"),
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, 200 if healthy else 503


@system_bp.get("/device-id")
def device_id():
    return {
        "deviceId": current_device_id(),
        "message": "Use this ID to register your device in the cloud dashboard",
    }


@system_bp.get("/api/validate-token")
def validate_token():
    token = request.args.get("token")
    if not token:
        return jsonify({"error": "Token is required"}), 400

    try:
        verdict = current_app.extensions["identity_client"].validate_token(
            token, current_device_id()
        )
    except IdentityServiceError:
        current_app.logger.exception("Token validation error")
        return jsonify({"error": "Failed to validate token"}), 500

    if verdict.valid:
        return jsonify({"valid": True, "user_id": verdict.user_id}), 200
    return jsonify({"valid": False, "error": "Invalid or expired token"}), 401
