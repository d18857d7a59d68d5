# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/weighbridge/routes/auth.py
"""
Authentication API routes.

- Local login against bcrypt-hashed site accounts (7 day sessions)
- Delegated login with a cloud dashboard token (24 hour sessions)
- Session ids travel in the JSON body, as the dashboard stores them
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role, require_session
from ..services import auth_service, session_service
from ..services.auth_service import AuthError
from ..services.device_service import current_device_id
from ..services.identity_service import IdentityServiceError
from ..time_utils import to_utc_z
from ..validation import ConflictError, NotFoundError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@auth_bp.post("/login")
def login_route():
    """Authenticate a local user and create a session."""
    try:
        data = _body()
        username = data.get("username")
        password = data.get("password")

        if not username or not password:
            return jsonify({"error": "Username and password are required"}), 400

        try:
            user = auth_service.authenticate(username, password)
        except AuthError as e:
            current_app.logger.warning("Failed login for %s", username)
            return jsonify({"error": str(e)}), 401

        session = session_service.create_session(user)
        return jsonify({
            "user": user.to_dict(),
            "session": session.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Login error")
        return jsonify({"error": "Authentication failed"}), 500


@auth_bp.post("/logout")
def logout_route():
    try:
        session_id = _body().get("session_id")
        if not session_id:
            return jsonify({"error": "Session ID is required"}), 400

        session_service.revoke_session(session_id)
        return jsonify({"message": "Logged out successfully"}), 200

    except Exception:
        current_app.logger.exception("Logout error")
        return jsonify({"error": "Logout failed"}), 500


@auth_bp.post("/validate-session")
def validate_session_route():
    try:
        session_id = _body().get("session_id")
        if not session_id:
            return jsonify({"error": "Session ID is required"}), 400

        context = session_service.validate_session(session_id)
        if context is None:
            return jsonify({"valid": False, "error": "Invalid or expired session"}), 401

        return jsonify({
            "valid": True,
            "user": context.user,
            "expires_at": to_utc_z(context.session.expires_at),
        }), 200

    except Exception:
        current_app.logger.exception("Session validation error")
        return jsonify({"error": "Session validation failed"}), 500


@auth_bp.get("/me")
@require_session
def me_route():
    return jsonify({"user": g.current_user}), 200


@auth_bp.post("/users")
@require_session
@require_role("admin")
def create_user_route():
    """Create a local user (admin session required)."""
    data = _body()
    try:
        user = auth_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            name=data.get("name"),
            role=data.get("role") or "operator",
        )
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Create user error")
        return jsonify({"error": "Failed to create user"}), 500

    current_app.logger.info("Created local user %s (%s)", user.username, user.role)
    return jsonify(user.to_dict()), 201


@auth_bp.post("/change-password")
def change_password_route():
    data = _body()
    user_id = data.get("user_id")
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not user_id or not current_password or not new_password:
        return jsonify({
            "error": "User ID, current password, and new password are required"
        }), 400

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return jsonify({"error": "User ID must be an integer"}), 400

    try:
        auth_service.change_password(user_id, current_password, new_password)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AuthError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Change password error")
        return jsonify({"error": "Failed to change password"}), 500

    return jsonify({"message": "Password changed successfully"}), 200


def _identity_client():
    return current_app.extensions["identity_client"]


@auth_bp.post("/cloud-auth")
def cloud_auth_route():
    """Exchange a cloud dashboard token for a short-lived local session."""
    token = _body().get("token")
    if not token:
        return jsonify({"error": "Token is required"}), 400

    try:
        verdict = _identity_client().validate_token(token, current_device_id())
        if not verdict.valid or not verdict.user_id:
            return jsonify({"error": "Invalid or expired token"}), 401

        session, user = session_service.create_delegated_session(verdict.user_id)
    except IdentityServiceError:
        current_app.logger.exception("Identity service unavailable during cloud auth")
        return jsonify({"error": "Cloud authentication failed"}), 500
    except Exception:
        current_app.logger.exception("Cloud authentication error")
        return jsonify({"error": "Cloud authentication failed"}), 500

    return jsonify({"user": user, "session": session.to_dict()}), 200
