# Overview: Flask API routes for weigh tickets; parses input and returns JSON responses.

# backend/weighbridge/routes/tickets.py
"""
Weigh ticket routes.

Derived fields (net_weight, status, weigh-in/out times) are computed by the
lifecycle engine; clients send weights and may force a status on update.
"""
from flask import Blueprint, current_app, jsonify, request

from ..models import WeighTicket
from ..services import tickets_service
from ..services.ticket_lifecycle import CREATABLE_FIELDS, UPDATABLE_FIELDS
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

TICKET_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=CREATABLE_FIELDS,
    required_on_create=frozenset({"material"}),
)
TICKET_UPDATE_POLICY = ModelValidationPolicy(writable_fields=UPDATABLE_FIELDS)

tickets_bp = Blueprint("weigh_tickets", __name__, url_prefix="/api/weigh-tickets")


@tickets_bp.get("")
def list_tickets_route():
    """
    Query params: status, customer_id, search, start_date, end_date,
    page (default 1), limit (default 20).
    """
    try:
        result = tickets_service.list_tickets(
            status=request.args.get("status") or None,
            customer_id=request.args.get("customer_id", type=int),
            search=request.args.get("search") or None,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Error fetching weigh tickets")
        return jsonify({"error": "Failed to retrieve weigh tickets"}), 500
    return jsonify(result), 200


@tickets_bp.get("/<int:ticket_id>")
def get_ticket_route(ticket_id: int):
    try:
        return jsonify(tickets_service.get_ticket(ticket_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Error fetching weigh ticket %s", ticket_id)
        return jsonify({"error": "Failed to retrieve weigh ticket"}), 500


@tickets_bp.post("")
def create_ticket_route():
    """Create a ticket; material is required, weights are optional."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=WeighTicket, payload=payload, policy=TICKET_CREATE_POLICY, partial=False
        )
        created = tickets_service.create_ticket(patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Error creating weigh ticket")
        return jsonify({"error": "Failed to create weigh ticket"}), 500

    current_app.logger.info("Created weigh ticket %s", created["ticket_number"])
    return jsonify(created), 201


@tickets_bp.put("/<int:ticket_id>")
def update_ticket_route(ticket_id: int):
    """
    Partial update (weigh-out or edits).

    Only keys present in the body are touched; send a key as null to clear it.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=WeighTicket, payload=payload, policy=TICKET_UPDATE_POLICY, partial=True
        )
        updated = tickets_service.update_ticket(ticket_id, patch=patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Error updating weigh ticket %s", ticket_id)
        return jsonify({"error": "Failed to update weigh ticket"}), 500

    return jsonify(updated), 200


@tickets_bp.delete("/<int:ticket_id>")
def delete_ticket_route(ticket_id: int):
    try:
        tickets_service.delete_ticket(ticket_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Error deleting weigh ticket %s", ticket_id)
        return jsonify({"error": "Failed to delete weigh ticket"}), 500

    return jsonify({"message": "Weigh ticket deleted successfully"}), 200
