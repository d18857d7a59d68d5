# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..models import Customer
from ..services import customers_service
from ..services.customers_service import CUSTOMER_MUTABLE_FIELDS
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset(CUSTOMER_MUTABLE_FIELDS),
    required_on_create=frozenset({"name"}),
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _validated(payload: dict) -> dict:
    # PUT replaces the record, so name is required on both create and update
    return validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)


@customers_bp.get("")
def list_customers_route():
    """Query params: search (matches name or company)."""
    try:
        customers = customers_service.list_customers(search=request.args.get("search") or None)
    except Exception:
        current_app.logger.exception("Error fetching customers")
        return jsonify({"error": "Failed to retrieve customers"}), 500
    return jsonify(customers), 200


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    try:
        return jsonify(customers_service.get_customer(customer_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@customers_bp.post("")
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = _validated(payload)
        created = customers_service.create_customer(patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Error creating customer")
        return jsonify({"error": "Failed to create customer"}), 500
    return jsonify(created), 201


@customers_bp.put("/<int:customer_id>")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = _validated(payload)
        updated = customers_service.update_customer(customer_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Error updating customer %s", customer_id)
        return jsonify({"error": "Failed to update customer"}), 500
    return jsonify(updated), 200


@customers_bp.delete("/<int:customer_id>")
def delete_customer_route(customer_id: int):
    """Blocked with 400 while any weigh ticket references the customer."""
    try:
        customers_service.delete_customer(customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Error deleting customer %s", customer_id)
        return jsonify({"error": "Failed to delete customer"}), 500
    return jsonify({"message": "Customer deleted successfully"}), 200
