# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, WeighTicket
from ..validation import NotFoundError, ValidationError
from ..time_utils import utcnow

CUSTOMER_MUTABLE_FIELDS = ("name", "company", "email", "phone", "address")


def _get(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def list_customers(search: str | None = None) -> list[dict]:
    """All customers by name; search matches name or company."""
    query = db.session.query(Customer)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.company.ilike(like)))
    return [c.to_dict() for c in query.order_by(Customer.name.asc(), Customer.id.asc()).all()]


def get_customer(customer_id: int) -> dict:
    return _get(customer_id).to_dict()


def create_customer(*, patch: dict) -> dict:
    now = utcnow()
    customer = Customer(created_at=now, updated_at=now)
    for key in CUSTOMER_MUTABLE_FIELDS:
        setattr(customer, key, patch.get(key))
    db.session.add(customer)
    db.session.commit()
    return customer.to_dict()


def update_customer(customer_id: int, *, patch: dict) -> dict:
    """
    Full replacement of the editable fields (PUT semantics).

    Optional fields omitted from the payload are cleared, matching what the
    customer form sends.
    """
    customer = _get(customer_id)
    for key in CUSTOMER_MUTABLE_FIELDS:
        setattr(customer, key, patch.get(key))
    customer.updated_at = utcnow()
    db.session.commit()
    return customer.to_dict()


def delete_customer(customer_id: int) -> None:
    """
    Delete a customer that no ticket references.

    Raises ValidationError when tickets still point at it; tickets are
    never cascaded or orphaned from here.
    """
    customer = _get(customer_id)
    ticket_count = (
        db.session.query(WeighTicket)
        .filter(WeighTicket.customer_id == customer_id)
        .count()
    )
    if ticket_count > 0:
        raise ValidationError("Cannot delete customer with associated weigh tickets")
    db.session.delete(customer)
    db.session.commit()
