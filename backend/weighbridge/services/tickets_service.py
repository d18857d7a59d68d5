# Overview: Service-layer operations for weigh tickets; encapsulates business logic and database work.

"""
Weigh ticket persistence.

Derivation rules live in ticket_lifecycle; this module loads rows, applies the
staged assignments and handles the database-level concerns:

- ticket numbers are random, so a unique-constraint collision regenerates the
  number (bounded) instead of surfacing as a server error
- updates run load + write in one session and rely on WeighTicket.version_id,
  so two operators editing the same ticket cannot silently interleave
"""
from __future__ import annotations

import random
from datetime import datetime

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Customer, WeighTicket
from ..validation import ConflictError, NotFoundError, ValidationError
from ..time_utils import (
    local_date,
    parse_iso_datetime,
    parse_range_end,
    site_timezone,
    utcnow,
)
from .concurrency import run_with_retry
from .ticket_lifecycle import (
    TicketSnapshot,
    derive_create,
    derive_update,
    generate_ticket_number,
)

TICKET_NUMBER_ATTEMPTS = 5
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def _require_customer(customer_id: int | None) -> None:
    if customer_id is None:
        return
    if db.session.get(Customer, customer_id) is None:
        raise ValidationError("Customer not found")


def _load(ticket_id: int) -> WeighTicket:
    ticket = (
        db.session.query(WeighTicket)
        .options(joinedload(WeighTicket.customer))
        .filter(WeighTicket.id == ticket_id)
        .first()
    )
    if ticket is None:
        raise NotFoundError("Weigh ticket not found")
    return ticket


def get_ticket(ticket_id: int) -> dict:
    return _load(ticket_id).to_dict()


def create_ticket(*, patch: dict, now: datetime | None = None, rng: random.Random | None = None) -> dict:
    """
    Create a ticket from a validated patch.

    Raises:
        ValidationError: material missing or customer unknown
        ConflictError: no free ticket number after TICKET_NUMBER_ATTEMPTS tries
    """
    now = now or utcnow()
    values = derive_create(patch, now)
    _require_customer(values["customer_id"])
    # numbered by the site's calendar day; created_at stays UTC
    ticket_date = local_date(now, site_timezone(current_app.config.get("SITE_TIMEZONE")))

    for attempt in range(1, TICKET_NUMBER_ATTEMPTS + 1):
        ticket = WeighTicket(
            ticket_number=generate_ticket_number(ticket_date, rng),
            created_at=now,
            updated_at=now,
            **values,
        )
        db.session.add(ticket)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if "ticket_number" not in str(exc.orig):
                raise
            current_app.logger.warning(
                "Ticket number %s already taken (attempt %d/%d)",
                ticket.ticket_number, attempt, TICKET_NUMBER_ATTEMPTS,
            )
            continue
        return _load(ticket.id).to_dict()

    raise ConflictError("Could not allocate a unique ticket number")


def update_ticket(ticket_id: int, *, patch: dict, now: datetime | None = None) -> dict:
    """
    Apply a partial update to a ticket.

    Raises:
        NotFoundError: unknown ticket
        ValidationError: empty patch, bad status, unknown customer
        ConflictError: the row kept changing underneath us
    """
    now = now or utcnow()
    if "customer_id" in patch:
        _require_customer(patch["customer_id"])

    def _op() -> int:
        ticket = _load(ticket_id)
        staged = derive_update(TicketSnapshot.of(ticket), patch, now)
        for key, value in staged.items():
            setattr(ticket, key, value)
        ticket.updated_at = now
        db.session.commit()
        return ticket.id

    try:
        run_with_retry(_op)
    except StaleDataError:
        raise ConflictError("Weigh ticket was modified concurrently, retry the update")

    # expire so the customer join reflects a changed customer_id
    db.session.expire_all()
    return _load(ticket_id).to_dict()


def delete_ticket(ticket_id: int) -> None:
    ticket = db.session.get(WeighTicket, ticket_id)
    if ticket is None:
        raise NotFoundError("Weigh ticket not found")
    db.session.delete(ticket)
    db.session.commit()


def _parse_filter_date(value: str | None, *, end: bool):
    try:
        return parse_range_end(value) if end else parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{'end_date' if end else 'start_date'} must be an ISO-8601 date")


def list_tickets(
    *,
    status: str | None = None,
    customer_id: int | None = None,
    search: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """
    Filtered, paginated listing, newest first.

    search matches ticket number, vehicle, material and customer name.
    A date-only end_date includes the whole day.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

    query = db.session.query(WeighTicket).outerjoin(
        Customer, WeighTicket.customer_id == Customer.id
    )

    if status:
        query = query.filter(WeighTicket.status == status)
    if customer_id is not None:
        query = query.filter(WeighTicket.customer_id == customer_id)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(
            WeighTicket.ticket_number.ilike(like),
            WeighTicket.vehicle_id.ilike(like),
            WeighTicket.material.ilike(like),
            Customer.name.ilike(like),
        ))

    start = _parse_filter_date(start_date, end=False)
    if start is not None:
        query = query.filter(WeighTicket.created_at >= start)
    end = _parse_filter_date(end_date, end=True)
    if end is not None:
        query = query.filter(WeighTicket.created_at < end)

    total = query.count()
    tickets = (
        query.options(joinedload(WeighTicket.customer))
        .order_by(WeighTicket.created_at.desc(), WeighTicket.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "tickets": [t.to_dict() for t in tickets],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
        },
    }
