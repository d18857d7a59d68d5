# Overview: Daily backup of completed weigh tickets to a spreadsheet.

"""
Ticket export job.

Picks every completed ticket whose backup is pending or previously failed,
appends them to the "Weigh Tickets" worksheet in one call and flags the
whole batch. There is no per-row bookkeeping: if anything in the batch
fails, every ticket in it is flagged "failed" and retried on the next run.

Invoked by `flask export run`, scheduled daily by cron.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import WeighTicket
from ..time_utils import to_utc_z, utcnow
from .sheets import SheetTarget

WORKSHEET_TITLE = "Weigh Tickets"
HEADERS = (
    "Ticket Number",
    "Customer",
    "Company",
    "Vehicle ID",
    "Material",
    "Gross Weight",
    "Tare Weight",
    "Net Weight",
    "Unit",
    "Weigh In Time",
    "Weigh Out Time",
    "Status",
    "Notes",
    "Created At",
    "Device ID",
)


@dataclass
class ExportResult:
    status: str  # "empty" | "completed" | "failed"
    exported: int = 0
    error: str | None = None


def find_pending_tickets() -> list[WeighTicket]:
    return (
        db.session.query(WeighTicket)
        .options(joinedload(WeighTicket.customer))
        .filter(
            WeighTicket.status == "completed",
            WeighTicket.backup_status.in_(("pending", "failed")),
        )
        .order_by(WeighTicket.created_at.asc(), WeighTicket.id.asc())
        .all()
    )


def _blank(value):
    return "" if value is None else value


def ticket_row(ticket: WeighTicket, device_id: str | None) -> list:
    customer = ticket.customer
    return [
        ticket.ticket_number,
        customer.name if customer else "Unknown",
        _blank(customer.company if customer else None),
        _blank(ticket.vehicle_id),
        ticket.material,
        _blank(ticket.gross_weight),
        _blank(ticket.tare_weight),
        _blank(ticket.net_weight),
        ticket.unit,
        _blank(to_utc_z(ticket.weigh_in_time)),
        _blank(to_utc_z(ticket.weigh_out_time)),
        ticket.status,
        _blank(ticket.notes),
        ticket.created_at.strftime("%Y-%m-%d"),
        _blank(device_id),
    ]


def _mark(ticket_ids: list[int], backup_status: str, now: datetime) -> None:
    (
        db.session.query(WeighTicket)
        .filter(WeighTicket.id.in_(ticket_ids))
        .update(
            {"backup_status": backup_status, "updated_at": now},
            synchronize_session=False,
        )
    )
    db.session.commit()


def run_export(target: SheetTarget, device_id: str | None, now: datetime | None = None) -> ExportResult:
    """
    Export one batch. Never raises for target failures; the batch is flagged
    and the failure is reported in the result.
    """
    logger = current_app.logger
    logger.info("Starting weigh tickets backup")

    tickets = find_pending_tickets()
    if not tickets:
        logger.info("No new tickets to backup")
        return ExportResult(status="empty")

    ticket_ids = [t.id for t in tickets]
    logger.info("Found %d weigh tickets to backup", len(tickets))

    try:
        rows = [ticket_row(t, device_id) for t in tickets]
        target.ensure_worksheet(WORKSHEET_TITLE, HEADERS)
        target.append_rows(WORKSHEET_TITLE, rows)
    except Exception as exc:
        logger.exception("Backup of %d tickets failed", len(ticket_ids))
        db.session.rollback()
        _mark(ticket_ids, "failed", now or utcnow())
        return ExportResult(status="failed", exported=0, error=str(exc))

    _mark(ticket_ids, "completed", now or utcnow())
    logger.info("Successfully backed up %d tickets", len(ticket_ids))
    return ExportResult(status="completed", exported=len(ticket_ids))
