from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

TICKET_STATUSES = ("pending", "completed", "cancelled")
BACKUP_STATUSES = ("pending", "completed", "failed")


class WeighTicket(db.Model):
    """
    One vehicle's pass over the weighbridge.

    Lifecycle fields (net_weight, status, weigh_in_time, weigh_out_time) are
    derived by services.ticket_lifecycle; routes never set them directly
    except for an explicit status override.

    version_id guards the read-modify-write in update_ticket: a concurrent
    edit bumps it and the losing flush raises StaleDataError.
    """
    __tablename__ = "weigh_tickets"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_weigh_tickets_status",
        ),
        db.CheckConstraint(
            "backup_status IN ('pending', 'completed', 'failed')",
            name="ck_weigh_tickets_backup_status",
        ),
        db.Index("ix_weigh_tickets_created_at", "created_at"),
        db.Index("ix_weigh_tickets_backup", "status", "backup_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ticket_number = db.Column(db.String(32), nullable=False, unique=True)

    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    vehicle_id = db.Column(db.String(64), nullable=True)
    material = db.Column(db.String(128), nullable=False)

    gross_weight = db.Column(db.Float, nullable=True)
    tare_weight = db.Column(db.Float, nullable=True)
    net_weight = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(16), nullable=False, default="kg", server_default="kg")

    weigh_in_time = db.Column(db.DateTime, nullable=True)
    weigh_out_time = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", server_default="pending")
    notes = db.Column(db.Text, nullable=True)
    backup_status = db.Column(db.String(16), nullable=False, default="pending", server_default="pending")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("weigh_tickets", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        customer = self.customer
        return {
            "id": self.id,
            "ticket_number": self.ticket_number,
            "customer_id": self.customer_id,
            "vehicle_id": self.vehicle_id,
            "material": self.material,
            "gross_weight": self.gross_weight,
            "tare_weight": self.tare_weight,
            "net_weight": self.net_weight,
            "unit": self.unit,
            "weigh_in_time": to_utc_z(self.weigh_in_time),
            "weigh_out_time": to_utc_z(self.weigh_out_time),
            "status": self.status,
            "notes": self.notes,
            "backup_status": self.backup_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            # Display convenience for list/detail views
            "customer_name": customer.name if customer else None,
            "customer_company": customer.company if customer else None,
        }
