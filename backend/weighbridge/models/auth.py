from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

USER_ROLES = ("admin", "operator")


class LocalUser(db.Model):
    """
    Site-local operator account.

    Works offline: credentials are checked against the bcrypt hash stored
    here, never against the cloud dashboard.
    """
    __tablename__ = "local_users"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'operator')", name="ck_local_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="operator", server_default="operator")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
        }


class SessionToken(db.Model):
    """
    Server-side session; the primary key is the opaque token itself.

    user_id is text: local sessions hold the LocalUser id, delegated sessions
    hold "cloud:<remote user id>" and have no local user row.
    Expired rows are simply ignored by validation, nothing sweeps them.
    """
    __tablename__ = "sessions"

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expires_at": to_utc_z(self.expires_at),
        }
