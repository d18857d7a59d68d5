from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AppSetting(db.Model):
    """Site-wide key/value settings (device_id lives here)."""
    __tablename__ = "app_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
