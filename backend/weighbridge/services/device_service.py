# Overview: Site device identifier; persisted in the env file and the settings table.

"""
Device identity.

Each installation registers with the cloud dashboard under a generated id.
Resolution order on startup:

1. DEVICE_ID / PI_DEVICE_ID already in config (process env or env file)
2. a new uuid4, written back to the env file as PI_DEVICE_ID

The resolved id is also stored in app_settings under "device_id" unless a
value is already there.
"""
from __future__ import annotations

import uuid
from pathlib import Path

from dotenv import set_key
from flask import current_app

from ..extensions import db
from ..models import AppSetting
from ..time_utils import utcnow

DEVICE_ID_KEY = "device_id"
ENV_VAR = "PI_DEVICE_ID"


def generate_device_id(env_file: str | None) -> str:
    """Create a new id and persist it to env_file (created if missing)."""
    device_id = str(uuid.uuid4())
    if env_file:
        path = Path(env_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
        set_key(str(path), ENV_VAR, device_id, quote_mode="never")
    return device_id


def get_setting(key: str) -> str | None:
    row = db.session.get(AppSetting, key)
    return row.value if row else None


def set_setting(key: str, value: str, *, overwrite: bool = True) -> str:
    """Upsert a setting; with overwrite=False an existing value wins and is returned."""
    row = db.session.get(AppSetting, key)
    if row is None:
        row = AppSetting(key=key, value=value, updated_at=utcnow())
        db.session.add(row)
    elif overwrite:
        row.value = value
        row.updated_at = utcnow()
    db.session.commit()
    return row.value


def ensure_device_id(app) -> str:
    """
    Resolve this site's device id and record it in app.config["DEVICE_ID"].

    Must run inside an app context with tables created.
    """
    device_id = app.config.get("DEVICE_ID")
    if not device_id:
        device_id = generate_device_id(app.config.get("DEVICE_ENV_FILE"))
        current_app.logger.info("Generated new device ID: %s", device_id)

    set_setting(DEVICE_ID_KEY, device_id, overwrite=False)
    app.config["DEVICE_ID"] = device_id
    return device_id


def current_device_id() -> str | None:
    return current_app.config.get("DEVICE_ID") or get_setting(DEVICE_ID_KEY)
