# backend/weighbridge/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

# Values already present in the process environment win over the env file.
ENV_FILE = os.environ.get("DEVICE_ENV_FILE", ".env")
load_dotenv(ENV_FILE)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process (one database per site)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///weight_scale.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Site identity: explicit DEVICE_ID, else PI_DEVICE_ID from the env file
    DEVICE_ID = os.environ.get("DEVICE_ID") or os.environ.get("PI_DEVICE_ID")
    DEVICE_ENV_FILE = ENV_FILE

    # Delegated auth (cloud dashboard identity service)
    IDENTITY_SERVICE_URL = os.environ.get("IDENTITY_SERVICE_URL", "")
    IDENTITY_SERVICE_KEY = os.environ.get("IDENTITY_SERVICE_KEY", "")

    # Applies to every outbound HTTP call
    OUTBOUND_TIMEOUT_SECONDS = float(os.environ.get("OUTBOUND_TIMEOUT_SECONDS", "10"))

    # Spreadsheet backup
    EXPORT_TARGET = os.environ.get("EXPORT_TARGET", "workbook")
    EXPORT_WORKBOOK_PATH = os.environ.get("EXPORT_WORKBOOK_PATH", "weigh_tickets_backup.xlsx")
    GOOGLE_SPREADSHEET_ID = os.environ.get("GOOGLE_SPREADSHEET_ID", "")
    GOOGLE_SERVICE_ACCOUNT_EMAIL = os.environ.get("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
    GOOGLE_PRIVATE_KEY = os.environ.get("GOOGLE_PRIVATE_KEY", "")

    # IANA zone for ticket-number dates (e.g. "America/Chicago"); empty uses host local time
    SITE_TIMEZONE = os.environ.get("SITE_TIMEZONE", "")

    # Prebuilt dashboard (served when the directory exists)
    FRONTEND_BUILD_DIR = os.environ.get("FRONTEND_BUILD_DIR", "")

    # Logging: file handlers only when LOG_DIR is set
    LOG_DIR = os.environ.get("LOG_DIR", "")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]
