# backend/weighbridge/__init__.py
from pathlib import Path

from flask import Flask, request
from flask_migrate import upgrade
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .config import Config
from .extensions import db, migrate
from .logging_config import setup_logging

MIGRATIONS_DIR = str(Path(__file__).resolve().parent.parent / "migrations")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with FK enforcement off; only touch sqlite3 connections
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_overrides: dict | None = None) -> Flask:
    # static files come from FRONTEND_BUILD_DIR via the frontend blueprint
    app = Flask(__name__, instance_relative_config=True, static_folder=None)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.identity_service import IdentityClient
    app.extensions.setdefault("identity_client", IdentityClient.from_config(app.config))

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.customers import customers_bp
    from .routes.tickets import tickets_bp
    from .routes.frontend import frontend_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(frontend_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", []):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Session-Id"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        return response

    @app.after_request
    def log_request(response):
        app.logger.info(
            '%s "%s %s" %s',
            request.remote_addr, request.method, request.full_path.rstrip("?"), response.status_code,
        )
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def init_site(app: Flask) -> str:
    """
    Bring the schema to head and resolve the device id; run once at process start.

    Returns the device id.
    """
    from .services.device_service import ensure_device_id

    with app.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        device_id = ensure_device_id(app)
        app.logger.info("Database initialized successfully")
        app.logger.info("Device ID: %s", device_id)
    return device_id
