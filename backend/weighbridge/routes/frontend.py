# Overview: serves the prebuilt dashboard (single-page app) when configured.

from pathlib import Path

from flask import Blueprint, abort, current_app, send_from_directory

frontend_bp = Blueprint("frontend", __name__)


def _build_dir() -> Path | None:
    configured = current_app.config.get("FRONTEND_BUILD_DIR")
    if not configured:
        return None
    path = Path(configured).resolve()
    return path if path.is_dir() else None


@frontend_bp.get("/", defaults={"path": ""})
@frontend_bp.get("/<path:path>")
def serve_frontend(path: str):
    """Static asset if it exists, else index.html so client-side routes resolve."""
    build_dir = _build_dir()
    if build_dir is None or path.startswith("api/"):
        abort(404)
    if path and (build_dir / path).is_file():
        return send_from_directory(build_dir, path)
    return send_from_directory(build_dir, "index.html")
