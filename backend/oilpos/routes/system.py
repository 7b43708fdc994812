# Overview: Flask API routes for system health.

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..storage import get_storage

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        revision = get_storage(current_app).current_revision()
    except SQLAlchemyError:
        current_app.logger.exception("Health check failed")
        return jsonify({"status": "error", "database": "unavailable"}), 503

    return jsonify({"status": "ok", "database": "ok", "schema_revision": revision}), 200
