# Overview: Flask API routes for dashboard reporting.

from flask import Blueprint, current_app, jsonify, request

from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
def dashboard_route():
    threshold = request.args.get("low_stock_threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    return jsonify(reporting_service.get_dashboard_stats(low_stock_threshold=threshold)), 200
