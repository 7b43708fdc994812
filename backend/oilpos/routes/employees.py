# Overview: Flask API routes for employees; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import employee_service
from . import SERVICE_ERRORS, service_error_response

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("/")
def list_employees_route():
    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    employees = employee_service.list_employees(include_inactive=include_inactive)
    return jsonify({"items": [e.to_dict() for e in employees], "count": len(employees)}), 200


@employees_bp.post("/")
def create_employee_route():
    try:
        employee = employee_service.create_employee(request.get_json(silent=True))
        return jsonify({"employee": employee.to_dict()}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.patch("/<int:employee_id>")
def update_employee_route(employee_id: int):
    try:
        employee = employee_service.update_employee(employee_id, request.get_json(silent=True))
        return jsonify({"employee": employee.to_dict()}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@employees_bp.delete("/<int:employee_id>")
def delete_employee_route(employee_id: int):
    try:
        return jsonify(employee_service.delete_employee(employee_id)), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
