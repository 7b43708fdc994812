# Overview: Shared JSON error mapping for the API blueprints.

from flask import jsonify, request

from ..validation import ConflictError, NotFoundError, ValidationError


def json_object() -> dict:
    """Request body as a dict. A missing or unparseable body reads as {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def service_error_response(exc: Exception):
    """Translate a typed service failure into a JSON error response."""
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc), "details": exc.details}), 409
    details = getattr(exc, "details", None)
    body = {"error": str(exc)}
    if details:
        body["details"] = details
    return jsonify(body), 400


SERVICE_ERRORS = (ValidationError, NotFoundError, ConflictError)
