# Overview: Flask API routes for customers and their ledger.

from flask import Blueprint, current_app, jsonify, request

from ..services import customer_service, ledger_service
from . import SERVICE_ERRORS, service_error_response

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/")
def search_customers_route():
    query = request.args.get("q", "")
    limit = request.args.get("limit", type=int) or current_app.config["CUSTOMER_SEARCH_LIMIT"]
    customers = customer_service.search_customers(query, limit=max(1, limit))
    return jsonify({"items": [c.to_dict() for c in customers]}), 200


@customers_bp.get("/<int:customer_id>/ledger")
def customer_ledger_route(customer_id: int):
    """
    Customer ledger, newest first.

    balance_cents is the running balance after each entry; a negative
    value is what the customer owes.
    """
    try:
        customer = customer_service.get_customer(customer_id)
        entries = ledger_service.get_customer_ledger(customer_id)
    except SERVICE_ERRORS as e:
        return service_error_response(e)

    balance = entries[0].balance_cents if entries else 0
    return jsonify({
        "customer": customer.to_dict(),
        "balance_cents": balance,
        "entries": [entry.to_dict() for entry in entries],
    }), 200
