# Overview: Flask API routes for bills operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..money import ADJUSTMENT_AMOUNT
from ..services import billing_service, payment_service, reporting_service, return_service
from . import SERVICE_ERRORS, json_object, service_error_response

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


def _global_adjustments(data: dict) -> dict:
    return {
        "global_discount_value": data.get("global_discount_value", 0) or 0,
        "global_discount_type": data.get("global_discount_type") or ADJUSTMENT_AMOUNT,
        "global_tax_rate_bps": data.get("global_tax_rate_bps", 0) or 0,
    }


@bills_bp.post("/")
def create_bill_route():
    """
    Checkout.

    Request body:
    {
        "items": [
            {"product_id": 1, "quantity": 2, "discount_value": 0,
             "discount_type": "amount", "tax_rate_bps": 1800}
        ],
        "calculation_mode": "itemized",
        "payment": "Cash" | {"mode": "UPI", "status": "Partial", "amount_paid_cents": 5000},
        "employee_id": 3,  (optional, omitted = owner)
        "customer": {"name": "Ravi", "phone": "9876543210"},  (optional)
        "global_discount_value": 0, "global_discount_type": "percent", "global_tax_rate_bps": 0
    }
    """
    try:
        data = json_object()
        bill = billing_service.create_bill(
            items=data.get("items"),
            calculation_mode=data.get("calculation_mode"),
            payment=data.get("payment"),
            employee_id=data.get("employee_id"),
            customer=data.get("customer"),
            seller_name=data.get("seller_name"),
            bill_date=data.get("bill_date"),
            **_global_adjustments(data),
        )
        return jsonify({"bill": reporting_service.serialize_bill(bill)}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.post("/preview")
def preview_bill_route():
    try:
        data = json_object()
        breakdown = billing_service.preview_bill(
            items=data.get("items"),
            calculation_mode=data.get("calculation_mode"),
            **_global_adjustments(data),
        )
        return jsonify(breakdown.to_dict()), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@bills_bp.get("/")
def list_bills_route():
    """
    Bill history.

    Query params: start, end (ISO dates), min_total_cents, max_total_cents,
    seller, customer, status (Paid|Partial|Unpaid)
    """
    try:
        bills = reporting_service.get_bills_by_filter(
            start=request.args.get("start"),
            end=request.args.get("end"),
            min_total_cents=request.args.get("min_total_cents"),
            max_total_cents=request.args.get("max_total_cents"),
            seller_name=request.args.get("seller"),
            customer_name=request.args.get("customer"),
            payment_status=request.args.get("status"),
        )
        return jsonify({"items": bills, "count": len(bills)}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@bills_bp.get("/<int:bill_id>")
def get_bill_route(bill_id: int):
    try:
        return jsonify({"bill": reporting_service.get_bill_detail(bill_id)}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@bills_bp.post("/<int:bill_id>/payments")
def add_payment_route(bill_id: int):
    """
    Record an additional payment.

    Request body:
    {
        "amount_cents": 5000,
        "payment_mode": "Cash"
    }
    """
    try:
        data = json_object()
        if data.get("amount_cents") is None:
            return jsonify({"error": "amount_cents required"}), 400
        payment_service.record_payment(bill_id, data["amount_cents"], data.get("payment_mode"))
        return jsonify(payment_service.get_payment_summary(bill_id)), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.get("/<int:bill_id>/payments")
def get_payments_route(bill_id: int):
    try:
        return jsonify(payment_service.get_payment_summary(bill_id)), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@bills_bp.post("/<int:bill_id>/returns")
def create_return_route(bill_id: int):
    """
    Return units of a product sold on this bill.

    Request body:
    {
        "product_id": 1,
        "quantity": 1,
        "refund_amount_cents": 1000,  (optional, defaults to pro-rata charge)
        "reason": "Damaged can"  (optional)
    }
    """
    try:
        data = json_object()
        if data.get("product_id") is None or data.get("quantity") is None:
            return jsonify({"error": "product_id and quantity required"}), 400
        return_doc = return_service.process_return(
            bill_id,
            data["product_id"],
            data["quantity"],
            refund_amount_cents=data.get("refund_amount_cents"),
            reason=data.get("reason"),
        )
        return jsonify({"return": return_doc.to_dict()}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process return")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.get("/<int:bill_id>/returns")
def list_returns_route(bill_id: int):
    try:
        returns = return_service.get_bill_returns(bill_id)
        return jsonify({"items": [r.to_dict() for r in returns]}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
