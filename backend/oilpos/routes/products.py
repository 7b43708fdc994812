# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import inventory_service, products_service
from . import SERVICE_ERRORS, json_object, service_error_response

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/")
def list_products_route():
    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    products = products_service.list_products(include_inactive=include_inactive)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/low-stock")
def low_stock_route():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    products = inventory_service.list_low_stock(threshold)
    return jsonify({"items": [p.to_dict() for p in products], "threshold": threshold}), 200


@products_bp.post("/")
def create_product_route():
    try:
        product = products_service.create_product(request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@products_bp.patch("/<int:product_id>")
def update_product_route(product_id: int):
    try:
        product = products_service.update_product(product_id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        result = products_service.delete_product(product_id)
        return jsonify(result), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/restock")
def restock_route(product_id: int):
    """
    Manual restock.

    Request body:
    {
        "quantity": 24,
        "unit_cost_cents": 41000,  (optional)
        "batch_number": "LOT-2026-07"  (optional)
    }
    """
    try:
        data = json_object()
        if data.get("quantity") is None:
            return jsonify({"error": "quantity required"}), 400
        product =inventory_service.restock_product(
            product_id,
            data["quantity"],
            unit_cost_cents=data.get("unit_cost_cents"),
            batch_number=data.get("batch_number"),
        )
        return jsonify({"product": product.to_dict()}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to restock product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/categories")
def list_categories_route():
    return jsonify({"items": [c.to_dict() for c in products_service.list_categories()]}), 200


@products_bp.post("/categories")
def create_category_route():
    try:
        data = json_object()
        category =products_service.create_category(data.get("name"))
        return jsonify({"category": category.to_dict()}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)


@products_bp.get("/suppliers")
def list_suppliers_route():
    return jsonify({"items": [s.to_dict() for s in products_service.list_suppliers()]}), 200


@products_bp.post("/suppliers")
def create_supplier_route():
    try:
        data = json_object()
        supplier =products_service.create_supplier(
            data.get("name"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
        return jsonify({"supplier": supplier.to_dict()}), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
