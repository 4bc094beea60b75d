# Overview: Flask API routes for orders and invoices; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_store_context
from ..errors import SlipSyncError, error_response
from ..permissions import PROCESS_SALES
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")
invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@orders_bp.post("")
@require_auth
@require_permission(PROCESS_SALES)
@require_store_context
def create_order_route():
    """
    Place an order in the active store.

    Body: items [{productVariantId, quantity, unitPrice?}], customerId? or
    customer {name, phone, email}, discountAmount?, taxRate? (percent), status?
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(
            g.store_context.store,
            items=data.get("items"),
            placed_by_user_id=g.current_user.id,
            customer_id=data.get("customerId"),
            customer=data.get("customer"),
            discount_amount=data.get("discountAmount"),
            tax_rate=data.get("taxRate"),
            status=data.get("status"),
        )
        payload = order.to_dict(include_items=True)
        payload["invoice"] = order.invoice.to_dict() if order.invoice else None
        return jsonify(payload), 201
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
@require_store_context
def list_orders_route():
    orders = order_service.list_orders(g.store_context.store_id)
    return jsonify([order_service.order_summary(order) for order in orders]), 200


@orders_bp.get("/<order_id>")
@require_auth
@require_store_context
def get_order_route(order_id: str):
    try:
        order = order_service.get_store_order(order_id, g.store_context.store)
        return jsonify(order.to_dict(include_items=True)), 200
    except SlipSyncError as exc:
        return error_response(exc)


@invoices_bp.get("")
@require_auth
@require_store_context
def list_invoices_route():
    invoices = order_service.list_invoices(g.store_context.store_id)
    return jsonify([invoice.to_dict() for invoice in invoices]), 200
