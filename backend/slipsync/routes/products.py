# Overview: Flask API routes for products and per-store inventory.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_store_context
from ..errors import SlipSyncError, error_response
from ..permissions import MANAGE_PRODUCTS, UPDATE_INVENTORY, VIEW_INVENTORY
from ..services import catalog_service


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@products_bp.post("")
@require_auth
@require_permission(MANAGE_PRODUCTS)
@require_store_context
def create_product_route():
    """
    Create a product with its default variant and stock in the active store.

    Body: name, price, sku?, description?, categoryId?, cost?, barcode?,
    initialStock?, reorderPoint?
    """
    data = request.get_json(silent=True) or {}
    try:
        product = catalog_service.create_product(
            g.store_context.store,
            name=data.get("name"),
            price=data.get("price"),
            sku=data.get("sku"),
            description=data.get("description"),
            category_id=data.get("categoryId"),
            cost=data.get("cost"),
            barcode=data.get("barcode"),
            initial_stock=data.get("initialStock"),
            reorder_point=data.get("reorderPoint"),
        )
        return jsonify(product.to_dict(include_variants=True)), 201
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("")
@require_auth
def list_products_route():
    products = catalog_service.list_products(g.merchant_id)
    return jsonify([product.to_dict(include_variants=True) for product in products]), 200


@inventory_bp.get("")
@require_auth
@require_permission(VIEW_INVENTORY)
@require_store_context
def list_inventory_route():
    rows = catalog_service.list_inventory(g.store_context.store_id)
    return jsonify([catalog_service.inventory_to_dict(row) for row in rows]), 200


@inventory_bp.put("/adjust")
@require_auth
@require_permission(UPDATE_INVENTORY)
@require_store_context
def adjust_inventory_route():
    """Body: productVariantId, quantityChange (signed), reorderPoint?"""
    data = request.get_json(silent=True) or {}
    try:
        row = catalog_service.adjust_inventory(
            g.store_context.store,
            data.get("productVariantId"),
            data.get("quantityChange"),
            reorder_point=data.get("reorderPoint"),
        )
        return jsonify(catalog_service.inventory_to_dict(row)), 200
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500
