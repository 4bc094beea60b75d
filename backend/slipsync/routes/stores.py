# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import SlipSyncError, error_response
from ..permissions import MANAGE_STORES
from ..services import store_access_service, store_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
def list_stores():
    """Stores of the caller's merchant that the caller can access."""
    stores = store_access_service.list_accessible_stores(g.store_context)
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.post("")
@require_auth
@require_permission(MANAGE_STORES)
def create_store():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(
            g.merchant_id,
            name=data.get("name"),
            address=data.get("address"),
            phone=data.get("phone"),
            timezone=data.get("timezone"),
            currency=data.get("currency"),
        )
        return jsonify(store.to_dict()), 201
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500
