# Overview: Flask API routes for employee store-access management (admin only).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_admin, require_auth
from ..errors import SlipSyncError, ValidationError, error_response
from ..services import authorization_service, store_access_service, store_service, user_service


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _employee_payload(user) -> dict:
    data = user.to_dict()
    data["storeAccess"] = sorted(store_access_service.list_store_ids_for_user(user.id))
    return data


@employees_bp.get("")
@require_auth
@require_admin
def list_employees():
    employees = user_service.list_employees(g.merchant_id)
    return jsonify([_employee_payload(user) for user in employees]), 200


@employees_bp.get("/stores")
@require_auth
@require_admin
def list_selectable_stores():
    stores = store_service.list_merchant_stores(g.merchant_id)
    return jsonify([{"id": store.id, "name": store.name} for store in stores]), 200


@employees_bp.put("/<user_id>/store-access")
@require_auth
@require_admin
def update_store_access(user_id: str):
    """
    Replace an employee's store access.

    Body: {"storeIds": [...]}. Ids outside the merchant are skipped.
    """
    data = request.get_json(silent=True) or {}
    store_ids = data.get("storeIds")
    try:
        if store_ids is None or not isinstance(store_ids, list):
            raise ValidationError("storeIds must be a list")
        target = user_service.get_merchant_user(user_id, g.merchant_id)
        if not authorization_service.is_employee(target):
            raise ValidationError("Store access can only be assigned to employees")
        store_access_service.replace_store_access(target, store_ids)
        return jsonify(_employee_payload(target)), 200
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update store access")
        return jsonify({"error": "Internal server error"}), 500
