# Overview: Flask API routes for onboarding sync and current-user lookup.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_identity
from ..errors import SlipSyncError, error_response
from ..services import user_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

ORG_ID_HEADER = "X-Clerk-Org-Id"
ORG_ROLE_HEADER = "X-Clerk-Org-Role"


def _user_payload(user) -> dict:
    return {
        "id": user.id,
        "externalUserId": user.external_user_id,
        "email": user.email,
        "merchantId": user.merchant_id,
        "roleId": user.role_id,
        "roleName": user.role_name,
    }


@auth_bp.post("/sync")
@require_identity
def sync_route():
    """
    Link the signed-in identity to a local user, creating merchant and user
    on first call.

    Headers: X-Clerk-Org-Id (optional merchant id for new users),
    X-Clerk-Org-Role (role hint, e.g. org:admin)
    """
    try:
        user = user_service.sync_user(
            g.identity,
            org_id=request.headers.get(ORG_ID_HEADER),
            org_role=request.headers.get(ORG_ROLE_HEADER),
        )
        return jsonify(_user_payload(user)), 200
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to sync user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_identity
def me_route():
    try:
        user = user_service.get_current_user(g.identity)
        return jsonify(_user_payload(user)), 200
    except SlipSyncError as exc:
        return error_response(exc)
