# Overview: Request, permission and device-authentication decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import SlipSyncError, error_response
from .services import (
    authorization_service,
    identity_service,
    print_device_service,
    security_service,
    store_access_service,
    user_service,
)


DEVICE_SECRET_HEADER = "X-Device-Secret"


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'store_context')


def require_identity(f):
    """
    Require a verified bearer token, without requiring a synced User.

    Sets g.identity (VerifiedIdentity). Used by the onboarding endpoints,
    which run before the local User exists.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = identity_service.bearer_token_from_header(request.headers.get("Authorization"))
        if not token:
            return jsonify({"error": "Authentication required"}), 401
        try:
            g.identity = identity_service.verify_bearer_token(token)
        except SlipSyncError as exc:
            return error_response(exc)
        return f(*args, **kwargs)

    return decorated_function


def require_auth(f):
    """
    Require authentication and establish tenant and store context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.identity: The VerifiedIdentity from the bearer token
    - g.current_user: The synced User
    - g.merchant_id: The user's merchant (tenant context)
    - g.store_context: StoreContext with the access set and active store

    The active store is request-scoped and lives only in g.store_context.
    """
    @require_identity
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = user_service.get_user_by_subject(g.identity.subject)
        if user is None:
            return jsonify({"error": "User not found. Please sync your account first."}), 401

        g.current_user = user
        g.merchant_id = user.merchant_id
        g.store_context = store_access_service.build_store_context(request.headers, user)
        return f(*args, **kwargs)

    return decorated_function


def require_store_context(f):
    """Require an active store for the request (after @require_auth)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if g.store_context.store is None:
            return jsonify({"error": "No store assigned"}), 400
        return f(*args, **kwargs)

    return decorated_function


def _deny(reason: str, action: str | None = None):
    context = g.store_context
    security_service.log_security_event(
        security_service.PERMISSION_DENIED,
        False,
        merchant_id=context.merchant_id,
        store_id=context.store_id,
        user_id=context.user.id,
        action=action,
        reason=reason,
    )


def require_permission(permission_code: str):
    """
    Require a named permission for the caller's role.

    MULTI-TENANT: Denials are logged with merchant_id and store_id.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not authorization_service.has_permission(g.current_user, permission_code):
                _deny(f"Missing permission: {permission_code}", action=permission_code)
                return jsonify({
                    "error": "Permission denied",
                    "requiredPermission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_admin(f):
    """Require the ADMIN role (after @require_auth)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if not authorization_service.is_admin(g.current_user):
            _deny("Admin role required")
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)
    return decorated_function


def require_device(f):
    """
    Require a paired print device via X-Device-Secret.

    Sets g.print_device. Unknown secrets are logged as DEVICE_AUTH_FAILED and
    rejected before any queue logic runs.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        secret = request.headers.get(DEVICE_SECRET_HEADER)
        if not secret:
            return jsonify({"error": "Device secret required"}), 401

        device = print_device_service.resolve_by_secret(secret)
        if device is None:
            security_service.log_security_event(
                security_service.DEVICE_AUTH_FAILED,
                False,
                reason="Unknown device secret",
            )
            return jsonify({"error": "Invalid device secret"}), 401

        g.print_device = device
        return f(*args, **kwargs)

    return decorated_function
