# Overview: Append-only security audit trail; writes SecurityEvent rows.

from __future__ import annotations

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent


PERMISSION_DENIED = "PERMISSION_DENIED"
STORE_ACCESS_DENIED = "STORE_ACCESS_DENIED"
CROSS_TENANT_ACCESS_DENIED = "CROSS_TENANT_ACCESS_DENIED"
DEVICE_AUTH_FAILED = "DEVICE_AUTH_FAILED"
PRINT_JOB_REPORT_REJECTED = "PRINT_JOB_REPORT_REJECTED"
ROLE_CHANGED = "ROLE_CHANGED"


def log_security_event(
    event_type: str,
    success: bool,
    *,
    merchant_id: str | None = None,
    store_id: str | None = None,
    user_id: str | None = None,
    device_identifier: str | None = None,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    commit: bool = True,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    MULTI-TENANT: Includes merchant_id and store_id for tenant-scoped auditing.

    When called inside a request, resource/action default to the request path
    and method, and the client IP and user agent are recorded.

    commit=False adds the event to the current session and leaves the commit
    to the caller, so the event lands in the same transaction as the change
    it describes.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        merchant_id=merchant_id,
        store_id=store_id,
        user_id=user_id,
        device_identifier=device_identifier,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
    )
    db.session.add(event)
    if commit:
        db.session.commit()
    return event


def list_security_events(merchant_id: str, *, event_type: str | None = None, limit: int = 100) -> list[SecurityEvent]:
    query = db.session.query(SecurityEvent).filter_by(merchant_id=merchant_id)
    if event_type:
        query = query.filter_by(event_type=event_type)
    return query.order_by(SecurityEvent.id.desc()).limit(limit).all()
