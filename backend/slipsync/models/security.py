from __future__ import annotations

from ..extensions import db
from slipsync.time_utils import to_utc_z, utcnow


class SecurityEvent(db.Model):
    """
    Security event audit log with tenant context.

    MULTI-TENANT: Events carry merchant_id (and store_id where applicable) for
    tenant filtering. Device-origin events carry device_identifier instead of
    user_id.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_type", "user_id", "event_type"),
        db.Index("ix_security_events_merchant_occurred", "merchant_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Nullable for pre-auth and device events
    merchant_id = db.Column(db.String(255), nullable=True, index=True)
    store_id = db.Column(db.String(36), nullable=True, index=True)
    user_id = db.Column(db.String(36), nullable=True, index=True)
    device_identifier = db.Column(db.String(255), nullable=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(128), nullable=True)  # e.g., "/api/print-jobs/<id>/response"
    action = db.Column(db.String(64), nullable=True)

    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "deviceIdentifier": self.device_identifier,
            "eventType": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "ipAddress": self.ip_address,
            "occurredAt": to_utc_z(self.occurred_at),
        }
