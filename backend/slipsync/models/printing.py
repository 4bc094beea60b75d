from __future__ import annotations

import json

from ..extensions import db
from slipsync.crypto import decrypt_secret, encrypt_secret, hash_secret
from slipsync.time_utils import to_utc_z, utcnow
from .tenancy import generate_id


PRINT_JOB_QUEUED = "queued"
PRINT_JOB_PROCESSING = "processing"
PRINT_JOB_SUCCESS = "success"
PRINT_JOB_FAILED = "failed"

PRINT_JOB_TERMINAL_STATUSES = frozenset({PRINT_JOB_SUCCESS, PRINT_JOB_FAILED})


class PrintDevice(db.Model):
    """
    A paired print agent.

    WHY: The agent authenticates every call after pairing with api_secret.
    device_identifier is chosen by the agent and stays stable across restarts;
    it is also the routing key print jobs are dispatched on, so rotating the
    secret never strands queued jobs.

    api_secret_hash (SHA-256 hex) is the lookup column for device
    authentication. The secret itself is kept Fernet-encrypted in
    api_secret_encrypted so re-pairing can hand the same secret back to the
    agent; api_secret reads and writes it in the clear and keeps the hash in
    step.
    """
    __tablename__ = "print_devices"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    device_identifier = db.Column(db.String(255), nullable=False, unique=True, index=True)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=True)

    api_secret_encrypted = db.Column(db.Text, nullable=False)
    api_secret_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    last_seen = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    merchant = db.relationship("Merchant", backref=db.backref("print_devices", lazy=True))

    @property
    def api_secret(self) -> str:
        return decrypt_secret(self.api_secret_encrypted)

    @api_secret.setter
    def api_secret(self, secret: str) -> None:
        self.api_secret_encrypted = encrypt_secret(secret)
        self.api_secret_hash = hash_secret(secret)

    def __repr__(self) -> str:
        return f"<PrintDevice identifier={self.device_identifier!r} merchant_id={self.merchant_id!r}>"

    def to_dict(self) -> dict:
        # api_secret is only ever returned by the pairing and rotation endpoints
        return {
            "id": self.id,
            "deviceIdentifier": self.device_identifier,
            "merchantId": self.merchant_id,
            "name": self.name,
            "lastSeen": to_utc_z(self.last_seen),
            "createdAt": to_utc_z(self.created_at),
        }


class PrintJob(db.Model):
    """
    A unit of dispatched print work.

    State machine: queued -> processing -> {success, failed}.
    success and failed are terminal. A job left in processing longer than
    PRINT_JOB_CLAIM_TIMEOUT_SECONDS is claimable again.

    payload is the order snapshot serialized when the job was created; the
    queue never interprets it.
    claim_token marks the rows flipped by one claim so the claiming poller
    reads back exactly the rows it won.
    """
    __tablename__ = "print_jobs"
    __table_args__ = (
        db.Index("ix_print_jobs_routing_status", "routing_key", "status"),
        db.Index("ix_print_jobs_merchant_created", "merchant_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True, index=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=True, index=True)

    routing_key = db.Column(db.String(255), nullable=False)
    job_type = db.Column(db.String(32), nullable=False, default="receipt")
    payload = db.Column(db.Text, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=PRINT_JOB_QUEUED)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    error = db.Column(db.Text, nullable=True)

    claim_token = db.Column(db.String(36), nullable=True, index=True)
    claimed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    order = db.relationship("Order", backref=db.backref("print_jobs", lazy=True))

    def __repr__(self) -> str:
        return f"<PrintJob id={self.id!r} status={self.status!r} routing_key={self.routing_key!r}>"

    @property
    def is_terminal(self) -> bool:
        return self.status in PRINT_JOB_TERMINAL_STATUSES

    def payload_data(self):
        try:
            return json.loads(self.payload)
        except (TypeError, ValueError):
            return self.payload

    def to_dict(self, include_payload: bool = True) -> dict:
        data = {
            "id": self.id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "orderId": self.order_id,
            "deviceIdentifier": self.routing_key,
            "jobType": self.job_type,
            "status": self.status,
            "attempts": self.attempts,
            "error": self.error,
            "createdAt": to_utc_z(self.created_at),
            "claimedAt": to_utc_z(self.claimed_at),
            "completedAt": to_utc_z(self.completed_at),
        }
        if include_payload:
            data["payload"] = self.payload_data()
        return data
