# Overview: Pairing, authentication and liveness of print agents.

"""
Print device registry.

WHY: The print agent runs on a shop PC and cannot hold a user session. It
pairs once, presenting a user token, and receives a long-lived device secret
that authenticates every later call (X-Device-Secret).

SECURITY:
- Secrets are 32 bytes from secrets.token_urlsafe.
- Secrets are stored Fernet-encrypted (see slipsync.crypto).
- Lookup goes through the SHA-256 of the presented secret and the stored
  hash is compared with hmac.compare_digest.
- Re-pairing the same device identifier returns the existing secret; only an
  explicit rotation issues a new one.
- A device identifier paired with one merchant cannot be re-paired by
  another; the attempt is answered like a missing device.

Heartbeats for identifiers that were never paired are rejected; agents must
register first.
"""

from __future__ import annotations

import hmac
import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..crypto import hash_secret
from ..extensions import db
from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import PrintDevice, User
from ..time_utils import utcnow
from . import security_service


DEFAULT_DEVICE_NAME = "POS Terminal"
MAX_IDENTIFIER_LENGTH = 255


def generate_device_secret() -> str:
    return secrets.token_urlsafe(32)


def _clean_name(name) -> str | None:
    if name is None:
        return None
    if not isinstance(name, str):
        raise ValidationError("name must be a string")
    return name.strip()[:255] or None


def _clean_identifier(device_identifier) -> str:
    value = (device_identifier or "").strip() if isinstance(device_identifier, str) else ""
    if not value:
        raise ValidationError("deviceIdentifier is required")
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(f"deviceIdentifier must be at most {MAX_IDENTIFIER_LENGTH} characters")
    return value


def get_device(device_identifier: str) -> PrintDevice | None:
    return db.session.query(PrintDevice).filter_by(device_identifier=device_identifier).first()


def get_merchant_device(device_identifier: str, merchant_id: str) -> PrintDevice:
    device = get_device(device_identifier) if device_identifier else None
    if device is None or device.merchant_id != merchant_id:
        raise NotFoundError("Print device not found")
    return device


def register_device(user: User, device_identifier, name: str | None = None) -> PrintDevice:
    """
    Idempotent pairing keyed by device identifier.

    Returns the device; device.api_secret is the secret to hand back. An
    existing device keeps its secret and has its name and last_seen
    refreshed.
    """
    identifier = _clean_identifier(device_identifier)
    name = _clean_name(name) or DEFAULT_DEVICE_NAME

    for attempt in range(2):
        device = get_device(identifier)
        if device is not None and device.merchant_id != user.merchant_id:
            security_service.log_security_event(
                security_service.CROSS_TENANT_ACCESS_DENIED,
                False,
                merchant_id=user.merchant_id,
                user_id=user.id,
                device_identifier=identifier,
                reason="Device identifier already paired with another merchant",
            )
            raise NotFoundError("Print device not found")

        created = device is None
        if created:
            device = PrintDevice(device_identifier=identifier, merchant_id=user.merchant_id)
            device.api_secret = generate_device_secret()
            db.session.add(device)

        device.name = name
        device.last_seen = utcnow()
        try:
            db.session.commit()
        except IntegrityError:
            # Concurrent pairing of the same identifier; the other request won.
            db.session.rollback()
            if attempt:
                raise
            continue

        current_app.logger.info(
            "Print device %s %s for merchant %s",
            identifier,
            "paired" if created else "re-paired",
            user.merchant_id,
        )
        return device


def resolve_by_secret(secret: str | None) -> PrintDevice | None:
    if not secret:
        return None
    presented_hash = hash_secret(secret)
    device = db.session.query(PrintDevice).filter_by(api_secret_hash=presented_hash).first()
    if device is None:
        return None
    if not hmac.compare_digest(device.api_secret_hash, presented_hash):
        return None
    return device


def heartbeat(device: PrintDevice, device_identifier=None, name: str | None = None) -> PrintDevice:
    """
    Mark an authenticated device as seen now.

    device_identifier, when sent, must name the authenticated device itself;
    an identifier that was never paired, or belongs to another merchant, is
    rejected with "register first".
    """
    if device_identifier:
        identifier = _clean_identifier(device_identifier)
        target = get_device(identifier)
        if target is None:
            raise NotFoundError("Device not registered. Register it first.")
        if target.id != device.id:
            security_service.log_security_event(
                security_service.DEVICE_AUTH_FAILED,
                False,
                merchant_id=device.merchant_id,
                device_identifier=device.device_identifier,
                reason=f"Heartbeat for {identifier} sent with another device's secret",
            )
            if target.merchant_id != device.merchant_id:
                raise NotFoundError("Device not registered. Register it first.")
            raise ForbiddenError("Device secret does not match deviceIdentifier")

    name = _clean_name(name)
    if name:
        device.name = name
    device.last_seen = utcnow()
    db.session.commit()
    return device


def list_online(merchant_id: str, within_seconds: int | None = None) -> list[PrintDevice]:
    if within_seconds is None:
        within_seconds = current_app.config.get("PRINT_DEVICE_ONLINE_WINDOW_SECONDS", 10)
    threshold = utcnow() - timedelta(seconds=within_seconds)
    return (
        db.session.query(PrintDevice)
        .filter(
            PrintDevice.merchant_id == merchant_id,
            PrintDevice.last_seen.isnot(None),
            PrintDevice.last_seen > threshold,
        )
        .order_by(PrintDevice.last_seen.desc())
        .all()
    )


def list_devices(merchant_id: str | None = None) -> list[PrintDevice]:
    query = db.session.query(PrintDevice)
    if merchant_id:
        query = query.filter_by(merchant_id=merchant_id)
    return query.order_by(PrintDevice.created_at.asc()).all()


def rotate_secret(merchant_id: str, device_identifier: str) -> PrintDevice:
    """
    Issue a new secret. The old one stops authenticating immediately; queued
    jobs stay deliverable because jobs route on the device identifier.
    """
    device = get_merchant_device(device_identifier, merchant_id)
    device.api_secret = generate_device_secret()
    db.session.commit()
    current_app.logger.info("Rotated secret for print device %s", device.device_identifier)
    return device
