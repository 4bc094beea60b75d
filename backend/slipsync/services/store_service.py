# Overview: Service-layer operations for stores; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Merchant, Store


def create_store(
    merchant_id: str,
    *,
    name: str | None,
    address: str | None = None,
    phone: str | None = None,
    timezone: str | None = None,
    currency: str | None = None,
) -> Store:
    merchant = db.session.get(Merchant, merchant_id)
    if merchant is None:
        raise NotFoundError("Merchant not found")

    name = (name or "").strip()
    if not name:
        raise ValidationError("Store name is required")
    if len(name) > 120:
        raise ValidationError("Store name must be at most 120 characters")

    store = Store(
        merchant_id=merchant.id,
        name=name,
        address=(address or "").strip() or None,
        phone=(phone or "").strip() or None,
        timezone=(timezone or "").strip() or None,
        currency=(currency or "").strip().upper() or merchant.currency,
    )
    db.session.add(store)
    db.session.commit()
    return store


def list_merchant_stores(merchant_id: str) -> list[Store]:
    return (
        db.session.query(Store)
        .filter_by(merchant_id=merchant_id)
        .order_by(Store.created_at.asc(), Store.id.asc())
        .all()
    )
