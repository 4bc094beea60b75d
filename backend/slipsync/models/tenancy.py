from __future__ import annotations

import uuid

from ..extensions import db
from slipsync.time_utils import to_utc_z, utcnow


def generate_id() -> str:
    return str(uuid.uuid4())


class Merchant(db.Model):
    """
    Multi-tenant root: Every tenant is a Merchant.

    WHY: Shared-database multi-tenancy with strict isolation.
    Stores, users, products, devices and print jobs belong to exactly one
    merchant. No data may cross merchant boundaries.

    The id is opaque: either the identity provider's organization id (when the
    first user syncs with one) or a generated uuid.
    """
    __tablename__ = "merchants"

    id = db.Column(db.String(255), primary_key=True, default=generate_id)
    name = db.Column(db.String(255), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="PKR")

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Merchant id={self.id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "createdAt": to_utc_z(self.created_at),
        }


class Store(db.Model):
    """
    Branch within a merchant.

    MULTI-TENANT: Stores are scoped to merchants via merchant_id. The earliest
    created store is the default active store for a request without an
    explicit store selection.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_merchant_created", "merchant_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    timezone = db.Column(db.String(64), nullable=True)
    currency = db.Column(db.String(8), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
    )

    merchant = db.relationship("Merchant", backref=db.backref("stores", lazy=True))

    def __repr__(self) -> str:
        return f"<Store id={self.id!r} name={self.name!r} merchant_id={self.merchant_id!r}>"

    @property
    def effective_currency(self) -> str | None:
        if self.currency:
            return self.currency
        return self.merchant.currency if self.merchant else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "timezone": self.timezone,
            "currency": self.effective_currency,
            "createdAt": to_utc_z(self.created_at),
        }
