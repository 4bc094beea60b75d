from __future__ import annotations

from ..extensions import db
from slipsync.time_utils import to_utc_z, utcnow
from .tenancy import generate_id


def _money(value):
    return str(value) if value is not None else None


class Customer(db.Model):
    """Customer master data. Created from the checkout flow without de-duplication."""
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "createdAt": to_utc_z(self.created_at),
        }


class Order(db.Model):
    """
    Checkout order placed in one store.

    status: pending, paid, cancelled. Totals are stored, not recomputed.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_store_placed", "store_id", "placed_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id"), nullable=True)
    placed_by_user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    order_number = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="paid")

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discounts_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    taxes_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(8), nullable=True)

    placed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    fulfilled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", backref=db.backref("orders", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))

    def __repr__(self) -> str:
        return f"<Order id={self.id!r} number={self.order_number!r} store_id={self.store_id!r}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "orderNumber": self.order_number,
            "status": self.status,
            "customerId": self.customer_id,
            "customerName": self.customer.name if self.customer and self.customer.name else "Walk-in",
            "subtotal": _money(self.subtotal),
            "discountsTotal": _money(self.discounts_total),
            "taxesTotal": _money(self.taxes_total),
            "totalAmount": _money(self.total_amount),
            "currency": self.currency,
            "placedAt": to_utc_z(self.placed_at),
            "fulfilledAt": to_utc_z(self.fulfilled_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data

    def to_receipt(self) -> dict:
        """Order snapshot handed to the print agent."""
        data = self.to_dict(include_items=True)
        data["store"] = {
            "id": self.store.id,
            "name": self.store.name,
            "address": self.store.address,
            "phone": self.store.phone,
        }
        if self.customer is not None:
            data["customer"] = self.customer.to_dict()
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(36), db.ForeignKey("product_variants.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    discounts_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    taxes_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship("Order", backref=db.backref("items", lazy=True))
    variant = db.relationship("ProductVariant")

    def to_dict(self) -> dict:
        product = self.variant.product if self.variant else None
        return {
            "id": self.id,
            "variantId": self.variant_id,
            "productId": product.id if product else None,
            "productName": product.name if product else None,
            "sku": self.variant.sku if self.variant else None,
            "barcode": self.variant.barcode if self.variant else None,
            "quantity": self.quantity,
            "unitPrice": _money(self.unit_price),
            "discountsTotal": _money(self.discounts_total),
            "taxesTotal": _money(self.taxes_total),
            "totalPrice": _money(self.total_price),
        }


class Invoice(db.Model):
    """Exactly one invoice per order."""
    __tablename__ = "invoices"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, unique=True)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)
    total = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=True)
    pdf_url = db.Column(db.String(512), nullable=True)

    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("invoice", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "invoiceNumber": self.invoice_number,
            "total": _money(self.total),
            "currency": self.currency,
            "pdfUrl": self.pdf_url,
            "issuedAt": to_utc_z(self.issued_at),
        }
