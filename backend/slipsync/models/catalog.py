from __future__ import annotations

from ..extensions import db
from slipsync.time_utils import to_utc_z, utcnow
from .tenancy import generate_id


def _money(value):
    return str(value) if value is not None else None


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    parent_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "name": self.name,
            "parentId": self.parent_id,
            "createdAt": to_utc_z(self.created_at),
        }


class Supplier(db.Model):
    """Supplier master data. contact holds free-form JSON text."""
    __tablename__ = "suppliers"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    contact = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "name": self.name,
            "address": self.address,
            "contact": self.contact,
            "createdAt": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products are merchant-scoped. store_id records the store the
    product was created from; stock levels live in Inventory per store.
    """
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    merchant_id = db.Column(db.String(255), db.ForeignKey("merchants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=True, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True)

    sku = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self, include_variants: bool = False) -> dict:
        data = {
            "id": self.id,
            "merchantId": self.merchant_id,
            "storeId": self.store_id,
            "categoryId": self.category_id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "active": self.active,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_variants:
            data["variants"] = [variant.to_dict() for variant in self.variants]
        return data


class ProductVariant(db.Model):
    __tablename__ = "product_variants"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    cost = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("variants", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "sku": self.sku,
            "barcode": self.barcode,
            "price": _money(self.price),
            "cost": _money(self.cost),
            "createdAt": to_utc_z(self.created_at),
        }


class Inventory(db.Model):
    """
    Stock level of one variant in one store.

    Rows are keyed by (store, variant). Orders decrement quantity under a row
    lock; version_id guards against lost updates on engines without
    SELECT ... FOR UPDATE.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("store_id", "variant_id", name="uq_inventory_store_variant"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(36), db.ForeignKey("product_variants.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reserved = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    store = db.relationship("Store", backref=db.backref("inventory", lazy=True))
    variant = db.relationship("ProductVariant", backref=db.backref("inventory", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "variantId": self.variant_id,
            "quantity": self.quantity,
            "reserved": self.reserved,
            "reorderPoint": self.reorder_point,
            "updatedAt": to_utc_z(self.updated_at),
        }
