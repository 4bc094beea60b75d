# Overview: Service-layer operations for products, variants and per-store inventory.

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Category, Inventory, Product, ProductVariant, Store
from .concurrency import lock_for_update, run_with_retry


def parse_money(value, field: str, *, required: bool = False) -> Decimal | None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number")
    return amount.quantize(Decimal("0.01"))


def parse_int(value, field: str, *, default: int | None = None, minimum: int | None = None) -> int:
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def create_product(
    store: Store,
    *,
    name: str | None,
    price,
    sku: str | None = None,
    description: str | None = None,
    category_id: str | None = None,
    cost=None,
    barcode: str | None = None,
    initial_stock=None,
    reorder_point=None,
) -> Product:
    """
    Create a product with its default variant and the active store's
    inventory row, in one transaction.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Product name is required")
    price = parse_money(price, "price", required=True)
    cost = parse_money(cost, "cost")
    initial_stock = parse_int(initial_stock, "initialStock", default=0, minimum=0)
    reorder_point = parse_int(reorder_point, "reorderPoint", default=0, minimum=0)
    sku = (sku or "").strip() or None

    if category_id:
        category = db.session.get(Category, category_id)
        if category is None or category.merchant_id != store.merchant_id:
            raise NotFoundError("Category not found")

    if sku and db.session.query(ProductVariant.id).filter_by(sku=sku).first() is not None:
        raise ValidationError(f"SKU {sku} is already in use")

    product = Product(
        merchant_id=store.merchant_id,
        store_id=store.id,
        category_id=category_id or None,
        sku=sku,
        name=name,
        description=description,
    )
    variant = ProductVariant(
        product=product,
        sku=sku,
        barcode=(barcode or "").strip() or None,
        price=price,
        cost=cost,
    )
    inventory = Inventory(
        store_id=store.id,
        variant=variant,
        quantity=initial_stock,
        reorder_point=reorder_point,
    )
    db.session.add_all([product, variant, inventory])
    db.session.commit()
    return product


def list_products(merchant_id: str) -> list[Product]:
    return (
        db.session.query(Product)
        .filter_by(merchant_id=merchant_id)
        .order_by(Product.created_at.asc(), Product.id.asc())
        .all()
    )


def get_merchant_variant(variant_id: str, merchant_id: str) -> ProductVariant:
    variant = db.session.get(ProductVariant, variant_id) if variant_id else None
    if variant is None or variant.product.merchant_id != merchant_id:
        raise NotFoundError("Product variant not found")
    return variant


def list_inventory(store_id: str) -> list[Inventory]:
    return (
        db.session.query(Inventory)
        .filter_by(store_id=store_id)
        .order_by(Inventory.updated_at.desc(), Inventory.id.asc())
        .all()
    )


def inventory_to_dict(row: Inventory) -> dict:
    data = row.to_dict()
    variant = row.variant
    data.update({
        "productId": variant.product.id,
        "productName": variant.product.name,
        "sku": variant.sku,
        "barcode": variant.barcode,
        "price": str(variant.price),
        "lowStock": row.quantity <= row.reorder_point,
    })
    return data


def adjust_inventory(store: Store, variant_id: str, quantity_change, reorder_point=None) -> Inventory:
    """
    Apply a signed stock change to the store's row for a variant.

    A change that would leave negative stock is rejected. A missing row is
    created when the change is non-negative.
    """
    change = parse_int(quantity_change, "quantityChange")
    new_reorder_point = None
    if reorder_point is not None:
        new_reorder_point = parse_int(reorder_point, "reorderPoint", minimum=0)
    variant = get_merchant_variant(variant_id, store.merchant_id)

    def _adjust() -> Inventory:
        row = lock_for_update(
            db.session.query(Inventory).filter_by(store_id=store.id, variant_id=variant.id)
        ).first()
        if row is None:
            if change < 0:
                raise ValidationError("Stock cannot go below zero")
            row = Inventory(store_id=store.id, variant_id=variant.id, quantity=0)
            db.session.add(row)
        if row.quantity + change < 0:
            db.session.rollback()
            raise ValidationError("Stock cannot go below zero")
        row.quantity = row.quantity + change
        if new_reorder_point is not None:
            row.reorder_point = new_reorder_point
        db.session.commit()
        return row

    return run_with_retry(_adjust)
