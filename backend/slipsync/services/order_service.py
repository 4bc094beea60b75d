# Overview: Checkout: orders, line items, inventory decrement and invoices.

"""
Order placement.

WHY: An order, its items, the inventory decrements and its invoice either
all persist or none do. Inventory rows keyed by (store, variant) are read
under a row lock and carry an optimistic version_id, so concurrent checkouts
cannot oversell.

Totals:
- line total = unit price x quantity (unit price defaults to the variant price)
- discount is clamped to [0, subtotal]
- taxes = (subtotal - discount) x taxRate / 100, rounded HALF_UP to cents
- total = subtotal - discount + taxes
"""

from __future__ import annotations

import secrets
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import current_app

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Customer, Inventory, Invoice, Order, OrderItem, Store
from .catalog_service import get_merchant_variant, parse_int, parse_money
from .concurrency import lock_for_update

CENT = Decimal("0.01")
ORDER_STATUSES = ("pending", "paid", "cancelled")


def _decimal(value, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    return amount


def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


def compute_totals(subtotal: Decimal, discount_amount, tax_rate) -> tuple[Decimal, Decimal, Decimal]:
    """Return (discount, taxes, total) for a subtotal."""
    discount = _decimal(discount_amount, "discountAmount")
    discount = min(max(discount, Decimal("0")), subtotal)
    rate = max(_decimal(tax_rate, "taxRate"), Decimal("0"))
    taxable = max(subtotal - discount, Decimal("0"))
    taxes = (taxable * rate / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return discount.quantize(CENT), taxes, (taxable + taxes).quantize(CENT)


def _resolve_customer(store: Store, customer_id, customer_data) -> Customer | None:
    if customer_id:
        customer = db.session.get(Customer, str(customer_id))
        if customer is None or customer.merchant_id != store.merchant_id:
            raise NotFoundError("Customer not found")
        return customer
    if isinstance(customer_data, dict):
        customer = Customer(
            merchant_id=store.merchant_id,
            store_id=store.id,
            name=(customer_data.get("name") or "Customer"),
            phone=customer_data.get("phone"),
            email=customer_data.get("email"),
        )
        db.session.add(customer)
        return customer
    return None


def create_order(
    store: Store,
    *,
    items,
    placed_by_user_id: str | None = None,
    customer_id=None,
    customer=None,
    discount_amount=None,
    tax_rate=None,
    status: str | None = None,
) -> Order:
    if not items or not isinstance(items, list):
        raise ValidationError("Order items are required")
    status = (status or "paid").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")

    lines = []
    for item in items:
        if not isinstance(item, dict) or not item.get("productVariantId") or item.get("quantity") is None:
            raise ValidationError("Each line item must include productVariantId and quantity")
        quantity = parse_int(item.get("quantity"), "quantity", minimum=1)
        variant = get_merchant_variant(str(item["productVariantId"]), store.merchant_id)
        unit_price = parse_money(item.get("unitPrice"), "unitPrice")
        lines.append((variant, quantity, unit_price if unit_price is not None else variant.price))

    try:
        order = Order(
            merchant_id=store.merchant_id,
            store_id=store.id,
            placed_by_user_id=placed_by_user_id,
            order_number=generate_order_number(),
            status=status,
            currency=store.effective_currency,
        )
        order.customer = _resolve_customer(store, customer_id, customer)
        db.session.add(order)

        subtotal = Decimal("0")
        for variant, quantity, unit_price in lines:
            inventory = lock_for_update(
                db.session.query(Inventory).filter_by(store_id=store.id, variant_id=variant.id)
            ).first()
            if inventory is None:
                raise ConflictError(f"Stock record not found for: {variant.product.name}")
            if inventory.quantity < quantity:
                raise ConflictError(f"Insufficient stock for: {variant.product.name}")
            inventory.quantity = inventory.quantity - quantity

            line_total = (Decimal(unit_price) * quantity).quantize(CENT)
            db.session.add(OrderItem(
                order=order,
                variant=variant,
                quantity=quantity,
                unit_price=unit_price,
                total_price=line_total,
            ))
            subtotal += line_total

        discount, taxes, total = compute_totals(subtotal, discount_amount, tax_rate)
        order.subtotal = subtotal
        order.discounts_total = discount
        order.taxes_total = taxes
        order.total_amount = total

        db.session.add(Invoice(
            order=order,
            merchant_id=store.merchant_id,
            store_id=store.id,
            invoice_number=f"INV-{order.order_number}",
            total=total,
            currency=order.currency,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Order %s placed in store %s total %s", order.order_number, store.id, order.total_amount)
    return order


def list_orders(store_id: str) -> list[Order]:
    return (
        db.session.query(Order)
        .filter_by(store_id=store_id)
        .order_by(Order.placed_at.desc(), Order.id.desc())
        .all()
    )


def order_summary(order: Order) -> dict:
    data = order.to_dict()
    data["itemCount"] = len(order.items)
    return data


def get_store_order(order_id: str, store: Store) -> Order:
    """Order by id within the active store; anything else is not found."""
    order = db.session.get(Order, order_id) if order_id else None
    if order is None or order.store_id != store.id:
        raise NotFoundError("Order not found")
    return order


def list_invoices(store_id: str) -> list[Invoice]:
    return (
        db.session.query(Invoice)
        .filter_by(store_id=store_id)
        .order_by(Invoice.issued_at.desc(), Invoice.id.desc())
        .all()
    )
