# Overview: Renders receipt payloads as text and writes one file per print job.

from __future__ import annotations

import json
from pathlib import Path

RECEIPT_WIDTH = 40


def _line(left: str, right: str = "") -> str:
    space = max(RECEIPT_WIDTH - len(left) - len(right), 1)
    return f"{left}{' ' * space}{right}"


def render_receipt(order: dict) -> str:
    """Plain-text receipt for an order snapshot."""
    if not isinstance(order, dict):
        raise ValueError("Receipt payload must be a JSON object")

    store = order.get("store") or {}
    currency = order.get("currency") or ""
    rows = []
    if store.get("name"):
        rows.append(store["name"].center(RECEIPT_WIDTH))
    for detail in (store.get("address"), store.get("phone")):
        if detail:
            rows.append(detail.center(RECEIPT_WIDTH))
    rows.append("=" * RECEIPT_WIDTH)
    rows.append(_line("Order", order.get("orderNumber") or order.get("id") or "-"))
    rows.append(_line("Date", order.get("placedAt") or "-"))
    rows.append(_line("Customer", order.get("customerName") or "Walk-in"))
    rows.append("-" * RECEIPT_WIDTH)

    for item in order.get("items") or []:
        name = item.get("productName") or item.get("sku") or "Item"
        rows.append(name[:RECEIPT_WIDTH])
        rows.append(_line(f"  {item.get('quantity')} x {item.get('unitPrice')}", str(item.get("totalPrice"))))

    rows.append("-" * RECEIPT_WIDTH)
    rows.append(_line("Subtotal", str(order.get("subtotal"))))
    if order.get("discountsTotal") not in (None, "0", "0.00"):
        rows.append(_line("Discount", f"-{order.get('discountsTotal')}"))
    rows.append(_line("Tax", str(order.get("taxesTotal"))))
    rows.append(_line("TOTAL", f"{currency} {order.get('totalAmount')}".strip()))
    rows.append("=" * RECEIPT_WIDTH)
    rows.append("Thank you!".center(RECEIPT_WIDTH))
    return "\n".join(rows) + "\n"


class FilePrinter:
    """Writes receipts to output_dir as <job id>.txt."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def print_job(self, job: dict) -> Path:
        payload = job.get("payload")
        if isinstance(payload, str):
            payload = json.loads(payload)
        text = render_receipt(payload)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        target = self.output_dir / f"{job['id']}.txt"
        target.write_text(text, encoding="utf-8")
        return target
