# Overview: Service-layer operations for purchases; supplier orders, receiving and settlement.

"""
Purchase Service

Stock enters a shop through purchases. A purchase is created PENDING with
its lines; receiving turns ordered quantities into IN_STOCK InventoryItem
rows, possibly over several deliveries.

RECEIVING RULES:
- received_quantity on input is the NEW TOTAL for the line, not a delta
- only the difference (new total - already received) creates units
- a new total above the ordered quantity is rejected
- units carry cost = line unit_cost, batch = purchase invoice number,
  supplier_id and purchase_id
- status: RECEIVED once every line is fully received, else PARTIAL
- the whole delivery is one transaction
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Purchase, PurchaseItem
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    money,
    to_decimal,
    to_positive_int,
)
from shopos.time_utils import utcnow
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log
from .concurrency import lock_for_update, run_in_transaction
from .document_service import next_document_number
from .inventory_service import add_units, ensure_product_in_shop
from .supplier_service import get_supplier

PURCHASE_PENDING = "PENDING"
PURCHASE_PARTIAL = "PARTIAL"
PURCHASE_RECEIVED = "RECEIVED"
PURCHASE_CANCELLED = "CANCELLED"

VALID_PURCHASE_STATUSES = (PURCHASE_PENDING, PURCHASE_PARTIAL, PURCHASE_RECEIVED, PURCHASE_CANCELLED)


def get_purchase(*, shop_id: int, purchase_id: int, for_update: bool = False) -> Purchase:
    q = db.session.query(Purchase).filter(Purchase.id == purchase_id, Purchase.shop_id == shop_id)
    if for_update:
        q = lock_for_update(q)
    purchase = q.first()
    if not purchase:
        raise NotFoundError("Purchase not found", details={"purchase_id": purchase_id})
    return purchase


def create_purchase(
    *,
    shop_id: int,
    supplier_id: int,
    items: list[dict],
    user_id: int | None = None,
    notes: str | None = None,
) -> Purchase:
    """
    Create a PENDING purchase.

    items: [{"product_id", "quantity", "unit_cost"}, ...]
    """
    if not items:
        raise ValidationError("At least one item is required")

    parsed = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = to_positive_int(raw.get("product_id"), f"items[{index}].product_id")
        quantity = to_positive_int(raw.get("quantity"), f"items[{index}].quantity")
        unit_cost = to_decimal(raw.get("unit_cost"), f"items[{index}].unit_cost")
        parsed.append((product_id, quantity, unit_cost))

    prefix = current_app.config.get("PURCHASE_PREFIX", "PUR")

    def _op():
        supplier = get_supplier(shop_id=shop_id, supplier_id=supplier_id)
        if not supplier.is_active:
            raise ConflictError("Supplier is inactive")

        now = utcnow()
        purchase = Purchase(
            shop_id=shop_id,
            supplier_id=supplier.id,
            invoice_number=next_document_number(shop_id=shop_id, prefix=prefix, on=now),
            status=PURCHASE_PENDING,
            notes=notes,
            purchase_date=now,
            created_by_user_id=user_id,
        )
        total = Decimal("0")
        for product_id, quantity, unit_cost in parsed:
            ensure_product_in_shop(shop_id, product_id)
            line_total = unit_cost * quantity
            total += line_total
            purchase.items.append(PurchaseItem(
                product_id=product_id,
                quantity=quantity,
                unit_cost=unit_cost,
                total_cost=line_total,
                received_quantity=0,
            ))
        purchase.total_amount = total
        purchase.paid_amount = Decimal("0")
        purchase.due_amount = total

        db.session.add(purchase)
        db.session.flush()

        append_audit_log(
            action=ACTION_CREATE,
            table_name="Purchase",
            record_id=purchase.id,
            user_id=user_id,
            shop_id=shop_id,
            new_values={
                "invoice_number": purchase.invoice_number,
                "supplier_id": supplier.id,
                "total_amount": total,
                "items_count": len(parsed),
            },
        )
        return purchase

    return run_in_transaction(_op)


def receive_purchase(
    *,
    shop_id: int,
    purchase_id: int,
    items: list[dict],
    user_id: int | None = None,
) -> dict:
    """
    Receive a delivery against a purchase.

    items: [{"purchase_item_id", "received_quantity", "imeis"?, "serial_numbers"?}, ...]
    Returns {"purchase", "units_created"}.
    """
    if not items:
        raise ValidationError("No items to receive")

    def _op():
        purchase = get_purchase(shop_id=shop_id, purchase_id=purchase_id, for_update=True)
        if purchase.status in (PURCHASE_RECEIVED, PURCHASE_CANCELLED):
            raise ConflictError(f"Cannot receive a {purchase.status} purchase")

        lines = {line.id: line for line in purchase.items}
        created = []
        for index, raw in enumerate(items):
            line_id = to_positive_int(raw.get("purchase_item_id") or raw.get("id"), f"items[{index}].purchase_item_id")
            line = lines.get(line_id)
            if line is None:
                raise NotFoundError("Purchase item not found", details={"purchase_item_id": line_id})

            new_total = raw.get("received_quantity")
            if isinstance(new_total, bool) or not isinstance(new_total, int) or new_total < 0:
                raise ValidationError(f"items[{index}].received_quantity must be a non-negative integer")
            if new_total > line.quantity:
                raise ValidationError(
                    "Received quantity exceeds ordered quantity",
                    details={"purchase_item_id": line.id, "ordered": line.quantity},
                )

            if new_total < line.received_quantity:
                raise ValidationError(
                    "Received quantity cannot be lower than already received",
                    details={"purchase_item_id": line.id, "received_quantity": line.received_quantity},
                )
            newly_received = new_total - line.received_quantity
            if newly_received == 0:
                continue

            units = add_units(
                shop_id=shop_id,
                product_id=line.product_id,
                quantity=newly_received,
                cost_price=line.unit_cost,
                imeis=raw.get("imeis") or [],
                serial_numbers=raw.get("serial_numbers") or [],
                batch_number=purchase.invoice_number,
                purchase_id=purchase.id,
                supplier_id=purchase.supplier_id,
            )
            line.received_quantity = new_total
            created.extend(units)

        old_status = purchase.status
        if all(line.received_quantity >= line.quantity for line in purchase.items):
            purchase.status = PURCHASE_RECEIVED
            purchase.received_date = utcnow()
        elif any(line.received_quantity > 0 for line in purchase.items):
            purchase.status = PURCHASE_PARTIAL

        if created:
            append_audit_log(
                action=ACTION_UPDATE,
                table_name="Purchase",
                record_id=purchase.id,
                user_id=user_id,
                shop_id=shop_id,
                old_values={"status": old_status},
                new_values={"status": purchase.status, "units_created": len(created)},
            )
        return {"purchase": purchase, "units_created": len(created)}

    return run_in_transaction(_op)


def record_purchase_payment(
    *,
    shop_id: int,
    purchase_id: int,
    amount,
    user_id: int | None = None,
) -> Purchase:
    amount = to_decimal(amount, "amount")
    if amount <= 0:
        raise ValidationError("amount must be greater than 0")

    def _op():
        purchase = get_purchase(shop_id=shop_id, purchase_id=purchase_id, for_update=True)
        if purchase.status == PURCHASE_CANCELLED:
            raise ConflictError("Cannot pay a CANCELLED purchase")
        if amount > purchase.due_amount:
            raise ValidationError(
                "Payment amount exceeds due amount",
                details={"due_amount": money(purchase.due_amount)},
            )

        old_values = {"paid_amount": purchase.paid_amount, "due_amount": purchase.due_amount}
        purchase.paid_amount = purchase.paid_amount + amount
        purchase.due_amount = purchase.total_amount - purchase.paid_amount

        append_audit_log(
            action=ACTION_UPDATE,
            table_name="Purchase",
            record_id=purchase.id,
            user_id=user_id,
            shop_id=shop_id,
            old_values=old_values,
            new_values={"paid_amount": purchase.paid_amount, "due_amount": purchase.due_amount},
        )
        return purchase

    return run_in_transaction(_op)


def list_purchases(
    *,
    shop_id: int,
    status: str | None = None,
    supplier_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Purchase]:
    if status and status not in VALID_PURCHASE_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_PURCHASE_STATUSES)}")
    q = db.session.query(Purchase).filter(Purchase.shop_id == shop_id)
    if status:
        q = q.filter(Purchase.status == status)
    if supplier_id:
        q = q.filter(Purchase.supplier_id == supplier_id)
    return q.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).offset(offset).limit(limit).all()
