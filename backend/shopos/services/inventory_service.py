# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/shopos/services/inventory_service.py

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import InventoryItem, Product
from ..models.inventory import (
    ITEM_DAMAGED,
    ITEM_IN_STOCK,
    ITEM_OUT_OF_STOCK,
    ITEM_RETURNED,
)
from ..validation import ConflictError, NotFoundError, OversellError, ValidationError
from shopos.time_utils import utcnow
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log
from .concurrency import lock_for_update, run_in_transaction
"""
Inventory Invariants (authoritative)

Unit ledger:
- One InventoryItem row per physical unit; stock is COUNT(status = 'IN_STOCK').
- No quantity counter is stored anywhere.

Consumption:
- Units are consumed oldest first: ORDER BY purchase_date, id.
- A sale never marks more units than requested, and never fewer: if the
  locked IN_STOCK count is short, OversellError is raised before any row
  changes.
- Consumed units carry sale_id; restore_units(sale_id) reverts exactly those.

Status changes outside a sale:
- Only IN_STOCK, DAMAGED and RETURNED may be set by hand.
- Units consumed by a sale are changed only through the sale.
"""

MANUAL_STATUSES = (ITEM_IN_STOCK, ITEM_DAMAGED, ITEM_RETURNED)


def ensure_product_in_shop(
    shop_id: int,
    product_id: int,
    *,
    require_active: bool = False,
) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, shop_id=shop_id).first()
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if require_active and product.status != "ACTIVE":
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


def count_in_stock(shop_id: int, product_id: int) -> int:
    q = db.session.query(func.count(InventoryItem.id)).filter(
        InventoryItem.shop_id == shop_id,
        InventoryItem.product_id == product_id,
        InventoryItem.status == ITEM_IN_STOCK,
    )
    return int(q.scalar() or 0)


def stock_levels(shop_id: int, product_ids: list[int] | None = None) -> dict[int, int]:
    """IN_STOCK counts keyed by product id; products with no stock are absent."""
    q = db.session.query(
        InventoryItem.product_id, func.count(InventoryItem.id)
    ).filter(
        InventoryItem.shop_id == shop_id,
        InventoryItem.status == ITEM_IN_STOCK,
    )
    if product_ids is not None:
        if not product_ids:
            return {}
        q = q.filter(InventoryItem.product_id.in_(product_ids))
    return {product_id: int(count) for product_id, count in q.group_by(InventoryItem.product_id).all()}


def _available_units(shop_id: int, product_id: int, limit: int) -> list[InventoryItem]:
    q = db.session.query(InventoryItem).filter(
        InventoryItem.shop_id == shop_id,
        InventoryItem.product_id == product_id,
        InventoryItem.status == ITEM_IN_STOCK,
    ).order_by(
        InventoryItem.purchase_date.asc(),
        InventoryItem.id.asc(),
    ).limit(limit)
    return lock_for_update(q).all()


def check_availability(shop_id: int, requested: dict[int, int]) -> None:
    """
    Raise OversellError listing every product whose IN_STOCK count is below
    the requested quantity. Candidate rows are locked for the caller's
    transaction.
    """
    insufficient = []
    for product_id, quantity in requested.items():
        units = _available_units(shop_id, product_id, quantity)
        if len(units) < quantity:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": quantity,
                "in_stock": len(units),
            })

    if insufficient:
        raise OversellError("Insufficient stock", details={"items": insufficient})


def consume_units(*, shop_id: int, product_id: int, quantity: int, sale_id: int) -> list[int]:
    """
    Mark `quantity` oldest IN_STOCK units as OUT_OF_STOCK for a sale.

    Runs inside the caller's transaction (no commit). The UPDATE re-checks
    status so a unit taken by a concurrent writer is never sold twice.
    """
    units = _available_units(shop_id, product_id, quantity)
    if len(units) < quantity:
        raise OversellError(
            "Insufficient stock",
            details={"items": [{
                "product_id": product_id,
                "requested_quantity": quantity,
                "in_stock": len(units),
            }]},
        )

    unit_ids = [unit.id for unit in units]
    updated = db.session.query(InventoryItem).filter(
        InventoryItem.id.in_(unit_ids),
        InventoryItem.status == ITEM_IN_STOCK,
    ).update(
        {"status": ITEM_OUT_OF_STOCK, "sale_id": sale_id, "updated_at": utcnow()},
        synchronize_session=False,
    )
    if updated != len(unit_ids):
        raise OversellError(
            "Stock changed during checkout",
            details={"items": [{
                "product_id": product_id,
                "requested_quantity": quantity,
                "in_stock": updated,
            }]},
        )
    return unit_ids


def restore_units(sale_id: int) -> int:
    """Return the units consumed by a sale to IN_STOCK. No commit."""
    return db.session.query(InventoryItem).filter(
        InventoryItem.sale_id == sale_id,
        InventoryItem.status == ITEM_OUT_OF_STOCK,
    ).update(
        {"status": ITEM_IN_STOCK, "sale_id": None, "updated_at": utcnow()},
        synchronize_session=False,
    )


def add_units(
    *,
    shop_id: int,
    product_id: int,
    quantity: int,
    cost_price: Decimal | None = None,
    imeis: list[str] | None = None,
    serial_numbers: list[str] | None = None,
    batch_number: str | None = None,
    purchase_id: int | None = None,
    supplier_id: int | None = None,
) -> list[InventoryItem]:
    """Create IN_STOCK units inside the caller's transaction."""
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    imeis = imeis or []
    serial_numbers = serial_numbers or []
    if len(imeis) > quantity or len(serial_numbers) > quantity:
        raise ValidationError("More IMEI/serial numbers than units")

    now = utcnow()
    units = []
    for i in range(quantity):
        unit = InventoryItem(
            shop_id=shop_id,
            product_id=product_id,
            status=ITEM_IN_STOCK,
            imei=imeis[i] if i < len(imeis) else None,
            serial_number=serial_numbers[i] if i < len(serial_numbers) else None,
            batch_number=batch_number,
            cost_price=cost_price,
            purchase_date=now,
            purchase_id=purchase_id,
            supplier_id=supplier_id,
        )
        db.session.add(unit)
        units.append(unit)
    db.session.flush()
    return units


def receive_stock(
    *,
    shop_id: int,
    product_id: int,
    quantity: int,
    user_id: int | None = None,
    cost_price: Decimal | None = None,
    imeis: list[str] | None = None,
    serial_numbers: list[str] | None = None,
    batch_number: str | None = None,
) -> list[InventoryItem]:
    """Direct stock receipt (opening stock, counts) outside a purchase."""
    def _op():
        product = ensure_product_in_shop(shop_id, product_id)
        units = add_units(
            shop_id=shop_id,
            product_id=product_id,
            quantity=quantity,
            cost_price=cost_price if cost_price is not None else product.cost_price,
            imeis=imeis,
            serial_numbers=serial_numbers,
            batch_number=batch_number,
        )
        append_audit_log(
            action=ACTION_CREATE,
            table_name="InventoryItem",
            record_id=product_id,
            user_id=user_id,
            shop_id=shop_id,
            new_values={"product_id": product_id, "quantity": quantity},
        )
        return units

    return run_in_transaction(_op)


def set_item_status(*, shop_id: int, item_id: int, status: str, user_id: int | None = None) -> InventoryItem:
    if status not in MANUAL_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(MANUAL_STATUSES)}")

    def _op():
        item = lock_for_update(
            db.session.query(InventoryItem).filter_by(id=item_id, shop_id=shop_id)
        ).first()
        if not item:
            raise NotFoundError("Inventory item not found")
        if item.status == ITEM_OUT_OF_STOCK or item.sale_id is not None:
            raise ConflictError("Sold units can only be restored by deleting the sale")

        old_status = item.status
        item.status = status
        append_audit_log(
            action=ACTION_UPDATE,
            table_name="InventoryItem",
            record_id=item.id,
            user_id=user_id,
            shop_id=shop_id,
            old_values={"status": old_status},
            new_values={"status": status},
        )
        return item

    return run_in_transaction(_op)


def list_units(*, shop_id: int, product_id: int, status: str | None = None, limit: int = 200) -> list[InventoryItem]:
    ensure_product_in_shop(shop_id, product_id)
    q = db.session.query(InventoryItem).filter_by(shop_id=shop_id, product_id=product_id)
    if status:
        q = q.filter(InventoryItem.status == status)
    return q.order_by(InventoryItem.purchase_date.asc(), InventoryItem.id.asc()).limit(limit).all()


def inventory_summary(shop_id: int) -> list[dict]:
    products = db.session.query(Product).filter_by(shop_id=shop_id).order_by(Product.name.asc()).all()
    levels = stock_levels(shop_id, [p.id for p in products])
    rows = []
    for product in products:
        in_stock = levels.get(product.id, 0)
        rows.append({
            "product_id": product.id,
            "name": product.name,
            "sku": product.sku,
            "status": product.status,
            "in_stock": in_stock,
            "low_stock_threshold": product.low_stock_threshold,
            "is_low_stock": in_stock <= product.low_stock_threshold,
            "stock_value": float(product.cost_price * in_stock),
        })
    return rows
