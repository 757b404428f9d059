# Overview: Service-layer operations for sales; reads, status edits and reversal.

# backend/shopos/services/sales_service.py

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, Sale
from ..models.sales import VALID_SALE_STATUSES
from ..validation import NotFoundError, ValidationError
from shopos.time_utils import day_bounds
from .audit_service import ACTION_DELETE, ACTION_UPDATE, append_audit_log
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import restore_units
"""
Sale Lifecycle Invariants

- Header amounts and line items never change after checkout; only status and
  notes are editable.
- Deleting a sale is a reversal: the units it consumed (InventoryItem.sale_id)
  go back to IN_STOCK, then payments, items and the header are removed, all
  in one transaction.
- A sale outside the caller's shop is indistinguishable from a missing one.
"""


def _get_sale(shop_id: int, sale_id: int, *, for_update: bool = False) -> Sale:
    q = db.session.query(Sale).filter(Sale.id == sale_id, Sale.shop_id == shop_id)
    if for_update:
        q = lock_for_update(q)
    sale = q.first()
    if not sale:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def get_sale(*, shop_id: int, sale_id: int) -> Sale:
    return _get_sale(shop_id, sale_id)


def list_sales(
    *,
    shop_id: int,
    status: str | None = None,
    start: date | None = None,
    end: date | None = None,
    search: str | None = None,
    customer_id: int | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    if status and status not in VALID_SALE_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_SALE_STATUSES)}")

    q = db.session.query(Sale).outerjoin(Customer, Customer.id == Sale.customer_id).filter(
        Sale.shop_id == shop_id
    )
    if status:
        q = q.filter(Sale.status == status)
    if customer_id:
        q = q.filter(Sale.customer_id == customer_id)
    if start:
        q = q.filter(Sale.sale_date >= day_bounds(start)[0])
    if end:
        q = q.filter(Sale.sale_date < day_bounds(end)[1])
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Sale.invoice_number.ilike(like),
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
        ))

    total = q.count()
    sales = (
        q.order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "sales": [s.to_dict(include_items=True) for s in sales],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def update_sale(
    *,
    shop_id: int,
    sale_id: int,
    user_id: int | None = None,
    status: str | None = None,
    notes: str | None = None,
) -> Sale:
    if status is None and notes is None:
        raise ValidationError("Nothing to update: provide status and/or notes")
    if status is not None and status not in VALID_SALE_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_SALE_STATUSES)}")

    def _op():
        sale = _get_sale(shop_id, sale_id, for_update=True)
        old_values = {}
        new_values = {}
        if status is not None and status != sale.status:
            old_values["status"] = sale.status
            new_values["status"] = status
            sale.status = status
        if notes is not None and notes != sale.notes:
            old_values["notes"] = sale.notes
            new_values["notes"] = notes
            sale.notes = notes

        if new_values:
            append_audit_log(
                action=ACTION_UPDATE,
                table_name="Sale",
                record_id=sale.id,
                user_id=user_id,
                shop_id=shop_id,
                old_values=old_values,
                new_values=new_values,
            )
        return sale

    return run_in_transaction(_op)


def delete_sale(*, shop_id: int, sale_id: int, user_id: int | None = None) -> dict:
    """
    Reverse a sale. Returns {"sale_id", "invoice_number", "restored_units"}.

    Raises NotFoundError if the sale does not exist in this shop, which
    includes a sale already deleted.
    """
    def _op():
        sale = _get_sale(shop_id, sale_id, for_update=True)
        snapshot = {
            "invoice_number": sale.invoice_number,
            "total_amount": sale.total_amount,
            "status": sale.status,
            "items": [
                {"product_id": item.product_id, "quantity": item.quantity}
                for item in sale.items
            ],
        }

        restored = restore_units(sale.id)

        if sale.customer is not None:
            remaining = (sale.customer.total_purchases or Decimal("0")) - sale.total_amount
            sale.customer.total_purchases = max(remaining, Decimal("0"))

        db.session.delete(sale)
        db.session.flush()

        append_audit_log(
            action=ACTION_DELETE,
            table_name="Sale",
            record_id=sale_id,
            user_id=user_id,
            shop_id=shop_id,
            old_values=snapshot,
            new_values={"restored_units": restored},
        )
        return {
            "sale_id": sale_id,
            "invoice_number": snapshot["invoice_number"],
            "restored_units": restored,
        }

    return run_in_transaction(_op)
