# Overview: Receipt formatting for completed sales.

from __future__ import annotations

from ..models import Sale
from ..validation import money
from shopos.time_utils import to_utc_z

WALK_IN_CUSTOMER = "Walk-in Customer"


def render_receipt(sale: Sale) -> dict:
    """Printable view of a persisted sale. Reads only; never writes."""
    shop = sale.shop
    lines = []
    for item in sale.items:
        product = item.product
        lines.append({
            "name": product.name if product else f"Product #{item.product_id}",
            "sku": product.sku if product else None,
            "quantity": item.quantity,
            "unit_price": money(item.unit_price),
            "total_price": money(item.total_price),
        })

    return {
        "shop": {
            "name": shop.name if shop else None,
            "address": shop.address if shop else None,
            "phone": shop.phone if shop else None,
        },
        "invoice_number": sale.invoice_number,
        "sale_date": to_utc_z(sale.sale_date),
        "cashier": sale.seller.name if sale.seller else None,
        "customer_name": sale.customer.name if sale.customer else WALK_IN_CUSTOMER,
        "customer_phone": sale.customer.phone if sale.customer else None,
        "items": lines,
        "subtotal": money(sale.subtotal),
        "discount_amount": money(sale.discount_amount),
        "tax_amount": money(sale.tax_amount),
        "total_amount": money(sale.total_amount),
        "paid_amount": money(sale.paid_amount),
        "due_amount": money(sale.due_amount),
        "payment_method": sale.payment_method,
        "status": sale.status,
        "notes": sale.notes,
    }
