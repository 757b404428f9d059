# Overview: Service-layer operations for checkout; turns a cart into a sale.

# backend/shopos/services/checkout_service.py

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import CartItem, Customer, Product, Sale, SaleItem, Payment, User
from ..models.sales import PAYMENT_COMPLETED, SALE_COMPLETED
from ..validation import (
    EmptyCartError,
    NotFoundError,
    ValidationError,
    round_currency,
    to_decimal,
)
from shopos.time_utils import utcnow
from .audit_service import ACTION_CREATE, append_audit_log
from .concurrency import run_in_transaction
from .document_service import next_document_number
from .inventory_service import check_availability, consume_units
"""
Checkout Invariants (authoritative)

Pricing (whole currency units, ROUND_HALF_UP):
- subtotal        = sum(unit_price * quantity)
- discount        = round(subtotal * d / 100)  for "percentage"
                  = d                           for "fixed"
- tax             = round((subtotal - discount) * t / 100)
- total           = subtotal - discount + tax
- sum(SaleItem.total_price) == subtotal

Transaction:
- Stock check, invoice allocation, Sale + Payment + SaleItems, inventory
  consumption, cart deletion and the audit entry commit together or not
  at all. A failed checkout leaves the cart untouched.
- Each product consumes exactly its cart quantity of IN_STOCK units, FIFO.
  A shortfall raises OversellError before anything is written.
- Invoice numbers come from the per-shop daily sequence and are unique per
  shop.
"""

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PriceLine:
    product_id: int
    unit_price: Decimal
    quantity: int

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    @property
    def after_discount(self) -> Decimal:
        return self.subtotal - self.discount_amount


def compute_totals(
    lines: list[PriceLine],
    *,
    tax_percentage: Decimal,
    discount_amount: Decimal = Decimal("0"),
    discount_type: str = DISCOUNT_PERCENTAGE,
) -> Totals:
    """
    Price a set of lines. Pure; raises ValidationError on out-of-range input.

    Example: 1000 x 2, 10% discount, 17% tax -> 2000 / 200 / 306 / 2106.
    """
    if discount_type not in DISCOUNT_TYPES:
        raise ValidationError(f"discount_type must be one of {list(DISCOUNT_TYPES)}")
    if tax_percentage < 0:
        raise ValidationError("tax_percentage cannot be negative")
    if discount_amount < 0:
        raise ValidationError("discount_amount cannot be negative")

    subtotal = sum((line.total_price for line in lines), Decimal("0"))

    if discount_type == DISCOUNT_PERCENTAGE:
        if discount_amount > HUNDRED:
            raise ValidationError("Percentage discount cannot exceed 100")
        discount = round_currency(subtotal * discount_amount / HUNDRED)
    else:
        if discount_amount > subtotal:
            raise ValidationError(
                "Fixed discount cannot exceed the subtotal",
                details={"subtotal": float(subtotal)},
            )
        discount = discount_amount

    after_discount = subtotal - discount
    tax = round_currency(after_discount * tax_percentage / HUNDRED)

    return Totals(
        subtotal=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=after_discount + tax,
    )


def _load_cart(user_id: int, shop_id: int) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .join(Product, Product.id == CartItem.product_id)
        .filter(CartItem.user_id == user_id, CartItem.shop_id == shop_id)
        .order_by(CartItem.added_at.asc(), CartItem.id.asc())
        .all()
    )


def checkout(
    *,
    user_id: int,
    shop_id: int,
    customer_id: int | None = None,
    payment_method: str | None = None,
    notes: str | None = None,
    tax_percentage=None,
    discount_amount=None,
    discount_type: str | None = None,
) -> Sale:
    """
    Convert the user's cart in this shop into a completed Sale.

    Raises:
        EmptyCartError: nothing in the cart
        NotFoundError: customer not in this shop, or a cart product vanished
            or was deactivated
        ValidationError: bad discount / tax input
        OversellError: fewer IN_STOCK units than requested
        PersistenceError: store failure (everything rolled back)
    """
    if tax_percentage is None:
        tax_percentage = current_app.config.get("DEFAULT_TAX_PERCENTAGE", 17)
    tax_pct = to_decimal(tax_percentage, "tax_percentage")
    discount = to_decimal(discount_amount if discount_amount is not None else 0, "discount_amount")
    discount_type = discount_type or DISCOUNT_PERCENTAGE
    method = (payment_method or "cash").strip().upper() or "CASH"
    prefix = current_app.config.get("INVOICE_PREFIX", "INV")

    def _op():
        cart = _load_cart(user_id, shop_id)
        if not cart:
            raise EmptyCartError("Cart is empty")

        customer = None
        if customer_id is not None:
            customer = db.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()
            if not customer:
                raise NotFoundError("Customer not found", details={"customer_id": customer_id})

        for line in cart:
            if line.product.shop_id != shop_id or line.product.status != "ACTIVE":
                raise NotFoundError("Product not found", details={"product_id": line.product_id})

        lines = [
            PriceLine(product_id=line.product_id, unit_price=line.product.selling_price, quantity=line.quantity)
            for line in cart
        ]
        totals = compute_totals(
            lines,
            tax_percentage=tax_pct,
            discount_amount=discount,
            discount_type=discount_type,
        )

        requested = OrderedDict()
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
        check_availability(shop_id, requested)

        now = utcnow()
        invoice_number = next_document_number(shop_id=shop_id, prefix=prefix, on=now)

        seller = db.session.get(User, user_id)
        sale = Sale(
            shop_id=shop_id,
            customer_id=customer.id if customer else None,
            seller_id=user_id,
            invoice_number=invoice_number,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            payment_method=method,
            status=SALE_COMPLETED,
            notes=notes or f"POS Sale by {seller.name if seller else user_id}",
            sale_date=now,
        )
        sale.payments.append(Payment(
            amount=totals.total_amount,
            method=method,
            status=PAYMENT_COMPLETED,
            notes=f"POS payment for {invoice_number}",
            payment_date=now,
        ))
        for line in lines:
            sale.items.append(SaleItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
            ))
        db.session.add(sale)
        db.session.flush()

        for product_id, quantity in requested.items():
            consume_units(shop_id=shop_id, product_id=product_id, quantity=quantity, sale_id=sale.id)

        db.session.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.shop_id == shop_id,
        ).delete(synchronize_session=False)

        if customer:
            customer.total_purchases = (customer.total_purchases or Decimal("0")) + totals.total_amount
            customer.last_purchase_at = now

        append_audit_log(
            action=ACTION_CREATE,
            table_name="Sale",
            record_id=sale.id,
            user_id=user_id,
            shop_id=shop_id,
            new_values={
                "invoice_number": invoice_number,
                "total_amount": totals.total_amount,
                "payment_method": method,
                "items_count": len(lines),
            },
        )
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info(
        "Checkout completed: shop=%s user=%s invoice=%s total=%s",
        shop_id, user_id, sale.invoice_number, sale.total_amount,
    )
    return sale
