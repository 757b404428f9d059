# Overview: Service-layer operations for the POS cart.

"""
Cart Service

A cart is the set of CartItem rows for one (user, shop). Rows persist across
requests so a cashier can build a sale over several calls.

INVARIANTS:
- At most one row per (user_id, product_id, shop_id); adding again increments.
- quantity >= 1 always (0 is a removal, not an update).
- No price is stored; line prices are read from Product at display time and
  snapshotted only at checkout.
- Nothing here reserves stock. Availability is enforced at checkout.
"""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CartItem, Product
from ..validation import NotFoundError, money, to_positive_int
from shopos.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import ensure_product_in_shop


def _cart_query(user_id: int, shop_id: int):
    return db.session.query(CartItem).filter(
        CartItem.user_id == user_id,
        CartItem.shop_id == shop_id,
    )


def _get_line(user_id: int, shop_id: int, product_id: int) -> CartItem | None:
    return lock_for_update(
        _cart_query(user_id, shop_id).filter(CartItem.product_id == product_id)
    ).first()


def add_item(*, user_id: int, shop_id: int, product_id: int, quantity=1) -> CartItem:
    """Add a product to the cart, or bump the quantity of an existing line."""
    quantity = to_positive_int(quantity, "quantity")

    def _op():
        ensure_product_in_shop(shop_id, product_id, require_active=True)
        now = utcnow()

        line = _get_line(user_id, shop_id, product_id)
        if line:
            line.quantity += quantity
            line.updated_at = now
            return line

        line = CartItem(
            user_id=user_id,
            shop_id=shop_id,
            product_id=product_id,
            quantity=quantity,
            added_at=now,
            updated_at=now,
        )
        try:
            with db.session.begin_nested():
                db.session.add(line)
        except IntegrityError:
            # Same line inserted concurrently; fold into it.
            line = _get_line(user_id, shop_id, product_id)
            line.quantity += quantity
            line.updated_at = now
        return line

    return run_in_transaction(_op)


def list_items(*, user_id: int, shop_id: int) -> dict:
    lines = (
        _cart_query(user_id, shop_id)
        .join(Product, Product.id == CartItem.product_id)
        .order_by(CartItem.added_at.desc(), CartItem.id.desc())
        .all()
    )
    subtotal = sum(
        (line.product.selling_price * line.quantity for line in lines),
        Decimal("0"),
    )
    return {
        "items": [line.to_dict() for line in lines],
        "count": len(lines),
        "total_quantity": sum(line.quantity for line in lines),
        "subtotal": money(subtotal),
    }


def update_quantity(*, user_id: int, shop_id: int, product_id: int, quantity) -> CartItem:
    """Set an absolute quantity for a line already in the cart."""
    quantity = to_positive_int(quantity, "quantity")

    def _op():
        line = _get_line(user_id, shop_id, product_id)
        if not line:
            raise NotFoundError("Item not found in cart", details={"product_id": product_id})
        line.quantity = quantity
        line.updated_at = utcnow()
        return line

    return run_in_transaction(_op)


def remove_item(*, user_id: int, shop_id: int, product_id: int) -> None:
    def _op():
        line = _get_line(user_id, shop_id, product_id)
        if not line:
            raise NotFoundError("Item not found in cart", details={"product_id": product_id})
        db.session.delete(line)

    run_in_transaction(_op)


def clear(*, user_id: int, shop_id: int) -> int:
    """Empty the cart. Returns the number of lines removed."""
    def _op():
        return _cart_query(user_id, shop_id).delete(synchronize_session=False)

    return run_in_transaction(_op)
