# Overview: Flask API routes for the POS cart and checkout.

# backend/shopos/routes/cart.py
"""
POS cart API

The cart belongs to (g.current_user, g.shop_id); nobody else can read or
change it. Checkout converts it into a Sale in one transaction.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import cart_service, checkout_service
from ..validation import ShopError, ValidationError, optional_int, to_positive_int


cart_bp = Blueprint("cart", __name__, url_prefix="/api/pos/cart")


@cart_bp.get("")
@require_auth
@require_shop
@require_permission("USE_POS")
def get_cart_route():
    try:
        cart = cart_service.list_items(user_id=g.current_user.id, shop_id=g.shop_id)
        return jsonify(cart), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("")
@require_auth
@require_shop
@require_permission("USE_POS")
def add_to_cart_route():
    """Body: {product_id, quantity=1}"""
    try:
        data = request.get_json(silent=True) or {}
        product_id = to_positive_int(data.get("product_id"), "product_id")
        line = cart_service.add_item(
            user_id=g.current_user.id,
            shop_id=g.shop_id,
            product_id=product_id,
            quantity=data.get("quantity", 1),
        )
        return jsonify({"item": line.to_dict(), "message": "Item added to cart"}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add item to cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.put("")
@require_auth
@require_shop
@require_permission("USE_POS")
def update_cart_route():
    """Body: {product_id, quantity} where quantity is the new absolute value."""
    try:
        data = request.get_json(silent=True) or {}
        product_id = to_positive_int(data.get("product_id"), "product_id")
        line = cart_service.update_quantity(
            user_id=g.current_user.id,
            shop_id=g.shop_id,
            product_id=product_id,
            quantity=data.get("quantity"),
        )
        return jsonify({"item": line.to_dict(), "message": "Cart updated"}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("")
@require_auth
@require_shop
@require_permission("USE_POS")
def remove_from_cart_route():
    """Body: {product_id} removes one line; {clear_all: true} empties the cart."""
    try:
        data = request.get_json(silent=True) or {}
        if data.get("clear_all") is True:
            removed = cart_service.clear(user_id=g.current_user.id, shop_id=g.shop_id)
            return jsonify({"removed": removed, "message": "Cart cleared"}), 200

        if data.get("product_id") is None:
            raise ValidationError("product_id or clear_all is required")
        product_id = to_positive_int(data.get("product_id"), "product_id")
        cart_service.remove_item(user_id=g.current_user.id, shop_id=g.shop_id, product_id=product_id)
        return jsonify({"removed": 1, "message": "Item removed from cart"}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to remove item from cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("/checkout")
@require_auth
@require_shop
@require_permission("USE_POS")
def checkout_route():
    """
    Convert the cart into a completed sale.

    Body (all optional):
    {
        "customer_id": 12,
        "payment_method": "cash",
        "notes": "...",
        "tax_percentage": 17,
        "discount_amount": 0,
        "discount_type": "percentage" | "fixed"
    }

    Returns:
    - 200: {success, sale, message}
    - 400: empty cart, no shop, bad discount/tax
    - 404: unknown customer
    - 409: insufficient stock (details.items lists each short product)
    - 500: {error, details}; nothing was written and the cart is intact
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = checkout_service.checkout(
            user_id=g.current_user.id,
            shop_id=g.shop_id,
            customer_id=optional_int(data.get("customer_id"), "customer_id"),
            payment_method=data.get("payment_method"),
            notes=data.get("notes"),
            tax_percentage=data.get("tax_percentage"),
            discount_amount=data.get("discount_amount"),
            discount_type=data.get("discount_type"),
        )
        body = sale.to_dict(include_items=True)
        return jsonify({
            "success": True,
            "sale": body,
            "message": f"Sale {sale.invoice_number} completed",
        }), 200
    except ShopError as e:
        if e.status_code >= 500:
            current_app.logger.error("Checkout failed: %s %s", e.message, e.details)
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        current_app.logger.exception("Checkout failed")
        return jsonify({
            "error": "Failed to complete checkout",
            "details": {"reason": e.__class__.__name__},
        }), 500
