# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

# backend/shopos/routes/inventory.py
"""
Inventory routes.

Stock is a count of IN_STOCK unit rows; there is no adjustable quantity.
Units enter through /receive (or purchase receiving) and leave through sales.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import inventory_service
from ..validation import ShopError, ValidationError, to_decimal, to_positive_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_INVENTORY")
def inventory_summary_route():
    """Per-product IN_STOCK counts with low-stock flag. ?low_stock=true filters."""
    try:
        rows = inventory_service.inventory_summary(g.shop_id)
        if request.args.get("low_stock", "").lower() in ("1", "true", "yes"):
            rows = [row for row in rows if row["is_low_stock"]]
        return jsonify({
            "items": rows,
            "count": len(rows),
            "total_units": sum(row["in_stock"] for row in rows),
            "low_stock_count": sum(1 for row in rows if row["is_low_stock"]),
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load inventory summary")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/products/<int:product_id>/items")
@require_auth
@require_shop
@require_permission("VIEW_INVENTORY")
def list_units_route(product_id: int):
    try:
        units = inventory_service.list_units(
            shop_id=g.shop_id,
            product_id=product_id,
            status=request.args.get("status"),
        )
        return jsonify({
            "product_id": product_id,
            "in_stock": inventory_service.count_in_stock(g.shop_id, product_id),
            "items": [u.to_dict() for u in units],
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list inventory items")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/receive")
@require_auth
@require_shop
@require_permission("RECEIVE_INVENTORY")
def receive_route():
    """
    Add IN_STOCK units directly (opening stock, found stock).

    Body: {product_id, quantity, cost_price?, imeis?, serial_numbers?, batch_number?}
    """
    try:
        data = request.get_json(silent=True) or {}
        product_id = to_positive_int(data.get("product_id"), "product_id")
        quantity = to_positive_int(data.get("quantity"), "quantity")
        cost_price = data.get("cost_price")
        imeis = data.get("imeis") or []
        serial_numbers = data.get("serial_numbers") or []
        if not isinstance(imeis, list) or not isinstance(serial_numbers, list):
            raise ValidationError("imeis and serial_numbers must be lists")

        units = inventory_service.receive_stock(
            shop_id=g.shop_id,
            product_id=product_id,
            quantity=quantity,
            user_id=g.current_user.id,
            cost_price=to_decimal(cost_price, "cost_price") if cost_price is not None else None,
            imeis=imeis,
            serial_numbers=serial_numbers,
            batch_number=data.get("batch_number"),
        )
        return jsonify({
            "items": [u.to_dict() for u in units],
            "count": len(units),
            "in_stock": inventory_service.count_in_stock(g.shop_id, product_id),
        }), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to receive inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/items/<int:item_id>")
@require_auth
@require_shop
@require_permission("RECEIVE_INVENTORY")
def set_item_status_route(item_id: int):
    """Body: {status: IN_STOCK | DAMAGED | RETURNED}"""
    try:
        data = request.get_json(silent=True) or {}
        item = inventory_service.set_item_status(
            shop_id=g.shop_id,
            item_id=item_id,
            status=data.get("status"),
            user_id=g.current_user.id,
        )
        return jsonify({"item": item.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500
