# Overview: Flask API routes for suppliers and purchases; parses input and returns JSON responses.

# backend/shopos/routes/purchasing.py
"""
Supplier and purchase routes.

All endpoints are owner-level: MANAGE_SUPPLIERS for the supplier directory,
MANAGE_PURCHASES for purchase orders, receiving and supplier payments.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import purchase_service, supplier_service
from ..validation import ShopError, ValidationError, optional_int, require_fields, to_positive_int


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")
purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


# =============================================================================
# SUPPLIERS
# =============================================================================

@suppliers_bp.get("")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def list_suppliers_route():
    try:
        include_inactive = request.args.get("include_inactive", "").lower() in ("1", "true", "yes")
        suppliers = supplier_service.list_suppliers(shop_id=g.shop_id, include_inactive=include_inactive)
        return jsonify({"suppliers": [s.to_dict() for s in suppliers], "count": len(suppliers)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    try:
        data = request.get_json(silent=True) or {}
        supplier = supplier_service.create_supplier(
            shop_id=g.shop_id,
            name=data.get("name"),
            contact_person=data.get("contact_person"),
            phone=data.get("phone"),
            email=data.get("email"),
            address=data.get("address"),
            user_id=g.current_user.id,
        )
        return jsonify({"supplier": supplier.to_dict()}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    try:
        data = request.get_json(silent=True) or {}
        supplier = supplier_service.update_supplier(
            shop_id=g.shop_id,
            supplier_id=supplier_id,
            name=data.get("name"),
            contact_person=data.get("contact_person"),
            phone=data.get("phone"),
            email=data.get("email"),
            address=data.get("address"),
            is_active=data.get("is_active"),
            user_id=g.current_user.id,
        )
        return jsonify({"supplier": supplier.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PURCHASES
# =============================================================================

@purchases_bp.get("")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def list_purchases_route():
    try:
        limit = max(1, min(request.args.get("limit", default=50, type=int) or 50, 200))
        offset = max(0, request.args.get("offset", default=0, type=int) or 0)
        purchases = purchase_service.list_purchases(
            shop_id=g.shop_id,
            status=request.args.get("status"),
            supplier_id=optional_int(request.args.get("supplier_id"), "supplier_id"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"purchases": [p.to_dict() for p in purchases], "count": len(purchases)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list purchases")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def create_purchase_route():
    """Body: {supplier_id, items: [{product_id, quantity, unit_cost}], notes?}"""
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "supplier_id")
        items = data.get("items")
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        purchase = purchase_service.create_purchase(
            shop_id=g.shop_id,
            supplier_id=to_positive_int(data.get("supplier_id"), "supplier_id"),
            items=items,
            user_id=g.current_user.id,
            notes=data.get("notes"),
        )
        return jsonify({"purchase": purchase.to_dict(include_items=True)}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:purchase_id>")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def get_purchase_route(purchase_id: int):
    try:
        purchase = purchase_service.get_purchase(shop_id=g.shop_id, purchase_id=purchase_id)
        return jsonify({"purchase": purchase.to_dict(include_items=True)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("/<int:purchase_id>/receive")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def receive_purchase_route(purchase_id: int):
    """
    Body: {items: [{purchase_item_id, received_quantity, imeis?, serial_numbers?}]}

    received_quantity is the new running total for the line.
    """
    try:
        data = request.get_json(silent=True) or {}
        items = data.get("items")
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        result = purchase_service.receive_purchase(
            shop_id=g.shop_id,
            purchase_id=purchase_id,
            items=items,
            user_id=g.current_user.id,
        )
        purchase = result["purchase"]
        return jsonify({
            "purchase": purchase.to_dict(include_items=True),
            "units_created": result["units_created"],
            "message": f"Successfully received {result['units_created']} items",
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to receive purchase")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.post("/<int:purchase_id>/payment")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def purchase_payment_route(purchase_id: int):
    """Body: {amount}"""
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "amount")
        purchase = purchase_service.record_purchase_payment(
            shop_id=g.shop_id,
            purchase_id=purchase_id,
            amount=data.get("amount"),
            user_id=g.current_user.id,
        )
        return jsonify({"purchase": purchase.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record purchase payment")
        return jsonify({"error": "Internal server error"}), 500
