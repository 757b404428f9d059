# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import customer_service
from ..validation import ShopError

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    try:
        limit = max(1, min(request.args.get("limit", default=50, type=int) or 50, 200))
        offset = max(0, request.args.get("offset", default=0, type=int) or 0)
        customers = customer_service.list_customers(
            shop_id=g.shop_id,
            search=request.args.get("search"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"customers": [c.to_dict() for c in customers], "count": len(customers)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    try:
        customer = customer_service.create_customer(
            shop_id=g.shop_id,
            payload=request.get_json(silent=True) or {},
            user_id=g.current_user.id,
        )
        return jsonify({"customer": customer.to_dict()}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_shop
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(shop_id=g.shop_id, customer_id=customer_id)
        return jsonify({"customer": customer.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_shop
@require_permission("MANAGE_CUSTOMERS")
def update_customer_route(customer_id: int):
    try:
        customer = customer_service.update_customer(
            shop_id=g.shop_id,
            customer_id=customer_id,
            payload=request.get_json(silent=True) or {},
            user_id=g.current_user.id,
        )
        return jsonify({"customer": customer.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500
