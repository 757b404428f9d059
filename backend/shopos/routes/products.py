# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopos/routes/products.py
"""
Product catalog routes.

MULTI-TENANT: All product operations are scoped to the caller's shop
(g.shop_id, resolved by @require_auth and enforced by @require_shop).

- Read operations require VIEW_PRODUCTS
- Write operations require MANAGE_PRODUCTS
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import products_service
from ..validation import ShopError, page_args

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def list_products_route():
    """
    Query params:
    - search: matches name, sku or brand
    - status: ACTIVE / INACTIVE
    - page, limit: pagination (limit max 200)
    """
    try:
        page, limit = page_args(request.args, default_limit=50, max_limit=200)
        result = products_service.list_products(
            shop_id=g.shop_id,
            search=request.args.get("search"),
            status=request.args.get("status"),
            page=page,
            limit=limit,
        )
        return jsonify(result), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    try:
        payload = request.get_json(silent=True) or {}
        product = products_service.create_product(
            shop_id=g.shop_id,
            payload=payload,
            user_id=g.current_user.id,
        )
        return jsonify({"product": product.to_dict()}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(shop_id=g.shop_id, product_id=product_id)
        return jsonify({"product": product}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_shop
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    """Price changes apply to future sales only."""
    try:
        payload = request.get_json(silent=True) or {}
        product = products_service.update_product(
            shop_id=g.shop_id,
            product_id=product_id,
            payload=payload,
            user_id=g.current_user.id,
        )
        return jsonify({"product": product.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500
