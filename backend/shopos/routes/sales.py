# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/shopos/routes/sales.py
"""Sales API routes with permission enforcement"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import receipt_service, sales_service
from ..validation import ShopError, ValidationError, optional_int, page_args
from shopos.time_utils import parse_iso_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _date_arg(name: str):
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")


@sales_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_SALES")
def list_sales_route():
    """
    Query params: status, start_date, end_date (YYYY-MM-DD, inclusive),
    search (invoice / customer name / phone), customer_id, page, limit.
    """
    try:
        page, limit = page_args(request.args)
        result = sales_service.list_sales(
            shop_id=g.shop_id,
            status=request.args.get("status"),
            start=_date_arg("start_date"),
            end=_date_arg("end_date"),
            search=request.args.get("search"),
            customer_id=optional_int(request.args.get("customer_id"), "customer_id"),
            page=page,
            limit=limit,
        )
        return jsonify(result), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_shop
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(shop_id=g.shop_id, sale_id=sale_id)
        return jsonify({"sale": sale.to_dict(include_items=True, include_payments=True)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
@require_shop
@require_permission("VIEW_SALES")
def receipt_route(sale_id: int):
    try:
        sale = sales_service.get_sale(shop_id=g.shop_id, sale_id=sale_id)
        return jsonify({"receipt": receipt_service.render_receipt(sale)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to render receipt")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_shop
@require_permission("EDIT_SALE")
def update_sale_route(sale_id: int):
    """Body: {status?, notes?}. Amounts and items are immutable."""
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.update_sale(
            shop_id=g.shop_id,
            sale_id=sale_id,
            user_id=g.current_user.id,
            status=data.get("status"),
            notes=data.get("notes"),
        )
        return jsonify({"sale": sale.to_dict(include_items=True)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_shop
@require_permission("DELETE_SALE")
def delete_sale_route(sale_id: int):
    """Delete a sale and return its units to stock."""
    try:
        result = sales_service.delete_sale(shop_id=g.shop_id, sale_id=sale_id, user_id=g.current_user.id)
        current_app.logger.info(
            "Sale deleted: shop=%s sale=%s invoice=%s restored_units=%s",
            g.shop_id, sale_id, result["invoice_number"], result["restored_units"],
        )
        return jsonify({**result, "message": "Sale deleted and inventory restored"}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
